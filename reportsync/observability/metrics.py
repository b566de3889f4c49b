"""In-memory request and engine metrics."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from threading import Lock
from time import perf_counter
from typing import Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

ENGINE_COUNTERS = (
    "updates_applied",
    "updates_skipped",
    "batches_rejected",
    "reconciliation_runs",
    "reconciliation_errors",
    "sections_upserted",
    "sections_mirrored",
    "sections_cleaned",
)


@dataclass
class RouteStats:
    """Latency statistics for one ``METHOD path`` pair."""

    count: int = 0
    total_duration_ms: float = 0.0
    max_duration_ms: float = 0.0


class MetricsRegistry:
    """Thread-safe collector shared by the middleware and the services."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._clear()

    def _clear(self) -> None:
        self._in_flight = 0
        self._requests_total = 0
        self._status_families: Counter[str] = Counter()
        self._routes: Dict[str, RouteStats] = {}
        self._engine: Counter[str] = Counter({name: 0 for name in ENGINE_COUNTERS})

    def reset(self) -> None:
        """Reset all counters (useful for tests)."""

        with self._lock:
            self._clear()

    def increment(self, name: str, amount: int = 1) -> None:
        """Add ``amount`` to the engine counter ``name``."""

        if amount <= 0:
            return
        with self._lock:
            self._engine[name] += amount

    def request_started(self) -> None:
        with self._lock:
            self._in_flight += 1

    def request_finished(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_seconds: float,
    ) -> None:
        duration_ms = max(duration_seconds * 1000.0, 0.0)
        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)
            self._requests_total += 1
            self._status_families[f"{status_code // 100}xx"] += 1
            stats = self._routes.setdefault(f"{method.upper()} {path}", RouteStats())
            stats.count += 1
            stats.total_duration_ms += duration_ms
            stats.max_duration_ms = max(stats.max_duration_ms, duration_ms)

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "requests_total": self._requests_total,
                "in_flight": self._in_flight,
                "status_codes": dict(self._status_families),
                "routes": {
                    key: {
                        "count": stats.count,
                        "avg_duration_ms": stats.total_duration_ms / (stats.count or 1),
                        "max_duration_ms": stats.max_duration_ms,
                    }
                    for key, stats in self._routes.items()
                },
                "engine": dict(self._engine),
            }


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """Time every request and record its status family."""

    def __init__(self, app: ASGIApp, *, registry: MetricsRegistry | None = None) -> None:
        super().__init__(app)
        self._registry = registry or metrics_registry

    async def dispatch(self, request: Request, call_next):
        start = perf_counter()
        self._registry.request_started()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            self._registry.request_finished(
                request.method, request.url.path, status_code, perf_counter() - start
            )


metrics_registry = MetricsRegistry()

__all__ = [
    "ENGINE_COUNTERS",
    "MetricsRegistry",
    "RequestMetricsMiddleware",
    "metrics_registry",
]
