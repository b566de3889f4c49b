"""Observability helpers for ReportSync."""

from .metrics import ENGINE_COUNTERS, MetricsRegistry, RequestMetricsMiddleware, metrics_registry

__all__ = [
    "ENGINE_COUNTERS",
    "MetricsRegistry",
    "RequestMetricsMiddleware",
    "metrics_registry",
]
