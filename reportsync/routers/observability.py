"""Metrics and status endpoints for operators."""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from .. import __version__
from ..config import get_settings
from ..database import session_scope
from ..models import Report, ReportSection
from ..observability import metrics_registry

router = APIRouter(prefix="/api", tags=["observability"])


def _database_status() -> dict[str, object]:
    """Probe the database and count both section representations."""

    try:
        with session_scope() as session:
            reports = session.exec(select(func.count()).select_from(Report)).one()
            rows = session.exec(select(func.count()).select_from(ReportSection)).one()
    except SQLAlchemyError as exc:
        return {"ok": False, "error": exc.__class__.__name__}
    return {"ok": True, "reports": reports, "section_rows": rows}


@router.get("/metrics")
def read_metrics() -> dict[str, object]:
    """Return request timings and engine counters."""

    return metrics_registry.snapshot()


@router.get("/status")
def read_status() -> dict[str, object]:
    """Return version, database reachability, merge settings and metrics."""

    settings = get_settings()
    return {
        "app": {"version": __version__},
        "database": _database_status(),
        "merge": {
            "append_separator_policy": settings.append_separator_policy,
            "provenance_history_limit": settings.provenance_history_limit,
            "max_batch_size": settings.max_batch_size,
            "coerce_to_schema": settings.coerce_to_schema,
        },
        "metrics": metrics_registry.snapshot(),
    }


__all__ = ["router"]
