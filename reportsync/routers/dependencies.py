"""Shared FastAPI dependencies for report routes."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status
from sqlmodel import Session

from ..database import get_session
from ..middleware import clean_token
from ..models import Report
from ..services.report_store import SqlReportStore
from ..utils.errors import StoreError


def require_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the caller's user id from ``X-User-ID`` or answer 401."""

    user_id = clean_token(x_user_id)
    if user_id is None:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            detail="X-User-ID header is required",
        )
    return user_id


def get_store(session: Session = Depends(get_session)) -> SqlReportStore:
    return SqlReportStore(session)


def load_owned_report(store: SqlReportStore, report_id: str, user_id: str) -> Report:
    """Return the report when ``user_id`` owns it; other owners see a 404."""

    try:
        report = store.get_report(report_id)
    except StoreError as exc:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message) from exc
    if report is None or report.user_id != user_id:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Report not found")
    return report


__all__ = ["get_store", "load_owned_report", "require_user_id"]
