"""Operator endpoints for repairing drift between section representations."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from ..services.report_store import SqlReportStore
from ..services.section_integrity import repair_sections
from ..services.section_sync import reconcile_reports
from ..utils.errors import StoreError
from .dependencies import get_store, load_owned_report, require_user_id

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


class RepairSyncRequest(BaseModel):
    """Limit the repair to one report, or leave empty for all of the caller's reports."""

    model_config = ConfigDict(populate_by_name=True)

    report_id: str | None = Field(default=None, alias="reportId")


@router.post("/repair-sync")
def repair_sync(
    payload: RepairSyncRequest | None = None,
    operator: str = Depends(require_user_id),
    store: SqlReportStore = Depends(get_store),
) -> dict[str, Any]:
    """Reconcile the caller's reports, or one of them, and report the totals."""

    report_id = payload.report_id if payload else None
    if report_id:
        reports = [load_owned_report(store, report_id, operator)]
    else:
        try:
            reports = store.list_reports(operator)
        except StoreError as exc:
            raise HTTPException(
                status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message
            ) from exc

    LOGGER.info("Repair sync requested by %s for %d reports", operator, len(reports))
    return reconcile_reports(store, reports).to_response()


class CleanupRequest(BaseModel):
    """Scan only (``dryRun``) or repair; optionally limited to one report."""

    model_config = ConfigDict(populate_by_name=True)

    dry_run: bool = Field(default=False, alias="dryRun")
    report_id: str | None = Field(default=None, alias="reportId")


@router.post("/cleanup-corrupted-data")
def cleanup_corrupted_data(
    payload: CleanupRequest | None = None,
    operator: str = Depends(require_user_id),
    store: SqlReportStore = Depends(get_store),
) -> dict[str, Any]:
    """Find section rows with self-nested or numeric-key corruption and repair them."""

    payload = payload or CleanupRequest()
    if payload.report_id:
        load_owned_report(store, payload.report_id, operator)
    try:
        rows = store.list_sections_for_user(operator, payload.report_id)
    except StoreError as exc:
        raise HTTPException(
            status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message
        ) from exc

    LOGGER.info(
        "Data cleanup (%s) requested by %s over %d sections",
        "dry run" if payload.dry_run else "write",
        operator,
        len(rows),
    )
    return repair_sections(store, rows, dry_run=payload.dry_run).to_response()


__all__ = ["router"]
