"""Report endpoints: creation, both section views and field update batches."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..models import Report, ReportSection, SectionChangeEntry
from ..services.report_store import SqlReportStore
from ..services.section_sync import reconcile_report
from ..services.section_updates import apply_section_updates
from ..utils.errors import ParseError, ReconciliationError, StoreError
from .dependencies import get_store, load_owned_report, require_user_id

router = APIRouter(prefix="/api", tags=["reports"])


class ReportCreateRequest(BaseModel):
    """Embedded sections to seed a report with; rows are derived from them."""

    title: str = "Untitled Report"
    sections: list[dict[str, Any]] = Field(default_factory=list)


class ReportResponse(BaseModel):
    id: str
    user_id: str
    title: str
    sections: list[Any]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, report: Report) -> "ReportResponse":
        return cls(
            id=report.id,
            user_id=report.user_id,
            title=report.title,
            sections=list(report.sections or []),
            created_at=report.created_at,
            updated_at=report.updated_at,
        )


class SectionRowResponse(BaseModel):
    id: str
    report_id: str
    title: str
    section_type: str
    structured_data: Any = None
    order: int
    field_provenance: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime

    @classmethod
    def from_model(cls, row: ReportSection) -> "SectionRowResponse":
        return cls(
            id=row.id,
            report_id=row.report_id,
            title=row.title,
            section_type=row.section_type,
            structured_data=row.structured_data,
            order=row.order,
            field_provenance=dict(row.field_provenance or {}),
            updated_at=row.updated_at,
        )


class ChangeEntryResponse(BaseModel):
    id: int
    section_id: str
    field_path: str
    strategy: str
    previous_value: Any = None
    new_value: Any = None
    actor: str | None = None
    request_id: str | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, entry: SectionChangeEntry) -> "ChangeEntryResponse":
        return cls(
            id=entry.id or 0,
            section_id=entry.section_id,
            field_path=entry.field_path,
            strategy=entry.strategy,
            previous_value=entry.previous_value,
            new_value=entry.new_value,
            actor=entry.actor,
            request_id=entry.request_id,
            created_at=entry.created_at,
        )


class UpdateBatchRequest(BaseModel):
    """``updates`` is an array of proposals or a JSON string encoding one."""

    updates: Any = None


def _store_unavailable(exc: StoreError) -> HTTPException:
    return HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)


@router.post(
    "/reports",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_report(
    payload: ReportCreateRequest,
    user_id: str = Depends(require_user_id),
    store: SqlReportStore = Depends(get_store),
) -> ReportResponse:
    """Persist a report and build its section rows from the embedded entries."""

    report = Report(user_id=user_id, title=payload.title, sections=payload.sections)
    try:
        store.put_report(report)
        reconcile_report(store, report)
    except (StoreError, ReconciliationError) as exc:
        store.rollback()
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message) from exc
    return ReportResponse.from_model(report)


@router.get("/reports", response_model=list[ReportResponse])
def list_reports(
    user_id: str = Depends(require_user_id),
    store: SqlReportStore = Depends(get_store),
) -> list[ReportResponse]:
    try:
        reports = store.list_reports(user_id)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return [ReportResponse.from_model(report) for report in reports]


@router.get("/reports/{report_id}", response_model=ReportResponse)
def read_report(
    report_id: str,
    user_id: str = Depends(require_user_id),
    store: SqlReportStore = Depends(get_store),
) -> ReportResponse:
    """Return the embedded (read-optimised) view of a report."""

    return ReportResponse.from_model(load_owned_report(store, report_id, user_id))


@router.get("/reports/{report_id}/sections", response_model=list[SectionRowResponse])
def read_report_sections(
    report_id: str,
    user_id: str = Depends(require_user_id),
    store: SqlReportStore = Depends(get_store),
) -> list[SectionRowResponse]:
    """Return the normalized section rows, in display order."""

    load_owned_report(store, report_id, user_id)
    try:
        rows = store.list_by_report_id(report_id)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return [SectionRowResponse.from_model(row) for row in rows]


@router.get("/reports/{report_id}/changes", response_model=list[ChangeEntryResponse])
def read_report_changes(
    report_id: str,
    user_id: str = Depends(require_user_id),
    store: SqlReportStore = Depends(get_store),
) -> list[ChangeEntryResponse]:
    """Return the audit trail of applied field updates, oldest first."""

    load_owned_report(store, report_id, user_id)
    try:
        entries = store.list_change_entries(report_id)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return [ChangeEntryResponse.from_model(entry) for entry in entries]


@router.post("/reports/{report_id}/updates")
def apply_report_updates(
    report_id: str,
    payload: UpdateBatchRequest,
    dry_run: bool = Query(default=False),
    user_id: str = Depends(require_user_id),
    store: SqlReportStore = Depends(get_store),
) -> Any:
    """Apply a batch of field updates to the report's section rows.

    Malformed entries are skipped and listed in ``errors``. A batch that
    cannot be decoded at all is answered with HTTP 400.
    """

    report = load_owned_report(store, report_id, user_id)
    try:
        outcome = apply_section_updates(store, report, payload.updates, dry_run=dry_run)
    except ParseError as exc:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "appliedCount": 0,
                "skippedCount": 0,
                "errors": [],
                "updatedSections": [],
                "dryRun": dry_run,
                "error": exc.message,
            },
        )
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return outcome.to_response()


__all__ = ["router"]
