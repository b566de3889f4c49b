"""Apply a batch of AI-proposed field updates to one report's section rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..config import Settings, get_settings
from ..middleware import get_actor, get_request_id
from ..models import Report, ReportSection, SectionChangeEntry
from ..observability import metrics_registry
from ..utils.errors import ParseError, StoreError, ValidationError
from .field_schema import (
    SectionSchema,
    coerce_to_type,
    get_section_schema,
    is_declared,
    leaf_type,
)
from .merge import ChangeLogEntry, MergeOptions, apply_batch
from .proposals import BatchError, UpdateProposal, sanitize_batch
from .provenance import attach_provenance
from .report_store import SqlReportStore

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class BatchOutcome:
    """Result of one update batch, shaped for the HTTP response."""

    applied_count: int = 0
    skipped_count: int = 0
    errors: list[BatchError] = field(default_factory=list)
    updated_sections: list[str] = field(default_factory=list)
    changes: list[ChangeLogEntry] = field(default_factory=list)
    dry_run: bool = False

    def to_response(self) -> dict[str, Any]:
        return {
            "appliedCount": self.applied_count,
            "skippedCount": self.skipped_count,
            "errors": [error.to_dict() for error in self.errors],
            "updatedSections": list(self.updated_sections),
            "changes": [change.to_dict() for change in self.changes],
            "dryRun": self.dry_run,
        }


def _target_schema(
    update: UpdateProposal,
    rows: dict[str, ReportSection],
    schemas: dict[str, SectionSchema | None],
) -> SectionSchema | None:
    if update.section_id not in rows:
        raise ValidationError(f"unknown section_id: {update.section_id}")
    schema = schemas[update.section_id]
    if not is_declared(schema, update.path):
        raise ValidationError(f"field_path not in schema: {update.field_path}")
    return schema


def _validate_against_rows(
    updates: list[UpdateProposal],
    rows: dict[str, ReportSection],
    schemas: dict[str, SectionSchema | None],
    *,
    coerce: bool,
) -> tuple[list[UpdateProposal], list[BatchError]]:
    """Drop updates that target unknown sections or undeclared paths."""

    accepted: list[UpdateProposal] = []
    errors: list[BatchError] = []
    for update in updates:
        try:
            schema = _target_schema(update, rows, schemas)
        except ValidationError as exc:
            errors.append(BatchError(index=update.index, reason=exc.message))
            continue
        if coerce and update.merge_strategy != "merge":
            update.value = coerce_to_type(update.value, leaf_type(schema, update.path))
        accepted.append(update)

    for error in errors:
        LOGGER.warning("Skipping update %d: %s", error.index, error.reason)
    return accepted, errors


def apply_section_updates(
    store: SqlReportStore,
    report: Report,
    raw_updates: Any,
    *,
    dry_run: bool = False,
    settings: Settings | None = None,
) -> BatchOutcome:
    """Sanitize, validate and fold ``raw_updates`` over ``report``'s rows.

    Rows and change-log entries are written in one commit unless ``dry_run``.
    Raises :class:`ParseError` when the batch itself cannot be decoded and
    :class:`StoreError` when persisting fails.
    """

    settings = settings or get_settings()

    try:
        sanitized = sanitize_batch(raw_updates, max_size=settings.max_batch_size)
    except ParseError as exc:
        metrics_registry.increment("batches_rejected")
        LOGGER.warning("Rejected update batch for report %s: %s", report.id, exc.message)
        raise

    rows = {row.id: row for row in store.list_by_report_id(report.id)}
    schemas = {row_id: get_section_schema(row.section_type) for row_id, row in rows.items()}

    accepted, validation_errors = _validate_against_rows(
        sanitized.valid_updates, rows, schemas, coerce=settings.coerce_to_schema
    )
    result = apply_batch(
        {row_id: row.structured_data for row_id, row in rows.items()},
        accepted,
        leaf_type_for=lambda update: leaf_type(schemas[update.section_id], update.path),
        options=MergeOptions.from_settings(settings),
    )

    provenance: dict[str, dict[str, Any]] = {}
    for update in result.applied:
        if not update.provenance:
            continue
        history = provenance.get(update.section_id, rows[update.section_id].field_provenance)
        provenance[update.section_id] = attach_provenance(
            history,
            update.field_path,
            update.provenance,
            limit=settings.provenance_history_limit,
        )

    outcome = BatchOutcome(
        applied_count=len(result.applied),
        skipped_count=sanitized.total - len(result.applied),
        errors=sorted(
            sanitized.errors + validation_errors + result.errors,
            key=lambda error: error.index,
        ),
        updated_sections=result.updated_sections,
        changes=result.changes,
        dry_run=dry_run,
    )

    if not dry_run and result.applied:
        _persist(store, report, rows, result.documents, provenance, outcome)

    metrics_registry.increment("updates_applied", outcome.applied_count)
    metrics_registry.increment("updates_skipped", outcome.skipped_count)
    LOGGER.info(
        "Report %s: applied %d of %d updates across %d sections%s",
        report.id,
        outcome.applied_count,
        sanitized.total,
        len(outcome.updated_sections),
        " (dry run)" if dry_run else "",
    )
    return outcome


def _persist(
    store: SqlReportStore,
    report: Report,
    rows: dict[str, ReportSection],
    documents: dict[str, Any],
    provenance: dict[str, dict[str, Any]],
    outcome: BatchOutcome,
) -> None:
    changed_rows = []
    for section_id in outcome.updated_sections:
        row = rows[section_id]
        row.structured_data = documents[section_id]
        if section_id in provenance:
            row.field_provenance = provenance[section_id]
        changed_rows.append(row)

    actor = get_actor()
    request_id = get_request_id()
    entries = [
        SectionChangeEntry(
            report_id=report.id,
            section_id=change.section_id,
            field_path=change.field_path,
            strategy=change.strategy,
            previous_value=change.previous_value,
            new_value=change.new_value,
            actor=actor,
            request_id=request_id,
        )
        for change in outcome.changes
    ]

    try:
        store.upsert_many(changed_rows)
        store.add_change_entries(entries)
        store.commit()
    except StoreError:
        store.rollback()
        raise


__all__ = ["BatchOutcome", "apply_section_updates"]
