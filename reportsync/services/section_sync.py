"""Repair drift between a report's embedded ``sections`` array and its rows.

Rows are the write-of-record for ``structured_data``; the embedded array is a
read-optimised copy. A pass first upserts row metadata from the embedded
entries, then mirrors row data back into the embedded copy. Running a pass
twice in a row changes nothing the second time.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..models import Report, ReportSection
from ..observability import metrics_registry
from ..utils.errors import ReconciliationError, StoreError
from .report_store import SqlReportStore

LOGGER = logging.getLogger(__name__)

DEFAULT_SECTION_TITLE = "Untitled Section"
DEFAULT_SECTION_TYPE = "unknown"


@dataclass(slots=True)
class UpsertPlan:
    """Rows that need writing, plus notes about skipped entries."""

    rows: list[ReportSection] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ReportReconciliation:
    report_id: str
    upserted: int = 0
    mirrored: int = 0
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ReconciliationSummary:
    """Totals of a repair run over many reports."""

    processed_reports: int = 0
    total_upserted: int = 0
    total_mirrored: int = 0
    per_report_errors: list[dict[str, str]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        return {
            "processedReports": self.processed_reports,
            "totalUpserted": self.total_upserted,
            "totalMirrored": self.total_mirrored,
            "perReportErrors": [dict(error) for error in self.per_report_errors],
            "warnings": list(self.warnings),
        }


def _embedded_entries(report: Report) -> list[Any]:
    sections = report.sections
    if sections is None:
        return []
    if not isinstance(sections, list):
        raise ReconciliationError(
            f"Report {report.id} has a non-array sections value",
            extra={"report_id": report.id},
        )
    return sections


def _entry_id(entry: Any) -> str | None:
    if not isinstance(entry, dict):
        return None
    value = entry.get("id")
    if isinstance(value, str) and value.strip():
        return value
    return None


def upsert_from_embedded(report: Report, rows: Iterable[ReportSection]) -> UpsertPlan:
    """Return the rows to insert or update so they match the embedded entries.

    Title, section type and order follow the embedded array. ``structured_data``
    is copied only into rows that have none.
    """

    existing = {row.id: row for row in rows}
    plan = UpsertPlan()
    seen: set[str] = set()

    for order, entry in enumerate(_embedded_entries(report)):
        section_id = _entry_id(entry)
        if section_id is None:
            plan.warnings.append(
                f"report {report.id}: embedded section at index {order} has no id; skipped"
            )
            continue
        if section_id in seen:
            plan.warnings.append(
                f"report {report.id}: duplicate embedded section id {section_id}; skipped"
            )
            continue
        seen.add(section_id)

        title = entry.get("title") or DEFAULT_SECTION_TITLE
        section_type = (
            entry.get("sectionType") or entry.get("section_type") or DEFAULT_SECTION_TYPE
        )
        data = entry.get("structured_data")

        row = existing.get(section_id)
        if row is None:
            plan.rows.append(
                ReportSection(
                    id=section_id,
                    report_id=report.id,
                    title=title,
                    section_type=section_type,
                    structured_data=copy.deepcopy(data),
                    order=order,
                )
            )
            continue

        changed = False
        if row.title != title:
            row.title = title
            changed = True
        if row.section_type != section_type:
            row.section_type = section_type
            changed = True
        if row.order != order:
            row.order = order
            changed = True
        if row.structured_data is None and data is not None:
            row.structured_data = copy.deepcopy(data)
            changed = True
        if changed:
            plan.rows.append(row)

    return plan


def mirror_to_embedded(
    report: Report, rows: Iterable[ReportSection]
) -> tuple[list[Any], int]:
    """Return the embedded entries with row data copied in, and how many changed."""

    data_by_id = {
        row.id: row.structured_data for row in rows if row.structured_data is not None
    }
    mirrored = 0
    sections: list[Any] = []
    for entry in _embedded_entries(report):
        section_id = _entry_id(entry)
        if section_id is not None and section_id in data_by_id:
            data = data_by_id[section_id]
            if entry.get("structured_data") != data:
                entry = {**entry, "structured_data": copy.deepcopy(data)}
                mirrored += 1
        sections.append(entry)
    return sections, mirrored


def reconcile_report(store: SqlReportStore, report: Report) -> ReportReconciliation:
    """Run both reconciliation steps for ``report`` and commit the result."""

    rows = store.list_by_report_id(report.id)
    plan = upsert_from_embedded(report, rows)
    if plan.rows:
        store.upsert_many(plan.rows)

    known = {row.id: row for row in rows}
    known.update({row.id: row for row in plan.rows})
    sections, mirrored = mirror_to_embedded(report, known.values())
    if mirrored:
        report.sections = sections
        store.put_report(report)

    store.commit()
    return ReportReconciliation(
        report_id=report.id,
        upserted=len(plan.rows),
        mirrored=mirrored,
        warnings=plan.warnings,
    )


def reconcile_reports(
    store: SqlReportStore, reports: Iterable[Report]
) -> ReconciliationSummary:
    """Reconcile each report in turn; one failing report never stops the run."""

    summary = ReconciliationSummary()
    for report in reports:
        report_id = report.id
        summary.processed_reports += 1
        try:
            result = reconcile_report(store, report)
        except (StoreError, ReconciliationError) as exc:
            store.rollback()
            LOGGER.warning("Reconciliation failed for report %s: %s", report_id, exc.message)
            summary.per_report_errors.append({"reportId": report_id, "reason": exc.message})
            metrics_registry.increment("reconciliation_errors")
            continue
        summary.total_upserted += result.upserted
        summary.total_mirrored += result.mirrored
        summary.warnings.extend(result.warnings)
        for warning in result.warnings:
            LOGGER.warning(warning)

    metrics_registry.increment("reconciliation_runs")
    metrics_registry.increment("sections_upserted", summary.total_upserted)
    metrics_registry.increment("sections_mirrored", summary.total_mirrored)
    LOGGER.info(
        "Reconciled %d reports: %d rows upserted, %d sections mirrored, %d failures",
        summary.processed_reports,
        summary.total_upserted,
        summary.total_mirrored,
        len(summary.per_report_errors),
    )
    return summary


__all__ = [
    "ReconciliationSummary",
    "ReportReconciliation",
    "UpsertPlan",
    "mirror_to_embedded",
    "reconcile_report",
    "reconcile_reports",
    "upsert_from_embedded",
]
