"""Detect and repair corrupted ``structured_data`` already stored in section rows.

Two corruption shapes are known from earlier writers: a section's data nested
inside itself under a ``structured_data`` key, and objects flooded with numeric
keys after a string value was spread character by character. New writes are
guarded by the sanitizer; this module repairs rows written before that.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..models import ReportSection
from ..observability import metrics_registry
from ..utils.errors import StoreError
from .field_paths import MAX_PATH_DEPTH, Index, Key, Path, delete_value, format_path
from .report_store import SqlReportStore

LOGGER = logging.getLogger(__name__)

NESTED_DATA_KEY = "structured_data"
EXCESSIVE_NUMERIC_KEYS = 100

_NUMERIC_KEY = re.compile(r"^\d+$")

NESTED_DATA_ISSUE = "nested structured_data"
NUMERIC_KEYS_ISSUE = "excessive numeric keys"


@dataclass(slots=True)
class IntegrityFinding:
    """What is wrong with one document and which object keys repair it."""

    issues: list[str] = field(default_factory=list)
    paths: list[Path] = field(default_factory=list)

    @property
    def corrupted(self) -> bool:
        return bool(self.issues)

    @property
    def actions(self) -> list[str]:
        actions = []
        if any(issue.startswith(NESTED_DATA_ISSUE) for issue in self.issues):
            actions.append("removed nested structured_data keys")
        if any(issue.startswith(NUMERIC_KEYS_ISSUE) for issue in self.issues):
            actions.append("removed numeric keys above 100")
        return actions


def inspect_document(document: Any) -> IntegrityFinding:
    """Return the corruption found in ``document`` (a section's data).

    Nested ``structured_data`` holding an object or array is flagged wherever
    it appears. An object with more than :data:`EXCESSIVE_NUMERIC_KEYS`
    numeric keys is flagged, and its keys numbered above that bound are
    marked for removal. Containers deeper than
    :data:`~reportsync.services.field_paths.MAX_PATH_DEPTH` are not visited.
    """

    finding = IntegrityFinding()
    stack: list[tuple[Any, Path]] = [(document, ())]
    while stack:
        node, prefix = stack.pop()
        if len(prefix) >= MAX_PATH_DEPTH:
            continue
        if isinstance(node, list):
            stack.extend(
                (item, prefix + (Index(position),)) for position, item in enumerate(node)
            )
            continue
        if not isinstance(node, dict):
            continue

        numeric = [key for key in node if _NUMERIC_KEY.match(key)]
        if len(numeric) > EXCESSIVE_NUMERIC_KEYS:
            finding.issues.append(
                f"{NUMERIC_KEYS_ISSUE} at {format_path(prefix) or '<root>'}: {len(numeric)}"
            )
            finding.paths.extend(
                prefix + (Key(key),) for key in numeric if int(key) > EXCESSIVE_NUMERIC_KEYS
            )

        for key, value in node.items():
            path = prefix + (Key(key),)
            if key == NESTED_DATA_KEY and isinstance(value, (dict, list)):
                finding.issues.append(f"{NESTED_DATA_ISSUE} at {format_path(path)}")
                finding.paths.append(path)
                continue
            stack.append((value, path))
    return finding


def clean_document(document: Any) -> tuple[Any, IntegrityFinding]:
    """Return a repaired copy of ``document`` and what was wrong with it."""

    finding = inspect_document(document)
    cleaned = document
    for path in finding.paths:
        cleaned = delete_value(cleaned, path)
    return cleaned, finding


@dataclass(slots=True)
class SectionIntegrityDetail:
    section_id: str
    report_id: str
    title: str
    issues: list[str]
    actions: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "sectionId": self.section_id,
            "reportId": self.report_id,
            "title": self.title,
            "issues": list(self.issues),
            "actions": list(self.actions),
        }


@dataclass(slots=True)
class IntegritySummary:
    """Totals of one scan or cleanup over a set of section rows."""

    dry_run: bool
    total_sections: int = 0
    corrupted_sections: int = 0
    cleaned_sections: int = 0
    details: list[SectionIntegrityDetail] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        return {
            "dryRun": self.dry_run,
            "totalSections": self.total_sections,
            "corruptedSections": self.corrupted_sections,
            "cleanedSections": self.cleaned_sections,
            "details": [detail.to_dict() for detail in self.details],
            "errors": [dict(error) for error in self.errors],
        }


def repair_sections(
    store: SqlReportStore,
    rows: Iterable[ReportSection],
    *,
    dry_run: bool = False,
) -> IntegritySummary:
    """Inspect ``rows`` and, unless ``dry_run``, write the repaired data back.

    Each row is committed on its own; a failed write is recorded and the
    remaining rows are still processed. The embedded copy catches up on the
    next repair-sync.
    """

    summary = IntegritySummary(dry_run=dry_run)
    for row in rows:
        if row.structured_data is None:
            continue
        summary.total_sections += 1
        section_id, report_id = row.id, row.report_id
        cleaned, finding = clean_document(row.structured_data)
        if not finding.corrupted:
            continue

        summary.corrupted_sections += 1
        detail = SectionIntegrityDetail(
            section_id=section_id,
            report_id=report_id,
            title=row.title,
            issues=finding.issues,
            actions=finding.actions,
        )
        if dry_run:
            summary.details.append(detail)
            continue

        try:
            row.structured_data = cleaned
            store.upsert_many([row])
            store.commit()
        except StoreError as exc:
            store.rollback()
            LOGGER.warning("Could not clean section %s: %s", section_id, exc.message)
            summary.errors.append({"sectionId": section_id, "reason": exc.message})
            continue
        summary.cleaned_sections += 1
        summary.details.append(detail)
        LOGGER.info("Cleaned section %s: %s", section_id, "; ".join(finding.issues))

    metrics_registry.increment("sections_cleaned", summary.cleaned_sections)
    LOGGER.info(
        "Integrity %s: %d of %d sections corrupted, %d cleaned",
        "scan" if dry_run else "cleanup",
        summary.corrupted_sections,
        summary.total_sections,
        summary.cleaned_sections,
    )
    return summary


__all__ = [
    "EXCESSIVE_NUMERIC_KEYS",
    "IntegrityFinding",
    "IntegritySummary",
    "SectionIntegrityDetail",
    "clean_document",
    "inspect_document",
    "repair_sections",
]
