"""Tests for reconciling embedded sections with section rows."""

from __future__ import annotations

from sqlmodel import Session

from reportsync.models import Report, ReportSection
from reportsync.services.report_store import SqlReportStore
from reportsync.services.section_sync import (
    mirror_to_embedded,
    reconcile_reports,
    upsert_from_embedded,
)
from reportsync.utils.errors import StoreError


def _seed(session: Session, report_id: str, sections, rows=()) -> Report:
    report = Report(id=report_id, user_id="clinician-1", sections=sections)
    session.add(report)
    for row in rows:
        session.add(row)
    session.commit()
    return report


def test_upsert_from_embedded_builds_rows_with_defaults():
    report = Report(
        id="r1",
        user_id="u",
        sections=[
            {"id": "s1", "title": "Header", "sectionType": "heading", "structured_data": {"a": 1}},
            {"id": "s2", "section_type": "conclusion"},
            {"title": "no id"},
        ],
    )
    plan = upsert_from_embedded(report, [])

    assert [(row.id, row.title, row.section_type, row.order) for row in plan.rows] == [
        ("s1", "Header", "heading", 0),
        ("s2", "Untitled Section", "conclusion", 1),
    ]
    assert plan.rows[0].structured_data == {"a": 1}
    assert len(plan.warnings) == 1
    assert "index 2" in plan.warnings[0]


def test_upsert_keeps_existing_row_data():
    report = Report(id="r1", user_id="u", sections=[{"id": "s1", "structured_data": {"x": 1}}])
    row = ReportSection(id="s1", report_id="r1", structured_data={"x": 2})

    plan = upsert_from_embedded(report, [row])

    assert plan.rows == []
    assert row.structured_data == {"x": 2}


def test_mirror_copies_row_data_into_embedded_entries():
    report = Report(
        id="r1",
        user_id="u",
        sections=[{"id": "s1", "structured_data": {"x": 1}}, {"id": "s2"}],
    )
    rows = [
        ReportSection(id="s1", report_id="r1", structured_data={"x": 2}),
        ReportSection(id="s2", report_id="r1", structured_data=None),
    ]

    sections, mirrored = mirror_to_embedded(report, rows)

    assert mirrored == 1
    assert sections == [{"id": "s1", "structured_data": {"x": 2}}, {"id": "s2"}]
    assert report.sections[0]["structured_data"] == {"x": 1}


def test_reconcile_converges_and_second_run_is_a_no_op(session):
    _seed(
        session,
        "r1",
        [{"id": "s1", "title": "Header", "structured_data": {"x": 1}}],
        [ReportSection(id="s1", report_id="r1", title="Header", structured_data={"x": 2})],
    )
    store = SqlReportStore(session)

    first = reconcile_reports(store, store.list_reports())
    assert first.processed_reports == 1
    assert first.total_mirrored == 1
    assert first.total_upserted == 0

    report = store.get_report("r1")
    rows = store.list_by_report_id("r1")
    assert report.sections[0]["structured_data"] == {"x": 2}
    assert rows[0].structured_data == {"x": 2}

    second = reconcile_reports(store, store.list_reports())
    assert second.total_mirrored == 0
    assert second.total_upserted == 0


def test_reconcile_creates_missing_rows_and_reports_warnings(session):
    _seed(session, "r1", [{"id": "s1", "structured_data": {"a": 1}}, {"title": "orphan"}])
    store = SqlReportStore(session)

    summary = reconcile_reports(store, store.list_reports())

    assert summary.total_upserted == 1
    assert summary.total_mirrored == 0
    assert len(summary.warnings) == 1
    assert store.list_by_report_id("r1")[0].structured_data == {"a": 1}


class _FailingStore(SqlReportStore):
    def __init__(self, session, failing_id):
        super().__init__(session)
        self.failing_id = failing_id

    def list_by_report_id(self, report_id):
        if report_id == self.failing_id:
            raise StoreError(f"rows unavailable for {report_id}")
        return super().list_by_report_id(report_id)


def test_one_failing_report_does_not_stop_the_run(session):
    _seed(session, "r1", [{"id": "a1"}])
    _seed(session, "r2", [{"id": "b1"}])
    _seed(session, "r3", [{"id": "c1"}])
    store = _FailingStore(session, "r2")

    summary = reconcile_reports(store, store.list_reports())

    assert summary.processed_reports == 3
    assert summary.total_upserted == 2
    assert summary.per_report_errors == [
        {"reportId": "r2", "reason": "rows unavailable for r2"}
    ]


def test_non_array_sections_is_a_per_report_error(session):
    _seed(session, "r1", {"not": "a list"})
    store = SqlReportStore(session)

    summary = reconcile_reports(store, store.list_reports())

    assert summary.per_report_errors[0]["reportId"] == "r1"
