"""SQLModel-backed stores for embedded reports and normalized section rows."""

from __future__ import annotations

import copy
from datetime import UTC, datetime
from typing import Iterable, Optional

from sqlalchemy import asc
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..models import Report, ReportSection, SectionChangeEntry
from ..utils.errors import StoreError


class SqlReportStore:
    """Read and write both representations of a report's sections.

    Writes are staged on the session; callers decide when to ``commit`` so a
    batch of row writes and its audit entries land in one transaction.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # Document store -----------------------------------------------------

    def get_report(self, report_id: str) -> Optional[Report]:
        try:
            return self.session.get(Report, report_id)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to load report {report_id}: {exc}") from exc

    def put_report(self, report: Report) -> Report:
        """Stage ``report`` with a fresh ``updated_at``."""

        report.updated_at = datetime.now(UTC)
        # Reassign a copy so the JSON column is flagged dirty.
        report.sections = copy.deepcopy(report.sections)
        try:
            self.session.add(report)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to write report {report.id}: {exc}") from exc
        return report

    def list_reports(self, user_id: str | None = None) -> list[Report]:
        statement = select(Report).order_by(asc(Report.created_at))
        if user_id is not None:
            statement = statement.where(Report.user_id == user_id)
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to list reports: {exc}") from exc

    # Row store ----------------------------------------------------------

    def list_by_report_id(self, report_id: str) -> list[ReportSection]:
        statement = (
            select(ReportSection)
            .where(ReportSection.report_id == report_id)
            .order_by(asc(ReportSection.order))
        )
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to load sections for report {report_id}: {exc}") from exc

    def list_sections_for_user(
        self, user_id: str, report_id: str | None = None
    ) -> list[ReportSection]:
        """Return the rows of every report owned by ``user_id`` (or just one)."""

        statement = (
            select(ReportSection)
            .join(Report, Report.id == ReportSection.report_id)
            .where(Report.user_id == user_id)
            .order_by(asc(ReportSection.report_id), asc(ReportSection.order))
        )
        if report_id is not None:
            statement = statement.where(ReportSection.report_id == report_id)
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to load sections for user {user_id}: {exc}") from exc

    def upsert_many(self, rows: Iterable[ReportSection]) -> int:
        """Stage ``rows`` (new or existing) and return how many were written."""

        now = datetime.now(UTC)
        count = 0
        try:
            for row in rows:
                row.updated_at = now
                self.session.add(row)
                count += 1
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to write section rows: {exc}") from exc
        return count

    def add_change_entries(self, entries: Iterable[SectionChangeEntry]) -> None:
        try:
            self.session.add_all(list(entries))
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to write change log: {exc}") from exc

    def list_change_entries(self, report_id: str) -> list[SectionChangeEntry]:
        statement = (
            select(SectionChangeEntry)
            .where(SectionChangeEntry.report_id == report_id)
            .order_by(asc(SectionChangeEntry.id))
        )
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to load change log for report {report_id}: {exc}") from exc

    # Transactions -------------------------------------------------------

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"Commit failed: {exc}") from exc

    def rollback(self) -> None:
        self.session.rollback()


__all__ = ["SqlReportStore"]
