"""Audit trail for applied field updates."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return the current time in UTC."""

    return datetime.now(UTC)


class SectionChangeEntry(SQLModel, table=True):
    """One applied update, with the value it replaced."""

    __tablename__ = "section_change_entries"

    id: Optional[int] = Field(default=None, primary_key=True)
    report_id: str = Field(foreign_key="reports.id", index=True, nullable=False)
    section_id: str = Field(foreign_key="report_sections.id", index=True, nullable=False)
    field_path: str = Field(nullable=False)
    strategy: str = Field(nullable=False)
    previous_value: Optional[Any] = Field(default=None, sa_column=Column(JSON, nullable=True))
    new_value: Optional[Any] = Field(default=None, sa_column=Column(JSON, nullable=True))
    actor: str | None = Field(default=None, nullable=True)
    request_id: str | None = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


__all__ = ["SectionChangeEntry"]
