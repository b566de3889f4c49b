"""SQLModel definition for normalized report sections."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return the current UTC timestamp."""

    return datetime.now(UTC)


class ReportSection(SQLModel, table=True):
    """One section of a report stored as its own row (the write-of-record)."""

    __tablename__ = "report_sections"

    id: str = Field(primary_key=True)
    report_id: str = Field(foreign_key="reports.id", index=True, nullable=False)
    title: str = Field(default="Untitled Section", nullable=False)
    section_type: str = Field(default="unknown", index=True, nullable=False)
    structured_data: Optional[Any] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )
    order: int = Field(default=0, nullable=False)
    field_provenance: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)


__all__ = ["ReportSection"]
