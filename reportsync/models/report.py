"""Report model definition."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Report(SQLModel, table=True):
    """An evaluation report holding the embedded (read-optimised) section list."""

    __tablename__ = "reports"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        description="Report identifier.",
    )
    user_id: str = Field(index=True, nullable=False, description="Owning user.")
    title: str = Field(default="Untitled Report", nullable=False)
    sections: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Embedded section entries, in display order.",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="UTC timestamp indicating when the report was created.",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="UTC timestamp of the last write to the embedded sections.",
    )


__all__ = ["Report"]
