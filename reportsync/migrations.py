"""Lightweight schema migration helpers for the ReportSync backend."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError


MigrationFunc = Callable[[Engine], None]


def _ensure_section_field_provenance(engine: Engine) -> None:
    """Add the ``field_provenance`` column to ``report_sections`` if it is missing."""

    with engine.begin() as connection:
        inspector = inspect(connection)
        try:
            columns = inspector.get_columns("report_sections")
        except NoSuchTableError:
            return

        if any(column["name"] == "field_provenance" for column in columns):
            return

        connection.execute(
            text(
                "ALTER TABLE report_sections "
                "ADD COLUMN field_provenance JSON NOT NULL DEFAULT '{}'"
            )
        )


def _backfill_section_types(engine: Engine) -> None:
    """Replace blank ``section_type`` values left by early imports."""

    with engine.begin() as connection:
        inspector = inspect(connection)
        try:
            inspector.get_columns("report_sections")
        except NoSuchTableError:
            return

        connection.execute(
            text(
                "UPDATE report_sections SET section_type = 'unknown' "
                "WHERE section_type IS NULL OR section_type = ''"
            )
        )


_MIGRATIONS: tuple[MigrationFunc, ...] = (
    _ensure_section_field_provenance,
    _backfill_section_types,
)


def run_migrations(engine: Engine, migrations: Iterable[MigrationFunc] | None = None) -> None:
    """Execute idempotent schema migrations for the provided engine."""

    for migration in migrations or _MIGRATIONS:
        migration(engine)
