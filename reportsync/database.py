"""Engine and session management for the report and section tables."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterator

from sqlalchemy.engine import Engine, URL, make_url
from sqlmodel import Session, SQLModel, create_engine

from . import config as config_module
from .config import PROJECT_ROOT
from .migrations import run_migrations

_engine: Engine | None = None


def _resolve_sqlite_url(url: URL) -> URL:
    """Anchor relative SQLite files at the project root and create their folder."""

    database = url.database
    if not database or database == ":memory:":
        return url
    db_path = Path(database)
    if not db_path.is_absolute():
        db_path = (PROJECT_ROOT / db_path).resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return url.set(database=str(db_path))


def get_engine() -> Engine:
    """Return the process-wide engine, creating it from settings on first use."""

    global _engine
    if _engine is None:
        url = make_url(config_module.get_settings().database_url)
        connect_args: dict[str, object] = {}
        if url.get_backend_name() == "sqlite":
            url = _resolve_sqlite_url(url)
            # Sync routes run in a threadpool; sessions never cross threads.
            connect_args["check_same_thread"] = False
        _engine = create_engine(url, connect_args=connect_args)
    return _engine


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""

    with Session(get_engine()) as session:
        yield session


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request; rolled back if the block raises."""

    with Session(get_engine()) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise


def init_db() -> None:
    """Create the report tables and apply pending column migrations."""

    from .models import (  # noqa: F401  registers the tables on SQLModel.metadata
        change_entry,
        report,
        section,
    )

    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    run_migrations(engine)


def reset_database_state() -> None:
    """Dispose of the cached engine so the next call rebuilds it (tests)."""

    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


__all__ = [
    "get_engine",
    "get_session",
    "init_db",
    "reset_database_state",
    "session_scope",
]
