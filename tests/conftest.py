"""Test configuration for ReportSync."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Generator

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session  # noqa: E402

from reportsync.config import reset_settings_cache  # noqa: E402
from reportsync.database import get_engine, init_db, reset_database_state  # noqa: E402
from reportsync.observability import metrics_registry  # noqa: E402

USER_HEADERS = {"X-User-ID": "clinician-1"}


@pytest.fixture(autouse=True)
def _isolate_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Point every test at its own SQLite file and fresh settings."""

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    for name in (
        "APPEND_SEPARATOR_POLICY",
        "APPEND_SEPARATOR",
        "PROVENANCE_HISTORY_LIMIT",
        "MAX_BATCH_SIZE",
        "COERCE_TO_SCHEMA",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    reset_database_state()
    metrics_registry.reset()
    yield
    reset_settings_cache()
    reset_database_state()
    metrics_registry.reset()


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    """Return a test client for the FastAPI application."""

    from reportsync.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def session() -> Generator[Session, None, None]:
    """Return a session on an initialised test database."""

    init_db()
    with Session(get_engine()) as db_session:
        yield db_session


@pytest.fixture()
def create_report(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Create a report through the API and return its JSON body."""

    def _create(sections: list[dict[str, Any]], headers: dict[str, str] | None = None) -> dict[str, Any]:
        response = client.post(
            "/api/reports",
            json={"title": "Speech-Language Evaluation", "sections": sections},
            headers=headers or USER_HEADERS,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create
