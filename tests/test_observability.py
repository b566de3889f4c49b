"""Tests for observability endpoints and metrics."""

from __future__ import annotations

from reportsync.observability import ENGINE_COUNTERS, MetricsRegistry, metrics_registry


def test_metrics_endpoint_tracks_requests(client):
    metrics_registry.reset()
    assert client.get("/api/health").status_code == 200

    payload = client.get("/api/metrics").json()

    assert payload["requests_total"] >= 1
    assert payload["status_codes"]["2xx"] >= 1
    assert payload["routes"]["GET /api/health"]["count"] == 1
    assert set(ENGINE_COUNTERS) <= set(payload["engine"])


def test_status_endpoint_reports_database_and_settings(client):
    payload = client.get("/api/status").json()

    assert payload["database"]["ok"] is True
    assert payload["app"]["version"]
    assert payload["merge"]["append_separator_policy"] == "between_nonempty"


def test_increment_ignores_non_positive_amounts():
    registry = MetricsRegistry()
    registry.increment("updates_applied", 0)
    registry.increment("updates_applied", 2)

    assert registry.snapshot()["engine"]["updates_applied"] == 2


def test_status_counts_reports_and_rows(client, create_report):
    create_report([{"id": "s1"}, {"id": "s2"}])

    database = client.get("/api/status").json()["database"]

    assert database["reports"] == 1
    assert database["section_rows"] == 2
