"""Tests for the repair-sync endpoint."""

from __future__ import annotations

USER_HEADERS = {"X-User-ID": "clinician-1"}


def test_repair_sync_mirrors_row_updates_into_embedded_view(client, create_report):
    report = create_report(
        [{"id": "s1", "title": "Notes", "sectionType": "free_text", "structured_data": {"x": 1}}]
    )
    client.post(
        f"/api/reports/{report['id']}/updates",
        json={
            "updates": [
                {"section_id": "s1", "field_path": "x", "value": 2, "merge_strategy": "replace"}
            ]
        },
        headers=USER_HEADERS,
    )

    first = client.post("/api/admin/repair-sync", json={}, headers=USER_HEADERS)
    assert first.status_code == 200
    assert first.json() == {
        "processedReports": 1,
        "totalUpserted": 0,
        "totalMirrored": 1,
        "perReportErrors": [],
        "warnings": [],
    }
    embedded = client.get(f"/api/reports/{report['id']}", headers=USER_HEADERS).json()
    assert embedded["sections"][0]["structured_data"] == {"x": 2}

    second = client.post("/api/admin/repair-sync", json={}, headers=USER_HEADERS).json()
    assert second["totalMirrored"] == 0
    assert second["totalUpserted"] == 0


def test_repair_sync_for_one_report(client, create_report):
    first = create_report([{"id": "a1"}])
    create_report([{"id": "b1"}])

    body = client.post(
        "/api/admin/repair-sync", json={"reportId": first["id"]}, headers=USER_HEADERS
    ).json()

    assert body["processedReports"] == 1


def test_repair_sync_unknown_report_is_404(client):
    response = client.post(
        "/api/admin/repair-sync", json={"reportId": "missing"}, headers=USER_HEADERS
    )
    assert response.status_code == 404


def test_repair_sync_requires_user_header(client):
    assert client.post("/api/admin/repair-sync", json={}).status_code == 401


def test_repair_sync_only_touches_the_callers_reports(client, create_report):
    create_report([{"id": "mine-1"}])
    other = create_report([{"id": "theirs-1"}], headers={"X-User-ID": "someone-else"})

    body = client.post("/api/admin/repair-sync", json={}, headers=USER_HEADERS).json()
    assert body["processedReports"] == 1

    response = client.post(
        "/api/admin/repair-sync", json={"reportId": other["id"]}, headers=USER_HEADERS
    )
    assert response.status_code == 404


def _corrupted_report(create_report, headers=None):
    return create_report(
        [
            {
                "id": "c1",
                "title": "Conclusion",
                "sectionType": "conclusion",
                "structured_data": {"prognosis": "Good", "structured_data": {"prognosis": "Good"}},
            },
            {"id": "c2", "structured_data": {"x": 1}},
        ],
        headers=headers,
    )


def test_cleanup_dry_run_then_repair(client, create_report):
    report = _corrupted_report(create_report)

    dry = client.post(
        "/api/admin/cleanup-corrupted-data", json={"dryRun": True}, headers=USER_HEADERS
    ).json()
    assert dry["dryRun"] is True
    assert dry["totalSections"] == 2
    assert dry["corruptedSections"] == 1
    assert dry["cleanedSections"] == 0
    assert dry["details"][0]["sectionId"] == "c1"

    fixed = client.post("/api/admin/cleanup-corrupted-data", json={}, headers=USER_HEADERS).json()
    assert fixed["cleanedSections"] == 1
    rows = client.get(f"/api/reports/{report['id']}/sections", headers=USER_HEADERS).json()
    assert rows[0]["structured_data"] == {"prognosis": "Good"}

    client.post("/api/admin/repair-sync", json={}, headers=USER_HEADERS)
    embedded = client.get(f"/api/reports/{report['id']}", headers=USER_HEADERS).json()
    assert embedded["sections"][0]["structured_data"] == {"prognosis": "Good"}


def test_cleanup_is_scoped_to_the_caller(client, create_report):
    other = _corrupted_report(create_report, headers={"X-User-ID": "someone-else"})

    body = client.post("/api/admin/cleanup-corrupted-data", json={}, headers=USER_HEADERS).json()
    assert body["totalSections"] == 0

    response = client.post(
        "/api/admin/cleanup-corrupted-data", json={"reportId": other["id"]}, headers=USER_HEADERS
    )
    assert response.status_code == 404
