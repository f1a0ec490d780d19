"""Tests for API endpoints."""
import pytest
from datetime import date, timedelta

from conftest import make_token
from furnacelog import config


@pytest.fixture
def home_id(client, auth_headers):
    response = client.post(
        "/api/homes",
        json={"name": "Cabin on Frame Lake", "community": "Yellowknife", "timezone": "America/Yellowknife"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()["id"]


def series_payload(anchor, end=None, materialize_count=None):
    payload = {
        "title": "Replace furnace filter",
        "system_id": "oil-furnace",
        "anchor_date": anchor.isoformat(),
        "recurrence": {"frequency": "monthly", "interval": 1, "end": end or {"kind": "never"}},
    }
    if materialize_count:
        payload["materialize_count"] = materialize_count
    return payload


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()


def test_health_reports_metrics(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "expansions_total" in response.json()["metrics"]["counters"]


def test_requests_without_token_are_rejected(client):
    assert client.get("/api/homes").status_code == 401


def test_expired_token_is_rejected(client):
    token = make_token("user-1", expires_in=timedelta(seconds=-60))

    response = client.get("/api/homes", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired"


def test_other_users_home_is_forbidden(client, home_id, other_headers):
    response = client.get(f"/api/homes/{home_id}/schedule", headers=other_headers)

    assert response.status_code == 403


def test_missing_home_is_not_found(client, auth_headers):
    response = client.get("/api/homes/4242/schedule", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_preview_shows_five_dates_and_infinite_warning(client, home_id, auth_headers):
    response = client.post(
        f"/api/homes/{home_id}/schedule/preview",
        json={"anchor_date": "2025-01-31", "recurrence": {"frequency": "monthly"}},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["dates"] == ["2025-01-31", "2025-02-28", "2025-03-31", "2025-04-30", "2025-05-31"]
    assert data["truncated"] is True
    assert data["warnings"][0].startswith("Infinite recurrence")


def test_create_series_and_edit_one_occurrence(client, home_id, auth_headers, future):
    created = client.post(
        f"/api/homes/{home_id}/schedule/series",
        json=series_payload(future, end={"kind": "after_count", "count": 5}),
        headers=auth_headers,
    )
    assert created.status_code == 201
    body = created.json()
    series_id = body["series"]["id"]
    assert len(body["occurrences"]) == 5
    assert body["series"]["recurrence"]["end"] == {"kind": "after_count", "count": 5}
    original = [o["due_date"] for o in body["occurrences"]]

    moved_to = (future + timedelta(days=3)).isoformat()
    patched = client.patch(
        f"/api/homes/{home_id}/schedule/series/{series_id}/occurrences/2",
        json={"due_date": moved_to},
        headers=auth_headers,
    )
    assert patched.status_code == 200
    assert patched.json()["original_due_date"] == original[2]

    listed = client.get(f"/api/homes/{home_id}/schedule", params={"series_id": series_id}, headers=auth_headers)
    due_dates = [o["due_date"] for o in listed.json()["occurrences"]]
    assert listed.json()["count"] == 5
    assert moved_to in due_dates
    assert [d for d in due_dates if d != moved_to] == original[:2] + original[3:]


def test_series_ending_before_anchor_is_a_validation_error(client, home_id, auth_headers):
    response = client.post(
        f"/api/homes/{home_id}/schedule/series",
        json=series_payload(date(2025, 6, 1), end={"kind": "on_date", "until": "2025-05-01"}),
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_zero_interval_is_a_validation_error(client, home_id, auth_headers):
    payload = series_payload(date(2025, 6, 1))
    payload["recurrence"]["interval"] = 0

    response = client.post(f"/api/homes/{home_id}/schedule/series", json=payload, headers=auth_headers)

    assert response.status_code == 422
    assert "Interval" in response.json()["error"]["message"]


def test_editing_unmaterialized_occurrence_is_a_conflict(client, home_id, auth_headers, future):
    created = client.post(
        f"/api/homes/{home_id}/schedule/series",
        json=series_payload(future, materialize_count=3),
        headers=auth_headers,
    )
    series_id = created.json()["series"]["id"]
    assert created.json()["truncated"] is True

    response = client.patch(
        f"/api/homes/{home_id}/schedule/series/{series_id}/occurrences/5",
        json={"priority": "high"},
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NOT_MATERIALIZED"

    materialized = client.post(
        f"/api/homes/{home_id}/schedule/series/{series_id}/materialize",
        json={"count": 3},
        headers=auth_headers,
    )
    assert [o["sequence_index"] for o in materialized.json()["occurrences"]] == [3, 4, 5]

    retry = client.patch(
        f"/api/homes/{home_id}/schedule/series/{series_id}/occurrences/5",
        json={"priority": "high"},
        headers=auth_headers,
    )
    assert retry.status_code == 200
    assert retry.json()["priority"] == "high"


def test_reschedule_into_the_past_is_rejected(client, home_id, auth_headers, future):
    created = client.post(
        f"/api/homes/{home_id}/schedule",
        json={"title": "Clean chimney", "due_date": future.isoformat()},
        headers=auth_headers,
    )
    occurrence_id = created.json()["id"]

    response = client.patch(
        f"/api/homes/{home_id}/schedule/{occurrence_id}",
        json={"due_date": (date.today() - timedelta(days=10)).isoformat()},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PAST_DUE_DATE"


def test_complete_logs_work_and_blocks_further_edits(client, home_id, auth_headers, future):
    created = client.post(
        f"/api/homes/{home_id}/schedule",
        json={"title": "Service oil furnace", "system_id": "oil-furnace", "due_date": future.isoformat()},
        headers=auth_headers,
    )
    occurrence_id = created.json()["id"]

    completed = client.post(
        f"/api/homes/{home_id}/schedule/{occurrence_id}/complete",
        json={"log": {"system_id": "oil-furnace", "performed_on": "2025-01-14", "parts_cost": 40, "labor_cost": 110}},
        headers=auth_headers,
    )
    assert completed.status_code == 200
    assert completed.json()["occurrence"]["status"] == "completed"
    assert completed.json()["log"]["total_cost"] == 150.0

    logs = client.get(f"/api/homes/{home_id}/logs", headers=auth_headers)
    assert logs.json()["count"] == 1

    cancelled = client.patch(
        f"/api/homes/{home_id}/schedule/{occurrence_id}",
        json={"status": "cancelled"},
        headers=auth_headers,
    )
    assert cancelled.status_code == 409
    assert cancelled.json()["error"]["code"] == "INVALID_STATE_TRANSITION"


def test_completion_day_is_returned_without_a_log(client, home_id, auth_headers, future):
    created = client.post(
        f"/api/homes/{home_id}/schedule",
        json={"title": "Clean HRV filters", "system_id": "hrv", "due_date": future.isoformat()},
        headers=auth_headers,
    )
    occurrence_id = created.json()["id"]

    completed = client.post(
        f"/api/homes/{home_id}/schedule/{occurrence_id}/complete",
        json={"completed_on": "2025-01-14"},
        headers=auth_headers,
    )
    assert completed.status_code == 200
    assert completed.json()["log"] is None

    fetched = client.get(f"/api/homes/{home_id}/schedule/{occurrence_id}", headers=auth_headers)
    assert fetched.json()["completed_on"] == "2025-01-14"


def test_negative_cost_is_rejected(client, home_id, auth_headers):
    response = client.post(
        f"/api/homes/{home_id}/logs",
        json={"system_id": "hrv", "performed_on": "2025-01-01", "parts_cost": -5},
        headers=auth_headers,
    )

    assert response.status_code == 422


def test_timeline_patterns_and_correlations(client, home_id, auth_headers):
    observations = [
        {"observed_on": (date(2025, 1, 1) + timedelta(days=k)).isoformat(), "temp_high": -20, "temp_low": -30, "temp_mean": -25}
        for k in range(10)
    ]
    observations[2]["extreme_events"] = [{"type": "cold-snap", "severity": "severe"}]
    ingested = client.post("/api/weather/Yellowknife/observations", json={"observations": observations}, headers=auth_headers)
    assert ingested.json() == {"community": "Yellowknife", "inserted": 10, "updated": 0}

    for performed_on in ["2024-07-06", "2024-10-04", "2025-01-02", "2025-01-06"]:
        client.post(
            f"/api/homes/{home_id}/logs",
            json={"system_id": "oil-furnace", "performed_on": performed_on, "parts_cost": 25},
            headers=auth_headers,
        )

    timeline = client.get(
        f"/api/timeline/{home_id}",
        params={"start": "2025-01-01", "end": "2025-01-10"},
        headers=auth_headers,
    )
    assert timeline.status_code == 200
    assert len(timeline.json()["points"]) == 10
    assert timeline.json()["summary"]["total_maintenance"] == 2

    patterns = client.get(f"/api/timeline/{home_id}/patterns", headers=auth_headers)
    assert patterns.json()["patterns"]["recurring"][0]["system_id"] == "oil-furnace"

    correlations = client.get(f"/api/timeline/{home_id}/correlations", headers=auth_headers)
    matches = correlations.json()["cold_snap_maintenance"]
    assert [m["maintenance"]["performed_on"] for m in matches] == ["2025-01-06"]
    assert matches[0]["days_after"] == 3

    costs = client.get(f"/api/timeline/{home_id}/costs", params={"group_by": "year"}, headers=auth_headers)
    assert [b["period"] for b in costs.json()] == ["2024", "2025"]


def test_inverted_timeline_range_is_rejected(client, home_id, auth_headers):
    response = client.get(
        f"/api/timeline/{home_id}",
        params={"start": "2025-02-01", "end": "2025-01-01"},
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_RANGE"


def test_daily_timeline_over_the_point_limit_is_rejected(client, home_id, auth_headers):
    response = client.get(
        f"/api/timeline/{home_id}",
        params={"start": "0001-01-01", "end": "9999-12-31", "granularity": "day"},
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"]["details"]["max_points"] == config.MAX_TIMELINE_POINTS


def test_series_rule_cannot_be_patched(client, home_id, auth_headers, future):
    created = client.post(f"/api/homes/{home_id}/schedule/series", json=series_payload(future), headers=auth_headers)
    series_id = created.json()["series"]["id"]

    rejected = client.patch(
        f"/api/homes/{home_id}/schedule/series/{series_id}",
        json={"recurrence": {"frequency": "weekly"}},
        headers=auth_headers,
    )
    assert rejected.status_code == 422

    renamed = client.patch(
        f"/api/homes/{home_id}/schedule/series/{series_id}",
        json={"title": "Swap furnace filter"},
        headers=auth_headers,
    )
    assert renamed.status_code == 200
    assert renamed.json()["recurrence"]["frequency"] == "monthly"

    detail = client.get(f"/api/homes/{home_id}/schedule/series/{series_id}", headers=auth_headers)
    assert detail.json()["materialized"] == 12
    assert {o["title"] for o in detail.json()["occurrences"]} == {"Swap furnace filter"}
