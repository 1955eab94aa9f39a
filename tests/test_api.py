from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from job_scheduler.api.main import create_app
from job_scheduler.models import JobStatus
from job_scheduler.store import StoreError


@pytest.fixture()
def client(store) -> TestClient:
    return TestClient(create_app(store))


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_create_and_list_jobs(client) -> None:
    resp = client.post("/api/v1/jobs", json={"name": "greet", "command": "echo hi"})
    assert resp.status_code == 201
    created = resp.json()
    assert created["status"] == "queued"
    assert created["last_run"] is None

    client.post("/api/v1/jobs", json={"name": "second", "command": "true"})
    jobs = client.get("/api/v1/jobs").json()

    assert [j["name"] for j in jobs] == ["second", "greet"]
    assert jobs[1]["id"] == created["id"]


@pytest.mark.parametrize("body", [
    {"name": "", "command": "echo hi"},
    {"name": "greet", "command": ""},
    {"name": "greet"},
])
def test_create_job_requires_name_and_command(client, body) -> None:
    assert client.post("/api/v1/jobs", json=body).status_code == 422


def test_config_round_trip(client, store) -> None:
    assert client.get("/api/v1/config").json() == {"max_concurrent_jobs": 5}

    resp = client.put("/api/v1/config", json={"max_concurrent_jobs": 2})

    assert resp.status_code == 200
    assert store.get_max_concurrent_jobs() == 2
    assert client.get("/api/v1/config").json() == {"max_concurrent_jobs": 2}


def test_config_rejects_negative_ceiling(client) -> None:
    assert client.put("/api/v1/config", json={"max_concurrent_jobs": -1}).status_code == 422


def test_stats(client, store) -> None:
    a = store.create_job("a", "true")
    store.create_job("b", "true")
    store.update_job_status(a.id, JobStatus.running)

    assert client.get("/api/v1/stats").json() == {
        "queued_count": 1,
        "running_count": 1,
        "completed_count": 0,
        "failed_count": 0,
        "total_count": 2,
    }


def test_store_failure_is_a_500(store, monkeypatch) -> None:
    def broken():
        raise StoreError("failed to query all jobs: boom")

    monkeypatch.setattr(store, "list_jobs", broken)
    client = TestClient(create_app(store))

    resp = client.get("/api/v1/jobs")

    assert resp.status_code == 500
    assert resp.json()["detail"] == "failed to query all jobs: boom"


def test_dashboard_is_served_at_root(client) -> None:
    resp = client.get("/")

    assert resp.status_code == 200
    assert "Job Scheduler Dashboard" in resp.text
    assert "API_BASE = '/api/v1'" in client.get("/app.js").text


def test_api_routes_win_over_dashboard(client) -> None:
    assert client.get("/api/v1/config").json() == {"max_concurrent_jobs": 5}
