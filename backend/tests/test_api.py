"""Tests for the HTTP gateway using FastAPI's TestClient and fake stages."""

import pytest
from fastapi.testclient import TestClient

from autotube.api.app import create_app
from tests.conftest import VIDEO_URL

PAYLOAD = {
    "topic": "AI news of the week",
    "tone": "informative",
    "targetDurationSec": 180,
    "visibility": "unlisted",
}


@pytest.fixture
def client_for(make_stages):
    def _client(**errors):
        stages = make_stages(**errors)
        executor = stages.executor()
        return TestClient(create_app(executor)), executor

    return _client


def test_run_success(client_for):
    client, _ = client_for()
    with client:
        response = client.post("/api/run", json=PAYLOAD)

    assert response.status_code == 200
    body = response.json()
    assert body["job_id"]
    assert body["result"]["status"] == "success"
    assert body["result"]["published_url"] == VIDEO_URL
    assert body["result"]["video_path"].endswith(".mp4")


def test_run_stage_failure_returns_500(client_for):
    client, executor = client_for(narration=RuntimeError("synthesis quota exceeded"))
    with client:
        response = client.post("/api/run", json=PAYLOAD)
        jobs = client.get("/api/run").json()["jobs"]

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "synthesis quota exceeded"
    assert body["stage"] == "narration"
    # The failed job stays visible with its message
    assert jobs[0]["id"] == body["job_id"]
    assert jobs[0]["status"] == "failed"
    assert jobs[0]["error"] == "synthesis quota exceeded"


@pytest.mark.parametrize(
    "payload",
    [
        {"topic": "AI news", "targetDurationSec": 29},
        {"topic": "AI news", "targetDurationSec": 601},
        {"topic": "AI"},
        {"topic": "AI news", "tone": "angry"},
        {"tone": "informative"},
        ["not", "an", "object"],
    ],
)
def test_invalid_payload_creates_no_job(client_for, payload):
    client, _ = client_for()
    with client:
        response = client.post("/api/run", json=payload)
        jobs = client.get("/api/jobs").json()["jobs"]

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid payload"
    assert response.json()["details"]
    assert jobs == []


def test_malformed_json(client_for):
    client, _ = client_for()
    with client:
        response = client.post(
            "/api/run", content=b"{not json", headers={"Content-Type": "application/json"}
        )

    assert response.status_code == 400


def test_body_not_utf8_is_rejected(client_for):
    client, _ = client_for()
    with client:
        response = client.post(
            "/api/run",
            content=b'{"topic": "\xff\xfe news"}',
            headers={"Content-Type": "application/json"},
        )
        jobs = client.get("/api/jobs").json()["jobs"]

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid payload"
    assert jobs == []


def test_run_publish_failure_still_succeeds(client_for):
    client, _ = client_for(publish=RuntimeError("YouTube upload failed: 503"))
    with client:
        response = client.post("/api/run", json=PAYLOAD)

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["status"] == "success"
    assert result["video_path"]
    assert result["published_url"] is None
    assert result["publish_error"] == "YouTube upload failed: 503"


def test_submit_job_runs_in_background(client_for):
    client, _ = client_for()
    with client:
        response = client.post("/api/jobs", json=PAYLOAD)
        assert response.status_code == 202
        job_id = response.json()["job_id"]
        assert response.json()["status_url"] == f"/api/jobs/{job_id}"

        job = client.get(f"/api/jobs/{job_id}").json()

    assert job["status"] == "success"
    assert job["published_url"] == VIDEO_URL
    assert job["created_ago"] == "just now"


def test_list_newest_first(client_for):
    client, _ = client_for()
    with client:
        first = client.post("/api/run", json={**PAYLOAD, "topic": "first topic"}).json()
        second = client.post("/api/run", json={**PAYLOAD, "topic": "second topic"}).json()
        jobs = client.get("/api/run").json()["jobs"]

    assert [job["id"] for job in jobs] == [second["job_id"], first["job_id"]]


def test_unknown_job_404(client_for):
    client, _ = client_for()
    with client:
        response = client.get("/api/jobs/does-not-exist")

    assert response.status_code == 404


def test_health(client_for):
    client, _ = client_for()
    with client:
        assert client.get("/api/health").json() == {"status": "ok"}
