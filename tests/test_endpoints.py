"""Tests for the FastAPI routes."""

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from tests.helpers import UPSTREAM_URL, make_settings


class TestHealthEndpoint:
    """Tests for /health."""

    def test_health(self, mock_client):
        """Health reports the data mode."""
        response = mock_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "mockMode": True}


class TestReadEndpoints:
    """Tests for GET /agents, /info and /jobs."""

    def test_agents_envelope(self, mock_client):
        """Agents come back in the dashboard envelope."""
        data = mock_client.get("/agents").json()

        assert data["method"] == "GET"
        assert data["path"] == "/api/v2/agents"
        assert data["status"] == 200
        assert {agent["id"] for agent in data["data"]["agents"]} == {"agent-1", "agent-2", "agent-3"}

    def test_info(self, mock_client):
        """System info is served under data."""
        data = mock_client.get("/info").json()
        assert data["data"]["uptime"] == 86400
        assert data["data"]["totalAgents"] == 3

    def test_jobs(self, mock_client):
        """Jobs carry their agent bindings."""
        data = mock_client.get("/jobs").json()
        jobs = data["data"]["jobs"]
        assert len(jobs) == 4
        assert jobs[0]["agents"][0]["permission"] == "ro"

    def test_job_by_id(self, mock_client):
        """A single job is available by id."""
        response = mock_client.get("/jobs/job-1")
        assert response.status_code == 200
        assert response.json()["data"]["job"]["name"] == "Daily Backup"

    def test_job_by_id_missing(self, mock_client):
        """Unknown job ids are 404."""
        response = mock_client.get("/jobs/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Job not found"}

    def test_upstream_failure_falls_back(self, upstream_client, upstream):
        """An erroring upstream still yields fixture data."""
        upstream.handler = lambda request: httpx.Response(500)

        response = upstream_client.get("/agents")

        assert response.status_code == 200
        assert len(response.json()["data"]["agents"]) == 3
        assert upstream.requests[0].headers["Authorization"] == "Bearer secret-token"

    def test_upstream_jobs_normalized(self, upstream_client, upstream):
        """Upstream wrapped payloads keep their extra fields."""
        upstream.handler = lambda request: httpx.Response(
            200, json={"jobs": [{"id": 3, "name": "x", "status": "queued"}], "total": 1}
        )

        data = upstream_client.get("/jobs").json()

        assert data["total"] == 1
        assert data["data"]["jobs"][0]["id"] == 3
        assert "startTime" in data["data"]["jobs"][0]


class TestCreateJobEndpoint:
    """Tests for POST /jobs."""

    def test_create_in_mock_mode(self, mock_client, store, sample_job_draft):
        """Mock create answers 201 and stores one queued job."""
        response = mock_client.post("/jobs", json=sample_job_draft)

        assert response.status_code == 201
        job = response.json()["data"]["job"]
        assert job["status"] == "queued"
        assert job["progress"] == 0
        assert job["groups"][0]["path"]["macro"] == "%FOLDERS_STORAGE%"
        assert len(store.list_jobs()) == 5

    def test_blank_name_rejected(self, mock_client, store, sample_job_draft):
        """Blank names fail validation and store nothing."""
        sample_job_draft["name"] = "   "

        response = mock_client.post("/jobs", json=sample_job_draft)

        assert response.status_code == 422
        assert len(store.list_jobs()) == 4

    def test_no_agents_rejected(self, mock_client, sample_job_draft):
        """At least one agent is required."""
        sample_job_draft["agents"] = []

        response = mock_client.post("/jobs", json=sample_job_draft)

        assert response.status_code == 422

    def test_groups_optional(self, mock_client, sample_job_draft):
        """Groups may be left out."""
        del sample_job_draft["groups"]

        response = mock_client.post("/jobs", json=sample_job_draft)

        assert response.status_code == 201

    def test_upstream_error_surfaced(self, upstream_client, upstream, sample_job_draft):
        """Upstream errors keep their status and message."""
        upstream.handler = lambda request: httpx.Response(409, json={"error": "Job name already used"})

        response = upstream_client.post("/jobs", json=sample_job_draft)

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "Job name already used"
        assert body["status"] == 409


class TestDeleteJobEndpoint:
    """Tests for DELETE /jobs/{id}."""

    def test_delete_in_mock_mode(self, mock_client, store):
        """Deleting a known job returns it."""
        response = mock_client.delete("/jobs/job-4")

        assert response.status_code == 200
        assert response.json()["data"]["job"]["id"] == "job-4"
        assert len(store.list_jobs()) == 3

    def test_delete_missing(self, mock_client):
        """Unknown ids are 404 with an error field."""
        response = mock_client.delete("/jobs/job-999")

        assert response.status_code == 404
        assert "error" in response.json()

    def test_delete_upstream_failure(self, upstream_client, upstream):
        """Upstream delete failures are 500."""
        upstream.handler = lambda request: httpx.Response(503)

        response = upstream_client.delete("/jobs/12")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to delete job"}


class TestDashboardEndpoint:
    """Tests for GET /dashboard."""

    def test_summary(self, mock_client):
        """Counts are computed from agents and jobs."""
        data = mock_client.get("/dashboard").json()

        assert data["title"] == "Resilio Sync Dashboard"
        assert data["mockMode"] is True
        assert data["agents"] == {"total": 3, "online": 2}
        assert data["jobs"]["total"] == 4
        assert data["jobs"]["byStatus"]["running"] == 1
        assert data["jobs"]["byStatus"]["paused"] == 0
        assert data["systemInfo"]["version"] == "2.7.3"


class TestProxyErrorResponses:
    """Proxy errors become JSON responses with their own status."""

    @pytest.fixture
    def strict_client(self, store, upstream):
        settings = make_settings(resilio_api_base_url=UPSTREAM_URL, fallback_to_mock=False)
        app = create_app(settings=settings, store=store, transport=upstream.transport())
        return TestClient(app)

    @pytest.mark.parametrize("path", ["/agents", "/info", "/jobs", "/jobs/7", "/dashboard"])
    def test_reads_without_fallback_are_502(self, strict_client, upstream, path):
        """Every read route answers 502 when upstream fails and fallback is off."""
        upstream.handler = lambda request: httpx.Response(500)

        response = strict_client.get(path)

        assert response.status_code == 502
        assert response.json()["status"] == 502

    def test_millisecond_timestamp_falls_back(self, upstream_client, upstream):
        """An out-of-range timestamp never turns into a server error."""
        upstream.handler = lambda request: httpx.Response(
            200, json=[{"id": 1, "name": "x", "startTime": 1_700_000_000_000}]
        )

        response = upstream_client.get("/jobs")

        assert response.status_code == 200
        assert len(response.json()["data"]["jobs"]) == 4
