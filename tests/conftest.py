"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from app.db.mock_store import MockStore
from app.main import create_app
from tests.helpers import UPSTREAM_URL, UpstreamRecorder, make_settings


@pytest.fixture
def store():
    """Fresh fixture store per test."""
    return MockStore()


@pytest.fixture
def upstream():
    """Fake upstream Resilio API."""
    return UpstreamRecorder()


@pytest.fixture
def mock_settings():
    return make_settings(mock_mode=True)


@pytest.fixture
def upstream_settings():
    return make_settings(resilio_api_base_url=UPSTREAM_URL, resilio_api_token="secret-token")


@pytest.fixture
def mock_client(mock_settings, store):
    """Test client answering from fixtures only."""
    app = create_app(settings=mock_settings, store=store)
    return TestClient(app)


@pytest.fixture
def upstream_client(upstream_settings, store, upstream):
    """Test client proxying to the fake upstream."""
    app = create_app(settings=upstream_settings, store=store, transport=upstream.transport())
    return TestClient(app)


@pytest.fixture
def sample_job_draft():
    """Minimal valid job draft in the groups/agents binding schema."""
    return {
        "name": "Nightly Distribution",
        "type": "distribution",
        "groups": [{"id": 7, "permission": "ro", "path": {"macro": "%FOLDERS_STORAGE%"}}],
        "agents": [{"id": 2, "permission": "rw", "path": {"linux": "/srv/share", "win": "D:\\share"}}],
        "scheduler": {"type": "daily", "time": 3600, "skip_if_running": True},
    }
