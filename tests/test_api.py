"""Tests for API functionality."""

import tempfile
from datetime import datetime
from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient

    from dreamhigh.api.app import create_app, generate_token
    FASTAPI_AVAILABLE = True
except ImportError:
    FASTAPI_AVAILABLE = False
    TestClient = None  # type: ignore

from dreamhigh.runtime import build_runtime

pytestmark = pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")


@pytest.fixture
def runtime():
    """Create a runtime over a temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield build_runtime(data_dir=Path(tmpdir))


@pytest.fixture
def app_id(runtime):
    app = runtime.records.create_application(
        company="Acme",
        applied_at=datetime(2026, 2, 1),
        content="# Notes\n\nHello ![pic](dreamhigh://images/a.png){width=300} world\n\n![b](dreamhigh://images/b.png)",
    )
    return app.id


def test_health_endpoint(runtime):
    """Test /health endpoint."""
    client = TestClient(create_app(runtime, token=None))

    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["schema_version"] == "1"


def test_auth_required(runtime):
    """Test that endpoints require authentication when token is set."""
    token = generate_token()
    client = TestClient(create_app(runtime, token=token))

    assert client.get("/health").status_code == 401
    bad = client.get("/health", headers={"Authorization": "Bearer wrong"})
    assert bad.status_code == 401
    ok = client.get("/health", headers={"Authorization": f"Bearer {token}"})
    assert ok.status_code == 200


def test_list_and_get_applications(runtime, app_id):
    client = TestClient(create_app(runtime))

    listed = client.get("/applications").json()
    assert [a["id"] for a in listed] == [app_id]
    assert listed[0]["applied_at"] == "2026-02-01T00:00:00"

    one = client.get(f"/applications/{app_id}").json()
    assert one["company"] == "Acme"


def test_missing_application_404(runtime):
    client = TestClient(create_app(runtime))
    assert client.get("/applications/nope").status_code == 404
    assert client.get("/applications/nope/blocks").status_code == 404


def test_blocks_endpoint(runtime, app_id):
    """Test that blocks carry inline runs for paragraphs."""
    client = TestClient(create_app(runtime))
    data = client.get(f"/applications/{app_id}/blocks").json()
    assert data["id"] == app_id
    kinds = [b["kind"] for b in data["blocks"]]
    assert kinds == ["heading", "paragraph", "image"]
    runs = data["blocks"][1]["runs"]
    assert [r["kind"] for r in runs] == ["text", "image", "text"]
    assert runs[1]["width"] == 300
    assert data["blocks"][2]["width"] is None


def test_put_content(runtime, app_id):
    client = TestClient(create_app(runtime))
    response = client.put(f"/applications/{app_id}/content", json={"content": "- one\n- two"})
    assert response.status_code == 200
    assert response.json()["content"] == "- one\n- two"
    assert runtime.records.get_application(app_id).content == "- one\n- two"


def test_image_width_endpoint_clamps(runtime, app_id):
    client = TestClient(create_app(runtime))
    response = client.post(
        f"/applications/{app_id}/image-width",
        json={"url": "dreamhigh://images/b.png", "alt": "b", "width": 5000},
    )
    assert response.status_code == 200
    assert response.json()["content"].endswith("![b](dreamhigh://images/b.png){width=1200}")


def test_resumes_empty(runtime):
    client = TestClient(create_app(runtime))
    assert client.get("/resumes").json() == []
