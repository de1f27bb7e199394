"""
tests/test_health.py -- Integration tests for GET /api/v1/health and the docs pages.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok', and 'unavailable' when the DB is down
  - No authentication required
  - Swagger UI and ReDoc are served under /docs
  - lifespan shutdown waits for the cancelled purge task
"""

from __future__ import annotations

import asyncio

from fastapi import FastAPI

from api.main import VERSION, lifespan
from core.config import get_settings


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, token, _ = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == VERSION
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _, _ = api_client
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_health_degraded_when_database_unavailable(api_client, monkeypatch):
    client, _, _ = api_client
    monkeypatch.setattr(client.app.state.db, "ping", lambda: False)
    data = client.get("/api/v1/health").json()
    assert data["status"] == "degraded"
    assert data["components"]["database"] == "unavailable"


def test_swagger_ui_served(api_client):
    client, _, _ = api_client
    resp = client.get("/docs/swagger")
    assert resp.status_code == 200
    assert "swagger" in resp.text.lower()


def test_redoc_served(api_client):
    client, _, _ = api_client
    assert client.get("/docs/redoc").status_code == 200


def test_openapi_lists_api_routes(api_client):
    client, _, _ = api_client
    paths = client.get("/openapi.json").json()["paths"]
    assert "/api/v1/auth" in paths
    assert "/api/v1/projects/{project_id}" in paths


def test_lifespan_shutdown_waits_for_purge_task(monkeypatch):
    """The purge task is finished, not just cancelled, once shutdown returns."""
    settings = get_settings().model_copy(update={"database_url": "sqlite:///:memory:"})
    monkeypatch.setattr("api.main._settings", settings)
    app = FastAPI()

    async def run() -> asyncio.Task:
        async with lifespan(app):
            task = app.state.purge_task
            assert not task.done()
        assert task.done()
        return task

    assert asyncio.run(run()).cancelled()
