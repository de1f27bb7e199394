"""
tests/test_rate_limit.py -- POST /api/v1/auth is throttled per client.

Runs in its own module so the api_client fixture hands it a fresh limiter.
"""

from __future__ import annotations

from core.config import get_settings


def test_login_rate_limited(api_client):
    client, _, _ = api_client
    allowed = int(get_settings().login_rate_limit.split("/")[0])
    body = {"username": "nobody", "password": "wrong"}

    for _ in range(allowed):
        assert client.post("/api/v1/auth", json=body).status_code == 401

    resp = client.post("/api/v1/auth", json=body)
    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "rate_limited"
    assert "Retry-After" in resp.headers
