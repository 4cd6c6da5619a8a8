from __future__ import annotations

from fastapi.testclient import TestClient


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_rate_limited_response_still_has_request_id(client: TestClient, monkeypatch):
    from rewriter.core.config import settings

    monkeypatch.setattr(settings.app, "rate_limit_requests", 1)
    client.post("/api/verify", json={})

    resp = client.post("/api/verify", json={}, headers={"X-Request-ID": "throttled-1"})

    assert resp.status_code == 429
    assert resp.headers.get("X-Request-ID") == "throttled-1"
