from __future__ import annotations

from fastapi.testclient import TestClient

from characters_api.core.app_factory import create_app
from characters_api.core.config import LogSettings, Settings


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/characters")

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_error_body_carries_request_id(client: TestClient):
    resp = client.get("/characters/ghost", headers={"X-Request-ID": "req-404"})

    assert resp.status_code == 404
    assert resp.json()["error"]["request_id"] == "req-404"


def test_header_name_comes_from_app_settings(file_store):
    custom = Settings(log=LogSettings(request_id_header="X-Correlation-ID"))
    app = create_app(settings=custom, store=file_store)

    with TestClient(app) as custom_client:
        resp = custom_client.get("/health", headers={"X-Correlation-ID": "corr-1"})

    assert resp.status_code == 200
    assert resp.headers.get("X-Correlation-ID") == "corr-1"
    assert "X-Request-ID" not in resp.headers
