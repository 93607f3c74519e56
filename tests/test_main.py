import pytest
from fastapi.testclient import TestClient

from watchcast.main import build_granian_kwargs, create_app


@pytest.fixture(scope="module")
def client():
    with TestClient(create_app()) as client:
        yield client


def test_unknown_session_returns_failure_envelope(client):
    r = client.get("/api/v1/watch/sessions/ws_missing")
    assert r.status_code == 404
    data = r.json()
    assert data["success"] is False
    assert data["errcode"] == "E_WATCH_SESSION_NOT_FOUND"
    assert isinstance(data.get("erresid"), str) and data["erresid"]


def test_invalid_body_returns_invalid_params(client):
    r = client.post("/api/v1/watch/sessions/ws_missing/segment", json={"index": "first"})
    assert r.status_code == 422
    data = r.json()
    assert data["success"] is False
    assert data["errcode"] == "E_INVALID_PARAMS"


def test_registry_is_attached_on_startup(client):
    assert len(client.app.state.watch_registry) == 0
    assert client.app.state.watch_registry.sweeping


def test_granian_kwargs():
    kwargs = build_granian_kwargs()
    assert kwargs["interface"] == "asgi"
    assert isinstance(kwargs["port"], int)
