"""
Tests for the HTTP surface, run against the in-process backend.
"""

from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from conftest import make_backend
from medlog.api.deps import get_local_backend
from medlog.main import create_app
from medlog.schemas.log import Medication

MEDICATIONS = [Medication(id="1", name="Aspirin"), Medication(id="2", name="Ibuprofen")]


@pytest.fixture
def client():
    backend = make_backend()

    async def backend_factory():
        return backend

    app = create_app(backend_factory=backend_factory, medications=MEDICATIONS)
    with TestClient(app) as test_client:
        yield test_client


def _sign_in(client, user_id="alice"):
    response = client.post("/api/v1/session/sign-in", json={"user_id": user_id})
    assert response.status_code == 200
    return response.json()


def test_root(client):
    assert client.get("/").json() == {"message": "System Operational"}


def test_view_before_sign_in_prompts(client):
    view = client.get("/api/v1/logger/view").json()
    assert view["signed_in"] is False
    assert view["prompt"] == "Please sign in to view and add notes."


def test_sign_in_shows_empty_log_with_buttons(client):
    view = _sign_in(client)
    assert view["signed_in"] is True
    assert view["empty_message"] == "No notes yet. Add one below!"
    assert [b["label"] for b in view["buttons"]] == ["Aspirin", "Ibuprofen"]


def test_draft_then_submit(client):
    _sign_in(client)

    view = client.put("/api/v1/logger/draft", json={"text": "Headache at noon"}).json()
    assert view["draft"] == "Headache at noon"
    assert view["submit_enabled"] is True

    view = client.post("/api/v1/logger/notes", json={}).json()
    assert view["draft"] == ""
    assert [e["content"] for e in view["entries"]] == ["Headache at noon"]
    assert view["entries"][0]["icon"] == "note"


def test_blank_note_is_ignored(client):
    _sign_in(client)
    view = client.post("/api/v1/logger/notes", json={"content": "   "}).json()
    assert view["entries"] == []


def test_administer_known_medication(client):
    _sign_in(client)
    view = client.post("/api/v1/logger/administer/2").json()
    [entry] = view["entries"]
    assert entry["content"] == "Administered Ibuprofen."
    assert entry["icon"] == "pill"
    assert entry["emphasized"] is True


def test_administer_unknown_medication(client):
    _sign_in(client)
    response = client.post("/api/v1/logger/administer/99")
    assert response.status_code == 404


def test_sign_out_hides_log(client):
    _sign_in(client)
    client.post("/api/v1/logger/notes", json={"content": "private"})
    view = client.post("/api/v1/session/sign-out").json()
    assert view["signed_in"] is False
    assert view["entries"] == []


def test_switching_users_scopes_entries(client):
    _sign_in(client, "alice")
    client.post("/api/v1/logger/notes", json={"content": "alice's note"})
    view = _sign_in(client, "bob")
    assert view["entries"] == []

    view = _sign_in(client, "alice")
    assert [e["content"] for e in view["entries"]] == ["alice's note"]


def test_session_helpers_need_local_backend():
    component = SimpleNamespace(backend=object())
    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(medication_logger=component)))
    with pytest.raises(HTTPException) as excinfo:
        get_local_backend(request)
    assert excinfo.value.status_code == 400
