"""
tests/test_api.py
─────────────────────────────────────────────────────────────────────────────
Tests for orion.api — OrionAPI class and the FastAPI endpoints.

Coverage:
  - chat sessions: start, send, unknown id, blank text, close, pruning
  - full chat flow → report visible in /reports
  - manual form: validation (422), success (201)
  - reports: list newest first, detail, 404
  - confirmation payload, health, config (live update, restart keys)

All tests use an in-memory store or tmp_path — nothing touches the
working directory's orion-reports.json.
"""

import pytest
from fastapi.testclient import TestClient

from orion.api import MAX_LIVE_SESSIONS, OrionAPI, SessionNotFoundError, _build_app
from orion.conversation.session import EmptyMessageError
from orion.store.report_store import InMemoryReportStore

SCENARIO = [
    "médical",
    "un coureur s'est effondré",
    "Stade Léopold Sédar Senghor",
    "urgent",
    "oui",
]


@pytest.fixture
def store():
    return InMemoryReportStore()


@pytest.fixture
def client(store):
    return TestClient(_build_app(store=store))


def _chat(client, texts):
    session_id = client.post("/chat/sessions").json()["id"]
    responses = [
        client.post(f"/chat/sessions/{session_id}/messages", json={"text": t})
        for t in texts
    ]
    return session_id, responses


# ── TESTS: IMPORTABLE CLASS ───────────────────────────────────────────────────

class TestOrionAPI:
    def test_start_and_send(self, store):
        api = OrionAPI(store=store)
        session = api.start_chat()
        assert session["state"] == "ask_type"
        assert session["messages"][0]["sender"] == "ai"

        result = api.send_message(session["id"], "médical")
        assert result["state"] == "ask_description"
        assert result["step"] == 1
        assert result["incident"]["type"] == "medical"

    def test_unknown_session(self, store):
        api = OrionAPI(store=store)
        with pytest.raises(SessionNotFoundError):
            api.send_message("nope", "médical")

    def test_blank_message(self, store):
        api = OrionAPI(store=store)
        session = api.start_chat()
        with pytest.raises(EmptyMessageError):
            api.send_message(session["id"], "  ")

    def test_end_chat(self, store):
        api = OrionAPI(store=store)
        session = api.start_chat()
        assert api.end_chat(session["id"]) is True
        assert api.end_chat(session["id"]) is False

    def test_finished_chats_do_not_accumulate(self, store):
        api = OrionAPI(store=store)
        for _ in range(5):
            session = api.start_chat()
            for text in SCENARIO:
                api.send_message(session["id"], text)
        assert len(store.list_all()) == 5
        # the last finished chat is still readable until another one starts
        assert api.get_chat(session["id"])["state"] == "confirmed"
        assert api.live_sessions == 1
        api.start_chat()
        assert api.live_sessions == 1

    def test_cancelled_chats_are_pruned(self, store):
        api = OrionAPI(store=store)
        session = api.start_chat()
        for text in SCENARIO[:4] + ["non"]:
            api.send_message(session["id"], text)
        api.start_chat()
        assert api.live_sessions == 1
        with pytest.raises(SessionNotFoundError):
            api.get_chat(session["id"])

    def test_abandoned_chats_are_capped(self, store):
        api = OrionAPI(store=store)
        first = api.start_chat()
        for _ in range(MAX_LIVE_SESSIONS + 10):
            api.start_chat()
        assert api.live_sessions == MAX_LIVE_SESSIONS
        with pytest.raises(SessionNotFoundError):
            api.get_chat(first["id"])

    def test_default_store_is_file(self, tmp_path):
        api = OrionAPI(store_path=tmp_path / "r.json")
        assert api.get_reports() == []


# ── TESTS: HTTP CHAT ──────────────────────────────────────────────────────────

class TestChatEndpoints:
    def test_start_session(self, client):
        resp = client.post("/chat/sessions")
        assert resp.status_code == 201
        data = resp.json()
        assert data["id"]
        assert len(data["messages"]) == 1
        assert data["step"] == 0

    def test_full_flow_creates_report(self, client, store):
        session_id, responses = _chat(client, SCENARIO)
        assert all(r.status_code == 200 for r in responses)

        last = responses[-1].json()
        assert last["state"] == "confirmed"
        assert last["report"]["status"] == "En attente"
        assert last["navigation"]["path"] == "/confirmation"
        assert last["navigation"]["payload"]["location"] == "Stade Léopold Sédar Senghor"
        assert last["notifications"][0]["level"] == "success"

        listing = client.get("/reports").json()
        assert listing["count"] == 1
        assert listing["reports"][0]["description"] == "un coureur s'est effondré"
        assert len(store.list_all()) == 1

    def test_get_session(self, client):
        session_id, _ = _chat(client, SCENARIO[:2])
        data = client.get(f"/chat/sessions/{session_id}").json()
        assert data["state"] == "ask_location"
        assert len(data["messages"]) == 5

    def test_unknown_session_404(self, client):
        assert client.get("/chat/sessions/missing").status_code == 404
        resp = client.post("/chat/sessions/missing/messages", json={"text": "oui"})
        assert resp.status_code == 404

    def test_blank_text_400(self, client):
        _, [resp] = _chat(client, ["   "])
        assert resp.status_code == 400

    def test_missing_body_422(self, client):
        session_id = client.post("/chat/sessions").json()["id"]
        assert client.post(f"/chat/sessions/{session_id}/messages").status_code == 422

    def test_delete_session(self, client):
        session_id = client.post("/chat/sessions").json()["id"]
        assert client.delete(f"/chat/sessions/{session_id}").status_code == 200
        assert client.delete(f"/chat/sessions/{session_id}").status_code == 404


# ── TESTS: HTTP REPORTS ───────────────────────────────────────────────────────

class TestReportEndpoints:
    def test_empty_history(self, client):
        data = client.get("/reports").json()
        assert data["count"] == 0
        assert "message" in data

    def test_manual_form(self, client):
        resp = client.post("/reports", json={
            "type": "securite",
            "urgency": "urgent",
            "description": "Colis abandonné",
            "photo": "colis.jpg",
        })
        assert resp.status_code == 201
        report = resp.json()["report"]
        assert report["type"] == "security"
        assert report["photo"] == "colis.jpg"
        assert report["location"] == "Stade Léopold Sédar Senghor - Dakar"

        detail = client.get(f"/reports/{report['id']}").json()
        assert detail["title"] == "Sécurité"
        assert detail["emoji"] == "🔒"
        assert detail["urgency_badge"] == "🔴 Urgent"

    def test_manual_form_requires_fields(self, client, store):
        resp = client.post("/reports", json={"type": "medical"})
        assert resp.status_code == 422
        assert "champs obligatoires" in resp.json()["detail"]
        assert store.list_all() == []

    def test_unknown_report_404(self, client):
        assert client.get("/reports/unknown").status_code == 404


# ── TESTS: MISC ───────────────────────────────────────────────────────────────

class TestMiscEndpoints:
    def test_confirmation(self, client):
        data = client.get("/confirmation").json()
        assert data["reference"].startswith("ORN-")
        assert len(data["reference"]) == 12
        assert data["auto_return"]["view"] == "home"
        assert data["auto_return"]["delay"] == 5.0
        assert [a["view"] for a in data["actions"]] == ["home", "history"]

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert "version" in data

    def test_config_roundtrip(self, client, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert client.get("/config").json()["config"]["port"] == 8770
        resp = client.post("/config", json={"port": 9001})
        assert resp.json()["config"]["port"] == 9001
        assert (tmp_path / "orion_config.json").exists()
        assert client.get("/config").json()["config"]["port"] == 9001

    def test_config_update_applies_to_running_app(self, client, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        resp = client.post("/config", json={"confirmation_timeout_s": 3, "port": 9001})
        assert resp.json()["restart_required"] == ["port"]
        assert client.get("/confirmation").json()["auto_return"]["delay"] == 3.0

    def test_health_counts_live_sessions(self, client):
        _chat(client, SCENARIO)
        client.post("/chat/sessions")
        assert client.get("/health").json()["live_sessions"] == 1
