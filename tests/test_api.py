"""HTTP tests for the ai-coach and messages routers."""

import tempfile
from pathlib import Path

from fastapi.testclient import TestClient

from tonemeter.auth.models import Role, User
from tonemeter.auth.store import UserStore
from tonemeter.llm.client import LLMResponse
from tonemeter.messages.intake import MessageIntake
from tonemeter.messages.store import MessageStore
from tonemeter.moderation.gateway import ClassifierGateway
from tonemeter.moderation.log_store import ModerationLogStore
from tonemeter.moderation.service import ModerationService
from tonemeter.security.audit_log import AuditLogger
from web.backend.app import dependencies
from web.backend.app.main import app


class FakeBackend:
    configured = True

    def __init__(self, reply):
        self.reply = reply

    def complete(self, prompt, system_prompt=None, **kwargs):
        return LLMResponse(content=self.reply)


def _client(tmpdir, backend=None, daily_quota=20):
    base = Path(tmpdir)
    users = UserStore(base / "auth")
    messages = MessageStore(base / "messages")
    service = ModerationService(
        log_store=ModerationLogStore(base / "moderation"),
        gateway=ClassifierGateway(backend),
        daily_quota=daily_quota,
    )
    intake = MessageIntake(service, messages, users, AuditLogger(base / "audit"))

    app.dependency_overrides = {
        dependencies.get_user_store: lambda: users,
        dependencies.get_message_store: lambda: messages,
        dependencies.get_moderation_service: lambda: service,
        dependencies.get_message_intake: lambda: intake,
    }

    tokens = {}
    for user_id, role in (("mom", Role.parent), ("dad", Role.parent), ("kid", Role.child), ("lawyer", Role.professional)):
        users.create_user(User(id=user_id, email=f"{user_id}@example.com"))
        users.add_member("fam", user_id, role)
        tokens[user_id] = {"Authorization": f"Bearer {users.create_session(user_id).token}"}
    return TestClient(app), tokens, service


def test_requires_authentication():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, _, _ = _client(tmpdir)
        resp = client.post("/api/ai-coach/analyze", json={"content": "hola"})
        assert resp.status_code == 401
        resp = client.post(
            "/api/ai-coach/analyze",
            json={"content": "hola"},
            headers={"Authorization": "Bearer nope"},
        )
        assert resp.status_code == 401


def test_analyze_returns_camel_case_verdict():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, tokens, _ = _client(tmpdir)
        resp = client.post(
            "/api/ai-coach/analyze",
            json={"content": "IDIOTA!!!! nunca haces nada bien!!!!"},
            headers=tokens["mom"],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        analysis = body["analysis"]
        assert set(analysis) == {"hasIssues", "isIntoxicationSuspected", "issues", "suggestion", "toneScore"}
        assert analysis["hasIssues"] is True
        assert analysis["toneScore"] == 30


def test_analyze_uses_classifier_reply():
    backend = FakeBackend(
        'Sure, here is the result: {"hasIssues": false, "issues": [], '
        '"suggestion": "", "isDrunk": false, "toneScore": 95}'
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        client, tokens, _ = _client(tmpdir, backend=backend)
        resp = client.post("/api/ai-coach/analyze", json={"content": "hola"}, headers=tokens["mom"])
        assert resp.json()["analysis"]["toneScore"] == 95


def test_analyze_rejects_empty_content():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, tokens, _ = _client(tmpdir)
        resp = client.post("/api/ai-coach/analyze", json={"content": "  "}, headers=tokens["mom"])
        assert resp.status_code == 400


def test_analyze_quota_returns_429():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, tokens, _ = _client(tmpdir, daily_quota=2)
        for _ in range(2):
            resp = client.post("/api/ai-coach/analyze", json={"content": "hola"}, headers=tokens["mom"])
            assert resp.status_code == 200
        resp = client.post("/api/ai-coach/analyze", json={"content": "hola"}, headers=tokens["mom"])
        assert resp.status_code == 429

        quota = client.get("/api/ai-coach/quota", headers=tokens["mom"]).json()
        assert quota == {"used": 2, "limit": 2, "remaining": 0}


def test_rejected_message_returns_feedback_and_stores_nothing():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, tokens, _ = _client(tmpdir)
        resp = client.post(
            "/api/families/fam/messages/daily",
            json={"content": "sos un inútil, siempre lo mismo"},
            headers=tokens["mom"],
        )
        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail["analysis"]["hasIssues"] is True
        assert detail["analysis"]["suggestion"]

        listing = client.get("/api/families/fam/messages/daily", headers=tokens["dad"]).json()
        assert listing["messages"] == []


def test_send_list_and_read_flow():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, tokens, service = _client(tmpdir)
        client.post(
            "/api/ai-coach/analyze",
            json={"content": "¿Podés confirmarme el horario de retiro del viernes?"},
            headers=tokens["mom"],
        )
        resp = client.post(
            "/api/families/fam/messages/school",
            json={"content": "¿Podés confirmarme el horario de retiro del viernes?"},
            headers=tokens["mom"],
        )
        assert resp.status_code == 201
        message = resp.json()["message"]
        assert message["senderId"] == "mom"
        assert service.log_store.list_entries("mom")[0].message_id == message["id"]

        listing = client.get("/api/families/fam/messages/school", headers=tokens["dad"]).json()
        assert [m["id"] for m in listing["messages"]] == [message["id"]]
        assert listing["messages"][0]["isRead"] is False

        resp = client.post(f"/api/messages/{message['id']}/read", headers=tokens["dad"])
        assert resp.status_code == 200
        assert resp.json()["readAt"] is not None
        again = client.post(f"/api/messages/{message['id']}/read", headers=tokens["dad"]).json()
        assert again["message"] == "Already marked as read"

        own = client.post(f"/api/messages/{message['id']}/read", headers=tokens["mom"])
        assert own.status_code == 400


def test_child_only_sees_shared_messages():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, tokens, _ = _client(tmpdir)
        client.post("/api/families/fam/messages/daily", json={"content": "Hola"}, headers=tokens["mom"])
        shared = client.post(
            "/api/families/fam/messages/daily",
            json={"content": "Mañana vamos al parque", "shareWithChild": True},
            headers=tokens["mom"],
        ).json()["message"]

        listing = client.get("/api/families/fam/messages/daily", headers=tokens["kid"]).json()
        assert [m["id"] for m in listing["messages"]] == [shared["id"]]


def test_professional_cannot_send_and_invalid_channel():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, tokens, _ = _client(tmpdir)
        resp = client.post("/api/families/fam/messages/daily", json={"content": "Hola"}, headers=tokens["lawyer"])
        assert resp.status_code == 403
        resp = client.post("/api/families/fam/messages/otro", json={"content": "Hola"}, headers=tokens["mom"])
        assert resp.status_code == 400
        resp = client.get("/api/families/other/messages/daily", headers=tokens["mom"])
        assert resp.status_code == 404
