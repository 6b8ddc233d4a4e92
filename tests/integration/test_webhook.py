import pytest
from fastapi.testclient import TestClient

from rentbot import main
from rentbot.api.telegram import UNSUPPORTED_MESSAGE, parse_update
from rentbot.core.errors import DeliveryError
from rentbot.memory.models import ConversationTurn, Role


client = TestClient(main.app, raise_server_exceptions=False)


def text_update(text, chat_id=42):
    return {"update_id": 1, "message": {"message_id": 7, "chat": {"id": chat_id}, "text": text}}


@pytest.fixture()
def handled(monkeypatch):
    calls = []

    async def fake_handle_turn(conversation_id, text):
        calls.append((conversation_id, text))

    monkeypatch.setattr(main.orchestrator, "handle_turn", fake_handle_turn)
    return calls


@pytest.fixture()
def sent(monkeypatch):
    messages = []

    async def fake_send_text(conversation_id, text, parse_mode=None):
        messages.append((conversation_id, text))

    monkeypatch.setattr(main.channel, "send_text", fake_send_text)
    return messages


def test_text_message_is_queued(handled):
    response = client.post("/telegram/webhook", json=text_update("  I need a loader  "))

    assert response.status_code == 200
    assert response.json() == {"ok": True, "queued": True}
    assert handled == [("42", "I need a loader")]


def test_commands_are_ignored(handled):
    response = client.post("/telegram/webhook", json=text_update("/start"))

    assert response.json() == {"ok": True, "queued": False}
    assert handled == []


def test_update_without_message_is_acknowledged(handled):
    response = client.post("/telegram/webhook", json={"update_id": 2, "edited_message": {}})

    assert response.status_code == 200
    assert response.json()["queued"] is False
    assert handled == []


def test_voice_note_gets_text_only_notice(handled, sent):
    update = {"update_id": 3, "message": {"chat": {"id": 42}, "voice": {"file_id": "abc"}}}

    response = client.post("/telegram/webhook", json=update)

    assert response.json() == {"ok": True, "queued": False}
    assert sent == [("42", UNSUPPORTED_MESSAGE)]
    assert handled == []


@pytest.mark.parametrize(
    "update, expected",
    [
        (text_update("hola"), ("42", "hola")),
        (text_update("   "), None),
        ({"message": {"text": "no chat"}}, None),
        ({"message": {"chat": {"id": -100}, "photo": []}}, ("-100", None)),
    ],
)
def test_parse_update(update, expected):
    assert parse_update(update) == expected


def test_health_endpoint():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_reports_components():
    payload = client.get("/ready").json()

    assert payload["status"] in {"ok", "degraded", "fail"}
    assert set(payload["components"]) == {"catalog", "reasoning", "delivery", "calendar"}


def test_metrics_endpoint_shape():
    payload = client.get("/metrics").json()

    assert set(payload) == {"total_turns", "actions", "step_outcomes", "unexpected_errors"}


def test_unknown_conversation_returns_404():
    response = client.get("/conversations/never-seen")

    assert response.status_code == 404


def test_conversation_history_is_exposed():
    main.conversation_store.append("chat-http", ConversationTurn(Role.USER, "hi"))
    main.conversation_store.append("chat-http", ConversationTurn(Role.ASSISTANT, "Hello!"))

    assert "chat-http" in client.get("/conversations").json()
    payload = client.get("/conversations/chat-http").json()
    assert payload["turns"] == [{"role": "user", "text": "hi"}, {"role": "assistant", "text": "Hello!"}]


def test_set_webhook_uses_route_url(monkeypatch):
    async def fake_set_webhook(url):
        return {"url": url, "result": True}

    monkeypatch.setattr(main.channel, "set_webhook", fake_set_webhook)

    payload = client.get("/telegram/set-webhook").json()

    assert payload == {"url": "http://testserver/telegram/webhook", "result": True}


def test_set_webhook_failure_is_bad_gateway(monkeypatch):
    async def failing_set_webhook(url):
        raise DeliveryError("Telegram setWebhook rejected: bad url")

    monkeypatch.setattr(main.channel, "set_webhook", failing_set_webhook)

    response = client.get("/telegram/set-webhook")

    assert response.status_code == 502
    assert "bad url" in response.json()["detail"]


def test_request_id_is_echoed():
    response = client.get("/health", headers={"x-request-id": "rid-123"})

    assert response.headers["X-Request-ID"] == "rid-123"
