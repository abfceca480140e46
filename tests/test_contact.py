import json

import httpx
import pytest

from app.core.config import settings
from app.main import app
from app.services.contact import get_http_client

MESSAGE = {"name": "Aru", "email": "aru@example.com", "message": "Do you run weekend groups?"}


@pytest.fixture()
def relay(client, monkeypatch):
    """Route outgoing form posts to a handler the test controls."""
    monkeypatch.setattr(settings, "formspree_form_id", "xyzabc")
    sent: list[httpx.Request] = []
    state = {"status": 200, "fail": False}

    def handler(request: httpx.Request) -> httpx.Response:
        if state["fail"]:
            raise httpx.ConnectError("connection refused", request=request)
        sent.append(request)
        return httpx.Response(state["status"], json={"ok": state["status"] < 400})

    def override():
        with httpx.Client(transport=httpx.MockTransport(handler)) as c:
            yield c

    app.dependency_overrides[get_http_client] = override
    yield sent, state
    app.dependency_overrides.pop(get_http_client, None)


def test_message_is_relayed(client, relay):
    sent, _ = relay
    r = client.post("/contact", json=MESSAGE)
    assert r.status_code == 200, r.text
    assert r.json() == {"ok": True}

    assert len(sent) == 1
    assert str(sent[0].url) == "https://formspree.io/f/xyzabc"
    assert json.loads(sent[0].content) == MESSAGE


def test_upstream_error_is_502(client, relay):
    _, state = relay
    state["status"] = 422
    r = client.post("/contact", json=MESSAGE)
    assert r.status_code == 502
    assert r.json()["detail"] == "Failed to send message"


def test_network_failure_is_502(client, relay):
    _, state = relay
    state["fail"] = True
    r = client.post("/contact", json=MESSAGE)
    assert r.status_code == 502


def test_unconfigured_relay_is_500(client, monkeypatch):
    monkeypatch.setattr(settings, "formspree_form_id", None)
    r = client.post("/contact", json=MESSAGE)
    assert r.status_code == 500
    assert r.json()["detail"] == "Contact form is not configured"


def test_invalid_email_is_400(client, relay):
    r = client.post("/contact", json={**MESSAGE, "email": "not-an-email"})
    assert r.status_code == 400
