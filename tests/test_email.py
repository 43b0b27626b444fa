"""Brevo delivery through requests, with the HTTP call stubbed out."""

import requests

from filemarket.config import settings
from filemarket.models.user import User
from filemarket.services import email_service


class _Response:
    def __init__(self, status_code=201, text=""):
        self.status_code = status_code
        self.text = text


def _user():
    return User(id=7, name="Ada", email="ada@example.com", password="x")


def test_skips_without_api_key(monkeypatch):
    monkeypatch.setattr(settings, "brevo_api_key", None)

    def fail(*args, **kwargs):
        raise AssertionError("no HTTP call expected")

    monkeypatch.setattr(email_service.requests, "post", fail)

    assert email_service.send_password_reset(_user(), "tok") is False


def test_reset_email_payload(monkeypatch):
    sent = {}

    def fake_post(url, json, headers, timeout):
        sent.update(url=url, json=json, headers=headers)
        return _Response()

    monkeypatch.setattr(settings, "brevo_api_key", "brevo-key")
    monkeypatch.setattr(email_service.requests, "post", fake_post)

    assert email_service.send_password_reset(_user(), "tok-123") is True
    assert sent["url"] == email_service.BREVO_API_URL
    assert sent["headers"]["api-key"] == "brevo-key"
    assert sent["json"]["to"] == [{"email": "ada@example.com"}]
    assert f"{settings.frontend_url}/reset-password?token=tok-123" in sent["json"]["htmlContent"]
    assert "Ada" in sent["json"]["htmlContent"]


def test_delivery_errors_are_reported_not_raised(monkeypatch):
    def broken_post(*args, **kwargs):
        raise requests.ConnectionError("brevo down")

    monkeypatch.setattr(settings, "brevo_api_key", "brevo-key")
    monkeypatch.setattr(email_service.requests, "post", broken_post)

    assert email_service.send_verification(_user(), "tok") is False


def test_rejected_by_brevo(monkeypatch):
    monkeypatch.setattr(settings, "brevo_api_key", "brevo-key")
    monkeypatch.setattr(
        email_service.requests, "post", lambda *a, **kw: _Response(400, "bad sender"),
    )

    assert email_service.send_payment_result(_user(), "Deck", "completed", 9.99) is False


def test_registration_sends_verification(client, monkeypatch):
    calls = []
    monkeypatch.setattr(
        "filemarket.routes.auth.send_verification",
        lambda user, token: calls.append((user.email, token)),
    )

    client.post("/auth/register", json={
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "password": "Engine!1843",
        "confirm_password": "Engine!1843",
    })

    assert len(calls) == 1
    assert calls[0][0] == "ada@example.com"
    assert calls[0][1]
