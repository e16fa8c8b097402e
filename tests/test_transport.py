"""Transport selection and the two wire paths (SMTP, Resend HTTP)."""
import smtplib

import pytest
import requests

from app.core.config import Settings
from app.core.errors import TransportError
from app.services.email.client import EmailClient
from app.services.email import transport as transport_mod
from app.services.email.transport import Envelope, ResendTransport, SmtpTransport, build_transport


def _settings(**overrides) -> Settings:
    base = dict(SECRET_KEY="x", DATABASE_URL="sqlite://", SMTP_USER="", SMTP_PASS="")
    base.update(overrides)
    return Settings(**base)


def _envelope(**kw) -> Envelope:
    data = dict(
        from_name="Studio",
        from_address="noreply@studio.test",
        to=["client@example.com"],
        subject="Hello",
        html="<p>Hi</p>",
        text="Hi",
        reply_to="support@studio.test",
    )
    data.update(kw)
    return Envelope(**data)


def test_resend_selected_with_api_key():
    t = build_transport(_settings(EMAIL_PROVIDER="resend", RESEND_API_KEY="re_123"))
    assert isinstance(t, ResendTransport)
    assert t.api_key == "re_123"


def test_resend_without_key_is_not_configured():
    assert build_transport(_settings(EMAIL_PROVIDER="resend")) is None


def test_sendgrid_uses_apikey_login_on_relay():
    t = build_transport(_settings(EMAIL_PROVIDER="sendgrid", SENDGRID_API_KEY="SG.key"))
    assert isinstance(t, SmtpTransport)
    assert (t.host, t.port) == ("smtp.sendgrid.net", 587)
    assert (t.username, t.password) == ("apikey", "SG.key")


def test_mailgun_uses_its_own_credentials():
    t = build_transport(_settings(
        EMAIL_PROVIDER="mailgun", MAILGUN_SMTP_LOGIN="postmaster@mg.test", MAILGUN_SMTP_PASSWORD="pw",
        SMTP_USER="ignored", SMTP_PASS="ignored",
    ))
    assert (t.host, t.username, t.password) == ("smtp.mailgun.org", "postmaster@mg.test", "pw")


def test_unknown_provider_falls_back_to_plain_smtp():
    t = build_transport(_settings(EMAIL_PROVIDER="postmark", SMTP_USER="u", SMTP_PASS="p",
                                  SMTP_HOST="mail.test", SMTP_PORT=2525, SMTP_SECURE=True))
    assert isinstance(t, SmtpTransport)
    assert (t.host, t.port) == ("mail.test", 2525)
    assert t.secure is False


def test_smtp_secure_flag_only_for_smtp_provider():
    t = build_transport(_settings(EMAIL_PROVIDER="smtp", SMTP_USER="u", SMTP_PASS="p", SMTP_PORT=465, SMTP_SECURE=True))
    assert t.secure is True


def test_smtp_without_credentials_is_not_configured():
    assert build_transport(_settings(EMAIL_PROVIDER="smtp")) is None


def test_resend_payload_and_message_id(monkeypatch):
    captured = {}

    class Resp:
        status_code = 200
        text = ""

        def json(self):
            return {"id": "re-msg-1"}

    def fake_post(url, json=None, headers=None, timeout=None):
        captured.update(url=url, json=json, headers=headers)
        return Resp()

    monkeypatch.setattr(transport_mod.requests, "post", fake_post)
    mid = ResendTransport("re_key").send(_envelope(attachments=[("a.txt", b"abc", "text/plain")]))

    assert mid == "re-msg-1"
    assert captured["url"] == transport_mod.RESEND_API_URL
    assert captured["headers"]["Authorization"] == "Bearer re_key"
    body = captured["json"]
    assert body["to"] == ["client@example.com"]
    assert body["from"] == "Studio <noreply@studio.test>"
    assert body["reply_to"] == "support@studio.test"
    assert body["attachments"][0]["content"] == "YWJj"


def test_resend_http_error_raises_transport_error(monkeypatch):
    class Resp:
        status_code = 422
        text = "invalid from"

    monkeypatch.setattr(transport_mod.requests, "post", lambda *a, **k: Resp())
    with pytest.raises(TransportError, match="422"):
        ResendTransport("re_key").send(_envelope())


def test_resend_network_error_raises_transport_error(monkeypatch):
    def boom(*a, **k):
        raise requests.ConnectionError("dns")

    monkeypatch.setattr(transport_mod.requests, "post", boom)
    with pytest.raises(TransportError):
        ResendTransport("re_key").send(_envelope())


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port = host, port
        self.calls = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        self.calls.append("ehlo")

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, msg):
        self.sent.append(msg)


def test_smtp_send_uses_starttls_and_returns_message_id(monkeypatch):
    FakeSMTP.instances.clear()
    monkeypatch.setattr(transport_mod.smtplib, "SMTP", FakeSMTP)

    mid = SmtpTransport("mail.test", 587, "user", "pass").send(_envelope())

    smtp = FakeSMTP.instances[0]
    assert "starttls" in smtp.calls
    assert ("login", "user", "pass") in smtp.calls
    msg = smtp.sent[0]
    assert msg["To"] == "client@example.com"
    assert msg["Reply-To"] == "support@studio.test"
    assert mid == msg["Message-ID"]
    assert mid.endswith("@studio.test>")


def test_smtp_failure_raises_transport_error(monkeypatch):
    class Refusing(FakeSMTP):
        def login(self, user, password):
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    monkeypatch.setattr(transport_mod.smtplib, "SMTP", Refusing)
    with pytest.raises(TransportError, match="mail.test:587"):
        SmtpTransport("mail.test", 587, "user", "wrong").send(_envelope())


def test_client_drops_test_recipient_in_production():
    client = EmailClient.from_settings(_settings(ENV="production", EMAIL_TEST_RECIPIENT="qa@x"))
    assert client.test_recipient is None


def test_client_keeps_test_recipient_outside_production():
    client = EmailClient.from_settings(_settings(ENV="local", EMAIL_TEST_RECIPIENT="qa@x"))
    assert client.test_recipient == "qa@x"
    assert EmailClient.from_settings(_settings(ENV="local")).test_recipient is None
