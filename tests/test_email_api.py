import uuid
from dataclasses import replace

from app.api.deps import get_email_client
from app.main import app
from app.models.email_log import EmailLog

BASE = "/api/v1"


def _log(db, user_id, email_type="welcome", status="sent"):
    db.add(EmailLog(id=str(uuid.uuid4()), recipient_email="a@example.com", user_id=user_id,
                    email_type=email_type, subject="s", status=status))
    db.commit()


def test_preferences_round_trip(client, users):
    h = users.client_headers
    r = client.get(f"{BASE}/users/me/email-preferences", headers=h)
    assert r.status_code == 200
    assert r.json()["newsletter"] is True

    r = client.put(f"{BASE}/users/me/email-preferences", json={"newsletter": False, "digest_frequency": "weekly"}, headers=h)
    assert r.status_code == 200
    assert r.json()["newsletter"] is False
    assert r.json()["digest_frequency"] == "weekly"
    assert r.json()["project_updates"] is True

    r = client.put(f"{BASE}/users/me/email-preferences", json={"digest_frequency": "hourly"}, headers=h)
    assert r.status_code == 400


def test_history_only_shows_own_emails(client, users, db_session):
    _log(db_session, users.client.id)
    _log(db_session, users.other.id)
    items = client.get(f"{BASE}/users/me/emails", headers=users.client_headers).json()["items"]
    assert len(items) == 1
    assert items[0]["email_type"] == "welcome"


def test_admin_stats(client, users, db_session):
    _log(db_session, users.client.id, "welcome", "sent")
    _log(db_session, users.client.id, "welcome", "failed")
    _log(db_session, users.client.id, "contact_reply", "sent")

    assert client.get(f"{BASE}/admin/emails/stats", headers=users.client_headers).status_code == 403
    items = client.get(f"{BASE}/admin/emails/stats", headers=users.admin_headers).json()["items"]
    assert items[0] == {"email_type": "welcome", "total": 2, "sent": 1, "failed": 1,
                        "delivered": 0, "opened": 0, "bounced": 0}


def test_status_reports_unconfigured_provider(client, users):
    body = client.get(f"{BASE}/admin/emails/status", headers=users.admin_headers).json()
    assert body["configured"] is False
    assert body["provider"] == "smtp"
    assert body["sent_last_hour"] == 0


def test_test_send_without_provider_is_503(client, users):
    r = client.post(f"{BASE}/admin/emails/test", json={"to": "qa@example.com"}, headers=users.admin_headers)
    assert r.status_code == 503


def test_test_send_uses_injected_client(client, users, email_client, fake_transport):
    app.dependency_overrides[get_email_client] = lambda: email_client
    try:
        r = client.post(f"{BASE}/admin/emails/test", json={"to": "qa@example.com", "message": "1 < 2"},
                        headers=users.admin_headers)
    finally:
        app.dependency_overrides.pop(get_email_client, None)
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert fake_transport.sent[0].html == "<p>1 &lt; 2</p>"


def test_test_send_provider_failure_is_502(client, users, email_client):
    from conftest import FakeTransport

    failing = replace(email_client, transport=FakeTransport(fail_with="auth failed"))
    app.dependency_overrides[get_email_client] = lambda: failing
    try:
        r = client.post(f"{BASE}/admin/emails/test", json={"to": "qa@example.com"}, headers=users.admin_headers)
    finally:
        app.dependency_overrides.pop(get_email_client, None)
    assert r.status_code == 502
    assert r.json() == {"error": "auth failed"}


def test_history_limit_is_clamped(client, users, db_session):
    _log(db_session, users.client.id)
    _log(db_session, users.client.id, email_type="reservation_created")
    h = users.client_headers
    assert len(client.get(f"{BASE}/users/me/emails?limit=-1", headers=h).json()["items"]) == 1
    assert len(client.get(f"{BASE}/users/me/emails?limit=0", headers=h).json()["items"]) == 1
    assert len(client.get(f"{BASE}/users/me/emails?limit=500", headers=h).json()["items"]) == 2
