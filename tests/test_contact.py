from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import NotFoundError, ValidationError
from app.models.audit_log import AdminActivityLog
from app.models.contact_message import ContactMessage, ContactMessageReply
from app.models.user_notification import UserNotification
from app.services import contact_service

BASE = "/api/v1"


def _message(db, name="Jane", email="jane@example.com", priority="normal", **kw):
    return contact_service.create_message(db, name=name, email=email, message="Need a website", priority=priority, **kw)


def test_public_form_creates_new_message(client, db_session):
    r = client.post(f"{BASE}/contact", json={
        "name": "Jane", "email": "Jane@Example.com", "subject": "Quote", "message": "Need a website",
    })
    assert r.status_code == 201
    m = db_session.get(ContactMessage, r.json()["id"])
    assert (m.status, m.priority, m.email) == ("new", "normal", "jane@example.com")


def test_form_requires_message_text(client):
    r = client.post(f"{BASE}/contact", json={"name": "Jane", "email": "jane@example.com", "message": "   "})
    assert r.status_code == 400


def test_listing_orders_by_priority_then_newest(db_session):
    low = _message(db_session, name="Low", priority="low")
    urgent = _message(db_session, name="Urgent", priority="urgent")
    normal = _message(db_session, name="Normal")
    items, total = contact_service.list_messages(db_session)
    assert total == 3
    assert [m.id for m in items] == [urgent.id, normal.id, low.id]


def test_listing_filters_and_search(db_session):
    _message(db_session, name="Alpha", email="alpha@example.com")
    _message(db_session, name="Beta", email="beta@example.com", priority="high")
    items, total = contact_service.list_messages(db_session, search="beta")
    assert total == 1 and items[0].name == "Beta"
    items, total = contact_service.list_messages(db_session, priority="high", limit=1, offset=0)
    assert total == 1


def test_update_stamps_read_at_and_rejects_empty(db_session, users):
    m = _message(db_session)
    with pytest.raises(ValidationError):
        contact_service.update_message(db_session, m.id, users.admin.id)
    m = contact_service.update_message(db_session, m.id, users.admin.id, status="read")
    assert m.read_at is not None
    with pytest.raises(ValidationError):
        contact_service.update_message(db_session, m.id, users.admin.id, priority="critical")


def test_reply_flow_creates_reply_notification_and_activity(db_session, users):
    m = _message(db_session, email=users.client.email)
    m, reply = contact_service.reply_to_message(db_session, m.id, users.admin, "  Thanks, we will call you.  ")

    assert m.status == "replied"
    assert m.replied_by == users.admin.id
    assert m.replied_at is not None and m.read_at is not None
    assert reply.reply_text == "Thanks, we will call you."
    assert db_session.query(UserNotification).filter_by(user_id=users.client.id).count() == 1
    assert db_session.query(AdminActivityLog).filter_by(action="reply", entity_id=m.id).count() == 1


def test_reply_to_guest_creates_no_notification(db_session, users):
    m = _message(db_session, email="guest@example.com")
    contact_service.reply_to_message(db_session, m.id, users.admin, "Hello")
    assert db_session.query(UserNotification).count() == 0


def test_empty_reply_rejected(db_session, users):
    m = _message(db_session)
    with pytest.raises(ValidationError):
        contact_service.reply_to_message(db_session, m.id, users.admin, "   ")


def test_archive_then_permanent_delete(db_session, users):
    m = _message(db_session)
    contact_service.reply_to_message(db_session, m.id, users.admin, "Hi")
    contact_service.archive_message(db_session, m.id, users.admin.id)
    assert db_session.get(ContactMessage, m.id).status == "archived"

    contact_service.delete_message(db_session, m.id, users.admin.id, permanent=True)
    with pytest.raises(NotFoundError):
        contact_service.get_message(db_session, m.id)
    assert db_session.query(ContactMessageReply).count() == 0


def test_stats_exclude_archived(db_session, users):
    now = datetime.now(timezone.utc)
    _message(db_session, priority="urgent")
    read = _message(db_session)
    contact_service.update_message(db_session, read.id, users.admin.id, status="read")
    old = _message(db_session)
    old.created_at = now - timedelta(days=20)
    db_session.commit()
    archived = _message(db_session)
    contact_service.archive_message(db_session, archived.id, users.admin.id)

    stats = contact_service.get_stats(db_session, now=now)
    assert stats == {
        "total": 3, "new_messages": 2, "read": 1, "replied": 0,
        "urgent": 1, "this_week": 2, "this_month": 3,
    }


def test_admin_endpoints(client, users, db_session, outbox):
    m = _message(db_session, subject="Quote")
    h = users.admin_headers

    assert client.get(f"{BASE}/admin/contact", headers=users.client_headers).status_code == 403

    listing = client.get(f"{BASE}/admin/contact", headers=h).json()
    assert listing["total"] == 1
    assert listing["items"][0]["reply_count"] == 0

    stats = client.get(f"{BASE}/admin/contact/stats/overview", headers=h)
    assert stats.status_code == 200
    assert stats.json()["new_messages"] == 1

    r = client.put(f"{BASE}/admin/contact/{m.id}", json={"priority": "high", "assigned_to": users.admin.id}, headers=h)
    assert r.status_code == 200
    assert r.json()["message"]["assigned_to"] == users.admin.id

    r = client.post(f"{BASE}/admin/contact/{m.id}/reply", json={"reply_text": "We can help."}, headers=h)
    assert r.status_code == 200
    assert r.json()["message"]["status"] == "replied"
    sent = outbox[-1]
    assert sent["email_type"] == "contact_reply"
    assert sent["to_email"] == "jane@example.com"
    assert sent["reply_to"] == users.admin.email
    assert sent["subject"] == "Re: Quote"

    detail = client.get(f"{BASE}/admin/contact/{m.id}", headers=h).json()
    assert len(detail["replies"]) == 1

    r = client.delete(f"{BASE}/admin/contact/{m.id}", headers=h)
    assert r.json() == {"ok": True, "permanent": False}
    r = client.delete(f"{BASE}/admin/contact/{m.id}?permanent=true", headers=h)
    assert r.json()["permanent"] is True
    assert client.get(f"{BASE}/admin/contact/{m.id}", headers=h).status_code == 404


def test_reply_succeeds_when_email_fails(client, users, db_session, monkeypatch):
    from app.api.v1.routes import admin as routes

    def broken(*args, **kwargs):
        raise RuntimeError("template store down")

    monkeypatch.setattr(routes, "notify_contact_reply", broken)
    m = _message(db_session)
    r = client.post(f"{BASE}/admin/contact/{m.id}/reply", json={"reply_text": "Hi"}, headers=users.admin_headers)
    assert r.status_code == 200
    db_session.expire_all()
    assert db_session.get(ContactMessage, m.id).status == "replied"
    assert db_session.query(ContactMessageReply).filter_by(message_id=m.id).count() == 1
