from __future__ import annotations

import os
import uuid
from types import SimpleNamespace

# Settings are read at import time; configure the test environment first.
os.environ["ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["EMAIL_PROVIDER"] = "smtp"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASS"] = ""
os.environ["EMAIL_PREVIEW_MODE"] = "false"
os.environ["EMAIL_TEST_RECIPIENT"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.errors import TransportError  # noqa: E402
from app.core.security import create_access_token, hash_password  # noqa: E402
from app.db.session import Base, SessionLocal, engine  # noqa: E402
from app.models.user import User  # noqa: E402
from app.models.reservation import Reservation  # noqa: E402,F401
from app.models.email_log import EmailLog  # noqa: E402,F401
from app.models.email_preference import EmailPreference  # noqa: E402,F401
from app.models.email_template import EmailTemplate  # noqa: E402,F401
from app.models.contact_message import ContactMessage, ContactMessageReply  # noqa: E402,F401
from app.models.user_notification import UserNotification  # noqa: E402,F401
from app.models.audit_log import AdminActivityLog  # noqa: E402,F401
from app.models.category import Category, Dish  # noqa: E402,F401
from app.services.email.client import EmailClient  # noqa: E402
from app.services.email.transport import EmailTransport  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_database_state():
    """Ensure each test sees a fresh database schema."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture queued emails instead of talking to the broker."""
    queued: list[dict] = []

    def fake_enqueue(**payload):
        queued.append(payload)
        return f"task-{len(queued)}"

    monkeypatch.setattr("app.services.notifications.enqueue_email", fake_enqueue)
    return queued


class FakeTransport(EmailTransport):
    name = "fake"

    def __init__(self, fail_with: str | None = None):
        self.sent = []
        self.fail_with = fail_with

    def send(self, envelope):
        if self.fail_with:
            raise TransportError(self.fail_with)
        self.sent.append(envelope)
        return f"<msg-{len(self.sent)}@studio.test>"


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def email_client(fake_transport):
    return EmailClient(
        provider="smtp",
        transport=fake_transport,
        from_name="Studio",
        from_address="noreply@studio.test",
        rate_limit=100,
    )


def create_user(db, email: str = "client@example.com", role: str = "client", password: str = "password123",
                firstname: str = "Ada", lastname: str = "Client") -> User:
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        firstname=firstname,
        lastname=lastname,
        role=role,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, role=user.role)}"}


@pytest.fixture
def users(db_session):
    client_user = create_user(db_session)
    other = create_user(db_session, email="other@example.com", firstname="Bob")
    admin = create_user(db_session, email="admin@example.com", role="admin", firstname="Alice", lastname="Admin")
    return SimpleNamespace(
        client=client_user,
        other=other,
        admin=admin,
        client_headers=auth_headers(client_user),
        other_headers=auth_headers(other),
        admin_headers=auth_headers(admin),
    )
