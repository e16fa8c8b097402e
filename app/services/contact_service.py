import logging
import uuid
from datetime import datetime, timedelta, timezone
from sqlalchemy import func, case, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.errors import ValidationError, NotFoundError
from app.models.contact_message import ContactMessage, ContactMessageReply, MESSAGE_STATUSES, MESSAGE_PRIORITIES
from app.models.user import User
from app.models.user_notification import UserNotification
from app.services.audit_service import log_admin_activity

logger = logging.getLogger(__name__)

_PRIORITY_RANK = case(
    (ContactMessage.priority == "urgent", 1),
    (ContactMessage.priority == "high", 2),
    (ContactMessage.priority == "normal", 3),
    (ContactMessage.priority == "low", 4),
    else_=5,
)


def create_message(db: Session, name: str, email: str, message: str, subject: str = "", phone: str = "", priority: str = "normal") -> ContactMessage:
    if not (name or "").strip() or not (email or "").strip() or not (message or "").strip():
        raise ValidationError("name, email and message are required")
    if priority not in MESSAGE_PRIORITIES:
        raise ValidationError("invalid priority")
    m = ContactMessage(
        id=str(uuid.uuid4()),
        name=name.strip(),
        email=email.strip().lower(),
        phone=phone or "",
        subject=subject or "",
        message=message.strip(),
        status="new",
        priority=priority,
    )
    db.add(m)
    db.commit()
    db.refresh(m)
    return m


def _filtered(db: Session, status: str | None, priority: str | None, search: str | None):
    q = db.query(ContactMessage)
    if status:
        q = q.filter(ContactMessage.status == status)
    if priority:
        q = q.filter(ContactMessage.priority == priority)
    if search:
        like = f"%{search.lower()}%"
        q = q.filter(or_(
            func.lower(ContactMessage.name).like(like),
            func.lower(ContactMessage.email).like(like),
            func.lower(ContactMessage.subject).like(like),
            func.lower(ContactMessage.message).like(like),
        ))
    return q


def list_messages(db: Session, status: str | None = None, priority: str | None = None, search: str | None = None,
                  limit: int = 50, offset: int = 0) -> tuple[list[ContactMessage], int]:
    q = _filtered(db, status, priority, search)
    total = q.count()
    items = (
        q.order_by(_PRIORITY_RANK, ContactMessage.created_at.desc())
        .limit(min(max(limit, 1), 200))
        .offset(max(offset, 0))
        .all()
    )
    return items, total


def reply_counts(db: Session, message_ids: list[str]) -> dict[str, int]:
    if not message_ids:
        return {}
    rows = (
        db.query(ContactMessageReply.message_id, func.count(ContactMessageReply.id))
        .filter(ContactMessageReply.message_id.in_(message_ids))
        .group_by(ContactMessageReply.message_id)
        .all()
    )
    return {mid: int(n) for mid, n in rows}


def get_message(db: Session, message_id: str) -> ContactMessage:
    m = db.get(ContactMessage, message_id)
    if not m:
        raise NotFoundError("message not found")
    return m


def get_replies(db: Session, message_id: str) -> list[ContactMessageReply]:
    return (
        db.query(ContactMessageReply)
        .filter(ContactMessageReply.message_id == message_id)
        .order_by(ContactMessageReply.created_at.asc())
        .all()
    )


def get_message_with_replies(db: Session, message_id: str) -> tuple[ContactMessage, list[ContactMessageReply]]:
    m = get_message(db, message_id)
    return m, get_replies(db, m.id)


def update_message(db: Session, message_id: str, admin_id: str, status: str | None = None,
                   priority: str | None = None, assigned_to: str | None = None, assign: bool = False) -> ContactMessage:
    if status is None and priority is None and not assign:
        raise ValidationError("no update provided")
    if status is not None and status not in MESSAGE_STATUSES:
        raise ValidationError("invalid status")
    if priority is not None and priority not in MESSAGE_PRIORITIES:
        raise ValidationError("invalid priority")

    m = get_message(db, message_id)
    if status is not None:
        m.status = status
        if status in ("read", "replied"):
            m.read_at = datetime.now(timezone.utc)
    if priority is not None:
        m.priority = priority
    if assign:
        m.assigned_to = assigned_to or None
    db.commit()
    db.refresh(m)
    log_admin_activity(db, admin_id, "update", "contact_message", m.id, f"status: {status or 'n/a'}")
    return m


def reply_to_message(db: Session, message_id: str, admin: User, reply_text: str) -> tuple[ContactMessage, ContactMessageReply]:
    """Store the reply and mark the message replied. The caller sends the email."""
    if not reply_text or not reply_text.strip():
        raise ValidationError("reply cannot be empty")
    m = get_message(db, message_id)

    reply = ContactMessageReply(
        id=str(uuid.uuid4()),
        message_id=m.id,
        admin_id=admin.id,
        reply_text=reply_text.strip(),
    )
    db.add(reply)
    now = datetime.now(timezone.utc)
    m.status = "replied"
    m.replied_at = now
    m.replied_by = admin.id
    if not m.read_at:
        m.read_at = now
    db.commit()
    db.refresh(m)
    db.refresh(reply)

    _notify_account_holder(db, m)
    log_admin_activity(db, admin.id, "reply", "contact_message", m.id, f"reply sent to {m.name}")
    return m, reply


def _notify_account_holder(db: Session, m: ContactMessage) -> None:
    try:
        user = db.query(User).filter(User.email == m.email).first()
        if not user:
            return
        db.add(UserNotification(
            id=str(uuid.uuid4()),
            user_id=user.id,
            title="Reply to your message",
            message=f'We replied to your message "{m.subject}". See your client area.',
            type="info",
            related_type="contact_message",
            related_id=m.id,
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("could not create notification for contact message %s: %s", m.id, e)


def delete_message(db: Session, message_id: str, admin_id: str, permanent: bool = False) -> None:
    m = get_message(db, message_id)
    if permanent:
        db.query(ContactMessageReply).filter(ContactMessageReply.message_id == m.id).delete()
        db.delete(m)
    else:
        m.status = "archived"
    db.commit()
    log_admin_activity(db, admin_id, "delete", "contact_message", message_id, "deleted" if permanent else "archived")


def archive_message(db: Session, message_id: str, admin_id: str) -> None:
    delete_message(db, message_id, admin_id, permanent=False)


def get_stats(db: Session, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)

    def _count(cond):
        return func.sum(case((cond, 1), else_=0))

    row = (
        db.query(
            func.count(ContactMessage.id),
            _count(ContactMessage.status == "new"),
            _count(ContactMessage.status == "read"),
            _count(ContactMessage.status == "replied"),
            _count(ContactMessage.priority == "urgent"),
            _count(ContactMessage.created_at > now - timedelta(days=7)),
            _count(ContactMessage.created_at > now - timedelta(days=30)),
        )
        .filter(ContactMessage.status != "archived")
        .one()
    )
    keys = ("total", "new_messages", "read", "replied", "urgent", "this_week", "this_month")
    return {k: int(v or 0) for k, v in zip(keys, row)}
