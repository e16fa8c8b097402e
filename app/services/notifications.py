"""Email notifications triggered by reservations and contact replies.

Helpers render the message in the request, then hand it to the Celery queue:
the HTTP response never waits on delivery, and a failed send is only visible
through its email_logs row and the task state.
"""
import logging

from kombu.exceptions import OperationalError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.contact_message import ContactMessage, ContactMessageReply
from app.models.reservation import Reservation
from app.models.user import User
from app.services.email.preferences import should_send
from app.services.email.templates import render_email

logger = logging.getLogger(__name__)


def enqueue_email(**payload) -> str | None:
    """Submit one email to the worker queue; returns the task id."""
    from app.tasks.jobs import send_email as send_email_task

    try:
        return send_email_task.delay(**payload).id
    except OperationalError:
        logger.exception("could not enqueue %s email to %s", payload.get("email_type"), payload.get("to_email"))
        return None


def after_commit(notify, db: Session, *args) -> str | None:
    """Run a notify_* helper once the row is committed; a failure is logged, never raised."""
    try:
        return notify(db, *args)
    except Exception:
        db.rollback()
        logger.exception("%s failed after commit", getattr(notify, "__name__", "notification"))
        return None


def _reservation_variables(reservation: Reservation, user: User) -> dict:
    return {
        "firstname": user.firstname or user.email,
        "lastname": user.lastname,
        "reservation_date": reservation.reservation_date.isoformat(),
        "reservation_time": reservation.reservation_time.strftime("%H:%M"),
        "meeting_type": reservation.meeting_type,
        "project_type": reservation.project_type or "",
    }


def notify_reservation(db: Session, reservation: Reservation, email_type: str) -> str | None:
    """email_type: reservation_created | reservation_confirmed | reservation_cancelled"""
    user = db.get(User, reservation.user_id)
    if not user:
        logger.warning("reservation %s has no user; %s email skipped", reservation.id, email_type)
        return None
    if not should_send(db, user.id, email_type):
        logger.info("%s email to %s skipped by preferences", email_type, user.email)
        return None

    variables = _reservation_variables(reservation, user)
    rendered = render_email(db, email_type, variables)
    return enqueue_email(
        to_email=user.email,
        to_name=user.full_name or None,
        subject=rendered.subject,
        html=rendered.html,
        text=rendered.text,
        email_type=email_type,
        user_id=user.id,
        context={"reservation_id": reservation.id, "status": reservation.status},
        variables=variables,
    )


def notify_contact_reply(db: Session, message: ContactMessage, reply: ContactMessageReply, admin: User) -> str | None:
    # A reply answers a direct request: transactional, not preference-gated.
    variables = {
        "name": message.name,
        "subject": message.subject or "your message",
        "reply_text": reply.reply_text,
        "admin_name": admin.full_name or settings.EMAIL_FROM_NAME,
        "original_message": message.message,
    }
    rendered = render_email(db, "contact_reply", variables)
    return enqueue_email(
        to_email=message.email,
        to_name=message.name,
        subject=rendered.subject,
        html=rendered.html,
        text=rendered.text,
        email_type="contact_reply",
        context={"message_id": message.id, "reply_id": reply.id},
        variables=variables,
        reply_to=admin.email or None,
    )


def notify_welcome(db: Session, user: User) -> str | None:
    if not should_send(db, user.id, "welcome"):
        logger.info("welcome email to %s skipped by preferences", user.email)
        return None
    variables = {"firstname": user.firstname or user.email, "app_name": settings.APP_NAME}
    rendered = render_email(db, "welcome", variables)
    return enqueue_email(
        to_email=user.email,
        to_name=user.full_name or None,
        subject=rendered.subject,
        html=rendered.html,
        text=rendered.text,
        email_type="welcome",
        user_id=user.id,
        variables=variables,
    )
