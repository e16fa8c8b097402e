import logging

from sqlalchemy.orm import Session

from app.core.errors import NotConfiguredError, TransportError, EmailRateLimitedError
from app.db.session import SessionLocal
from app.services.email.client import EmailClient
from app.services.email.dispatch import send_email
from app.services.email.rate_limit import within_limit

logger = logging.getLogger(__name__)


def deliver_email(payload: dict, client: EmailClient | None = None, db: Session | None = None) -> dict:
    """One delivery attempt for a queued email.

    Raises TransportError / EmailRateLimitedError so the task can retry later;
    an unconfigured provider is not retried.
    """
    if client is None:
        from app.tasks import celery_app
        client = celery_app.email_client

    own_session = db is None
    if own_session:
        db = SessionLocal()
    try:
        if not within_limit(db, client.rate_limit):
            raise EmailRateLimitedError(f"more than {client.rate_limit} emails in the last hour")
        try:
            result = send_email(db, client, **payload)
        except NotConfiguredError as e:
            logger.error("email %s to %s not sent: %s", payload.get("email_type"), payload.get("to_email"), e)
            return {"skipped": True, "reason": "not_configured"}
        if not result.success:
            raise TransportError(result.error or "send failed")
        return result.as_dict()
    finally:
        if own_session:
            db.close()
