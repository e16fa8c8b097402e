import json
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import NotConfiguredError, TransportError
from app.models.email_log import EmailLog
from app.services.email.client import EmailClient
from app.services.email.transport import Envelope

logger = logging.getLogger(__name__)

PREVIEW_MESSAGE_ID = "preview"
_TAG_RE = re.compile(r"<[^>]*>")


@dataclass
class SendResult:
    success: bool
    message_id: str | None = None
    log_id: str | None = None
    error: str | None = None

    def as_dict(self) -> dict:
        return {"success": self.success, "message_id": self.message_id, "log_id": self.log_id, "error": self.error}


def html_to_text(html: str) -> str:
    return _TAG_RE.sub("", html or "")


def send_email(
    db: Session,
    client: EmailClient,
    *,
    to_email: str,
    subject: str,
    html: str,
    email_type: str,
    to_name: str | None = None,
    text: str | None = None,
    user_id: str | None = None,
    context: dict | None = None,
    variables: dict | None = None,
    reply_to: str | None = None,
    attachments: list[tuple[str, bytes, str]] | None = None,
) -> SendResult:
    """Send one email and record it in email_logs.

    The log row is written as `pending` before the transport call and moved to
    `sent`/`failed` after it. Log writes are best-effort; the send is not.
    Exactly one transport call per invocation; retries belong to the caller.
    """
    if not client.is_configured:
        raise NotConfiguredError(f"email provider {client.provider!r} is not configured")

    if client.preview_mode:
        logger.info("email preview, not sent: type=%s to=%s subject=%r", email_type, to_email, subject)
        return SendResult(success=True, message_id=PREVIEW_MESSAGE_ID)

    final_to = client.test_recipient or to_email
    envelope = Envelope(
        from_name=client.from_name,
        from_address=client.from_address,
        to=[final_to],
        subject=subject,
        html=html,
        text=text or html_to_text(html),
        reply_to=reply_to or client.reply_to or client.from_address,
        attachments=list(attachments or []),
    )

    log_id = _insert_log(db, client, to_email, to_name, user_id, email_type, subject, context, variables)

    try:
        logger.info("sending %s email to %s", email_type, final_to)
        message_id = client.transport.send(envelope)
    except TransportError as e:
        logger.error("email send failed: type=%s to=%s error=%s", email_type, final_to, e)
        _update_log(db, log_id, status="failed", error_message=str(e) or "unknown transport error")
        return SendResult(success=False, error=str(e), log_id=log_id)

    _update_log(db, log_id, status="sent", provider_message_id=message_id, sent_at=datetime.now(timezone.utc))
    return SendResult(success=True, message_id=message_id, log_id=log_id)


def _insert_log(db, client, to_email, to_name, user_id, email_type, subject, context, variables) -> str | None:
    eid = str(uuid.uuid4())
    try:
        db.add(
            EmailLog(
                id=eid,
                recipient_email=to_email,
                recipient_name=to_name,
                user_id=user_id,
                email_type=email_type,
                subject=subject,
                context=json.dumps(context or {}, ensure_ascii=False, default=str),
                variables=json.dumps(variables or {}, ensure_ascii=False, default=str),
                status="pending",
                provider=client.provider,
            )
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("could not write email log for %s: %s", to_email, e)
        return None
    return eid


def _update_log(db: Session, log_id: str | None, **fields) -> None:
    if not log_id:
        return
    try:
        log = db.get(EmailLog, log_id)
        if log:
            for k, v in fields.items():
                setattr(log, k, v)
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("could not update email log %s: %s", log_id, e)
