import html
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user, require_roles, get_email_client
from app.core.errors import NotConfiguredError
from app.models.user import User
from app.schemas.email import EmailPreferencesUpdate, EmailTestRequest
from app.services.email.client import EmailClient
from app.services.email.dispatch import send_email
from app.services.email import preferences as prefs_service
from app.services.email.rate_limit import recent_count
from app.services.email.stats import get_email_stats, get_user_email_history

logger = logging.getLogger(__name__)

router = APIRouter(tags=["emails"])


@router.get("/users/me/email-preferences")
def get_my_preferences(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return prefs_service.preferences_to_dict(prefs_service.get_or_create_preferences(db, me.id))


@router.put("/users/me/email-preferences")
def update_my_preferences(body: EmailPreferencesUpdate, db: Session = Depends(get_db),
                          me: User = Depends(get_current_user)):
    prefs = prefs_service.update_preferences(db, me.id, body.model_dump(exclude_unset=True))
    return prefs_service.preferences_to_dict(prefs)


@router.get("/users/me/emails")
def my_email_history(limit: int = 50, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {"items": get_user_email_history(db, me.id, limit=limit)}


@router.get("/admin/emails/stats")
def email_stats(start: datetime | None = None, end: datetime | None = None, email_type: str | None = None,
                db: Session = Depends(get_db),
                me: User = Depends(require_roles("admin"))):
    return {"items": get_email_stats(db, start=start, end=end, email_type=email_type)}


@router.get("/admin/emails/status")
def email_status(db: Session = Depends(get_db),
                 client: EmailClient = Depends(get_email_client),
                 me: User = Depends(require_roles("admin"))):
    return {
        "provider": client.provider,
        "configured": client.is_configured,
        "preview_mode": client.preview_mode,
        "test_recipient": client.test_recipient,
        "from": client.from_address,
        "rate_limit": client.rate_limit,
        "sent_last_hour": recent_count(db),
    }


@router.post("/admin/emails/test")
def send_test_email(body: EmailTestRequest, db: Session = Depends(get_db),
                    client: EmailClient = Depends(get_email_client),
                    me: User = Depends(require_roles("admin"))):
    """Synchronous send: the admin sees the provider's answer."""
    logger.info("test email to %s requested by %s", body.to, me.email)
    try:
        result = send_email(
            db, client,
            to_email=body.to.strip(),
            subject=body.subject,
            html=f"<p>{html.escape(body.message)}</p>",
            text=body.message,
            email_type="test",
            user_id=me.id,
            context={"requested_by": me.email},
        )
    except NotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error or "send failed")
    return result.as_dict()
