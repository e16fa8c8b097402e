import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.models.email_preference import EmailPreference, DIGEST_FREQUENCIES

logger = logging.getLogger(__name__)

# email_type -> preference flag; types not listed here are always allowed
TYPE_TO_PREFERENCE = {
    "reservation_created": "reservation_confirmations",
    "reservation_confirmed": "reservation_confirmations",
    "reservation_cancelled": "reservation_confirmations",
    "reservation_reminder": "reservation_reminders",
    "project_created": "project_updates",
    "project_updated": "project_updates",
    "project_status_changed": "project_status_changes",
    "project_delivered": "project_updates",
    "payment_success": "payment_notifications",
    "payment_failed": "payment_notifications",
    "newsletter": "newsletter",
}

PREFERENCE_FLAGS = (
    "email_notifications",
    "reservation_confirmations",
    "reservation_reminders",
    "project_updates",
    "project_status_changes",
    "payment_notifications",
    "newsletter",
)


def should_send(db: Session, user_id: str | None, email_type: str) -> bool:
    """Opt-out gate: a user without a preference row receives everything."""
    if not user_id:
        return True
    try:
        prefs = db.query(EmailPreference).filter(EmailPreference.user_id == user_id).first()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("email preference lookup failed for %s: %s", user_id, e)
        return True
    if prefs is None:
        return True
    if not prefs.email_notifications:
        return False
    flag = TYPE_TO_PREFERENCE.get(email_type)
    if flag is None:
        return True
    return bool(getattr(prefs, flag))


def get_or_create_preferences(db: Session, user_id: str) -> EmailPreference:
    prefs = db.query(EmailPreference).filter(EmailPreference.user_id == user_id).first()
    if prefs:
        return prefs
    prefs = EmailPreference(id=str(uuid.uuid4()), user_id=user_id)
    db.add(prefs)
    db.commit()
    db.refresh(prefs)
    return prefs


def update_preferences(db: Session, user_id: str, changes: dict) -> EmailPreference:
    prefs = get_or_create_preferences(db, user_id)
    digest = changes.get("digest_frequency")
    if digest is not None and digest not in DIGEST_FREQUENCIES:
        raise ValidationError(f"digest_frequency must be one of {', '.join(DIGEST_FREQUENCIES)}")
    for key in PREFERENCE_FLAGS:
        if changes.get(key) is not None:
            setattr(prefs, key, bool(changes[key]))
    if digest is not None:
        prefs.digest_frequency = digest
    prefs.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(prefs)
    return prefs


def preferences_to_dict(prefs: EmailPreference) -> dict:
    out = {key: getattr(prefs, key) for key in PREFERENCE_FLAGS}
    out["digest_frequency"] = prefs.digest_frequency
    return out
