import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.email_log import EmailLog

logger = logging.getLogger(__name__)

WINDOW = timedelta(hours=1)


def recent_count(db: Session, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    count = (
        db.query(func.count(EmailLog.id))
        .filter(EmailLog.created_at > now - WINDOW)
        .scalar()
    )
    return int(count or 0)


def within_limit(db: Session, limit: int, now: datetime | None = None) -> bool:
    """True while fewer than `limit` emails were logged in the trailing hour.

    Fails open: a storage error permits the send.
    """
    try:
        count = recent_count(db, now)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("email rate limit check failed, allowing send: %s", e)
        return True
    if count >= limit:
        logger.warning("email rate limit reached: %s/%s in the last hour", count, limit)
        return False
    return True
