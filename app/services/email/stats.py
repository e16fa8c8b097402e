from datetime import datetime

from sqlalchemy import func, case
from sqlalchemy.orm import Session

from app.models.email_log import EmailLog


def _count_status(status: str):
    return func.sum(case((EmailLog.status == status, 1), else_=0))


def get_email_stats(db: Session, start: datetime | None = None, end: datetime | None = None, email_type: str | None = None) -> list[dict]:
    """Per email_type delivery counts, busiest type first."""
    total = func.count(EmailLog.id)
    q = db.query(
        EmailLog.email_type,
        total.label("total"),
        _count_status("sent").label("sent"),
        _count_status("failed").label("failed"),
        _count_status("delivered").label("delivered"),
        _count_status("opened").label("opened"),
        _count_status("bounced").label("bounced"),
    )
    if start:
        q = q.filter(EmailLog.created_at >= start)
    if end:
        q = q.filter(EmailLog.created_at <= end)
    if email_type:
        q = q.filter(EmailLog.email_type == email_type)
    rows = q.group_by(EmailLog.email_type).order_by(total.desc()).all()
    return [
        {
            "email_type": r.email_type,
            "total": int(r.total or 0),
            "sent": int(r.sent or 0),
            "failed": int(r.failed or 0),
            "delivered": int(r.delivered or 0),
            "opened": int(r.opened or 0),
            "bounced": int(r.bounced or 0),
        }
        for r in rows
    ]


def get_user_email_history(db: Session, user_id: str, limit: int = 50) -> list[dict]:
    logs = (
        db.query(EmailLog)
        .filter(EmailLog.user_id == user_id)
        .order_by(EmailLog.created_at.desc())
        .limit(min(max(limit, 1), 200))
        .all()
    )
    return [{
        "id": log.id,
        "email_type": log.email_type,
        "subject": log.subject,
        "recipient_email": log.recipient_email,
        "status": log.status,
        "sent_at": log.sent_at.isoformat() if log.sent_at else None,
        "opened_at": log.opened_at.isoformat() if log.opened_at else None,
        "created_at": log.created_at.isoformat() if log.created_at else None,
    } for log in logs]
