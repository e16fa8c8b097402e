from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_roles
from app.models.contact_message import ContactMessage, ContactMessageReply
from app.models.user import User
from app.schemas.contact import ContactMessageUpdate, ContactReplyIn
from app.services import contact_service
from app.services.notifications import after_commit, notify_contact_reply

router = APIRouter(tags=["admin"])


def _message_out(m: ContactMessage, reply_count: int | None = None) -> dict:
    out = {
        "id": m.id,
        "name": m.name,
        "email": m.email,
        "phone": m.phone,
        "subject": m.subject,
        "message": m.message,
        "status": m.status,
        "priority": m.priority,
        "assigned_to": m.assigned_to,
        "read_at": m.read_at.isoformat() if m.read_at else None,
        "replied_at": m.replied_at.isoformat() if m.replied_at else None,
        "replied_by": m.replied_by,
        "created_at": m.created_at.isoformat() if m.created_at else None,
    }
    if reply_count is not None:
        out["reply_count"] = reply_count
    return out


def _reply_out(r: ContactMessageReply) -> dict:
    return {
        "id": r.id,
        "message_id": r.message_id,
        "admin_id": r.admin_id,
        "reply_text": r.reply_text,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


@router.get("/admin/contact")
def list_contact_messages(status: str | None = None, priority: str | None = None, search: str | None = None,
                          limit: int = 50, offset: int = 0,
                          db: Session = Depends(get_db),
                          me: User = Depends(require_roles("admin"))):
    items, total = contact_service.list_messages(db, status=status, priority=priority, search=search,
                                                 limit=limit, offset=offset)
    counts = contact_service.reply_counts(db, [m.id for m in items])
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "items": [_message_out(m, counts.get(m.id, 0)) for m in items],
    }


# Declared before /{message_id} so "stats" is never read as an id.
@router.get("/admin/contact/stats/overview")
def contact_stats(db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    return contact_service.get_stats(db)


@router.get("/admin/contact/{message_id}")
def get_contact_message(message_id: str, db: Session = Depends(get_db),
                        me: User = Depends(require_roles("admin"))):
    m, replies = contact_service.get_message_with_replies(db, message_id)
    return {"message": _message_out(m, len(replies)), "replies": [_reply_out(r) for r in replies]}


@router.put("/admin/contact/{message_id}")
def update_contact_message(message_id: str, body: ContactMessageUpdate,
                           db: Session = Depends(get_db),
                           me: User = Depends(require_roles("admin"))):
    m = contact_service.update_message(
        db, message_id, me.id,
        status=body.status,
        priority=body.priority,
        assigned_to=body.assigned_to,
        assign="assigned_to" in body.model_fields_set,
    )
    return {"message": _message_out(m)}


@router.post("/admin/contact/{message_id}/reply")
def reply_to_contact_message(message_id: str, body: ContactReplyIn,
                             db: Session = Depends(get_db),
                             me: User = Depends(require_roles("admin"))):
    m, reply = contact_service.reply_to_message(db, message_id, me, body.reply_text)
    after_commit(notify_contact_reply, db, m, reply, me)
    return {"message": _message_out(m), "reply": _reply_out(reply)}


@router.delete("/admin/contact/{message_id}")
def delete_contact_message(message_id: str, permanent: bool = False,
                           db: Session = Depends(get_db),
                           me: User = Depends(require_roles("admin"))):
    if permanent:
        contact_service.delete_message(db, message_id, me.id, permanent=True)
    else:
        contact_service.archive_message(db, message_id, me.id)
    return {"ok": True, "permanent": permanent}
