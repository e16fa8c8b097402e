import logging
import uuid
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.models.audit_log import AdminActivityLog

logger = logging.getLogger(__name__)

def log_admin_activity(db: Session, admin_id: str, action: str, entity_type: str, entity_id: str, description: str = "") -> None:
    """Record an admin action. Commit the primary write first: failures here are only warned."""
    try:
        db.add(AdminActivityLog(
            id=str(uuid.uuid4()),
            admin_id=admin_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("could not log admin activity %s on %s %s: %s", action, entity_type, entity_id, e)
