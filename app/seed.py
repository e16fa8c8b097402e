import logging
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.db.session import SessionLocal
from app.core.config import settings
from app.core.security import hash_password
from app.models.user import User
from app.models.email_preference import EmailPreference
from app.models.email_template import EmailTemplate
from app.services.email.templates import DEFAULT_TEMPLATES

logger = logging.getLogger(__name__)


def ensure_user(db: Session, email: str, password: str, role: str, firstname: str) -> None:
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            firstname=firstname,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    db.commit()
    logger.info("[seed] created %s user %s", role, email)


def ensure_templates(db: Session) -> int:
    """Insert built-in templates that are missing; edited rows are left alone."""
    existing = {k for (k,) in db.query(EmailTemplate.template_key).all()}
    created = 0
    for key, tpl in DEFAULT_TEMPLATES.items():
        if key in existing:
            continue
        db.add(
            EmailTemplate(
                id=str(uuid.uuid4()),
                template_key=key,
                name=tpl["name"],
                subject=tpl["subject"],
                html_body=tpl["html"],
                text_body=tpl["text"],
                category="transactional",
                is_active=True,
            )
        )
        created += 1
    db.commit()
    return created


def ensure_preferences(db: Session) -> int:
    """Give every user without one a default (all opted in) preference row."""
    have = select(EmailPreference.user_id)
    missing = db.query(User.id).filter(~User.id.in_(have)).all()
    for (user_id,) in missing:
        db.add(EmailPreference(id=str(uuid.uuid4()), user_id=user_id))
    db.commit()
    return len(missing)


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("[seed] users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, settings.SEED_ADMIN_EMAIL.lower(), settings.SEED_ADMIN_PASSWORD, "admin", "Admin")
        n_templates = ensure_templates(db)
        n_prefs = ensure_preferences(db)
        logger.info("[seed] %s email templates and %s preference rows created", n_templates, n_prefs)
    finally:
        db.close()


if __name__ == "__main__":
    from app.core.observability import init_logging
    init_logging(settings)
    run()
