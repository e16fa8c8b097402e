import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, text, create_engine

from app.core.config import settings
from app.db.session import Base

# Import all models so Alembic sees them in metadata
from app.models.user import User  # noqa: F401
from app.models.reservation import Reservation  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
from app.models.email_preference import EmailPreference  # noqa: F401
from app.models.email_template import EmailTemplate  # noqa: F401
from app.models.contact_message import ContactMessage, ContactMessageReply  # noqa: F401
from app.models.user_notification import UserNotification  # noqa: F401
from app.models.audit_log import AdminActivityLog  # noqa: F401
from app.models.category import Category, Dish  # noqa: F401


def ensure_alembic_version_table(connection) -> None:
    # Alembic defaults alembic_version.version_num to VARCHAR(32); widen it for descriptive revision ids.
    if connection.dialect.name != "postgresql":
        return
    connection.execute(
        text("CREATE TABLE IF NOT EXISTS alembic_version (version_num VARCHAR(64) NOT NULL);")
    )
    connection.execute(text("ALTER TABLE alembic_version ALTER COLUMN version_num TYPE VARCHAR(64);"))


# Alembic Config object
config = context.config

# Force sqlalchemy.url from real runtime DATABASE_URL
db_url = getattr(settings, "DATABASE_URL", None) or os.getenv("DATABASE_URL")
if not db_url:
    raise RuntimeError("DATABASE_URL is not set (check .env / app.core.config.settings)")

config.set_main_option("sqlalchemy.url", db_url)

# Logging config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Target metadata for autogenerate
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    url = config.get_main_option("sqlalchemy.url")

    # alembic.ini carries no usable URL; build the engine from DATABASE_URL directly.
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        # Do not run any DDL before configure(); otherwise the connection is already in a
        # transaction and Alembic's begin_transaction() returns nullcontext() and never commits.
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            ensure_alembic_version_table(connection)
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
