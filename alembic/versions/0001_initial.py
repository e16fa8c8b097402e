"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_SLOT = sa.text("status IN ('pending', 'confirmed')")


def _created_at():
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("firstname", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("lastname", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=30), nullable=False, server_default="client"),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "reservations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("reservation_date", sa.Date(), nullable=False),
        sa.Column("reservation_time", sa.Time(), nullable=False),
        sa.Column("meeting_type", sa.String(length=30), nullable=False, server_default="visio"),
        sa.Column("project_type", sa.String(length=100), nullable=True),
        sa.Column("estimated_budget", sa.String(length=50), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_reservations_user_id", "reservations", ["user_id"])
    op.create_index("ix_reservations_reservation_date", "reservations", ["reservation_date"])
    op.create_index("ix_reservations_status", "reservations", ["status"])
    op.create_index(
        "uq_reservations_active_slot",
        "reservations",
        ["reservation_date", "reservation_time"],
        unique=True,
        postgresql_where=ACTIVE_SLOT,
        sqlite_where=ACTIVE_SLOT,
    )

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("recipient_email", sa.String(length=320), nullable=False),
        sa.Column("recipient_name", sa.String(length=255), nullable=True),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("email_type", sa.String(length=100), nullable=False),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("context", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("variables", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("provider", sa.String(length=50), nullable=False, server_default="smtp"),
        sa.Column("provider_message_id", sa.String(length=255), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_email_logs_recipient_email", "email_logs", ["recipient_email"])
    op.create_index("ix_email_logs_user_id", "email_logs", ["user_id"])
    op.create_index("ix_email_logs_email_type", "email_logs", ["email_type"])
    op.create_index("ix_email_logs_status", "email_logs", ["status"])
    op.create_index("ix_email_logs_created_at", "email_logs", ["created_at"])

    op.create_table(
        "email_preferences",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("reservation_confirmations", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("reservation_reminders", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("project_updates", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("project_status_changes", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("payment_notifications", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("newsletter", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("digest_frequency", sa.String(length=20), nullable=False, server_default="immediate"),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_email_preferences_user_id", "email_preferences", ["user_id"], unique=True)

    op.create_table(
        "email_templates",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("template_key", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("html_body", sa.Text(), nullable=False),
        sa.Column("text_body", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=False, server_default="transactional"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_email_templates_template_key", "email_templates", ["template_key"], unique=True)

    op.create_table(
        "contact_messages",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("subject", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="new"),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="normal"),
        sa.Column("assigned_to", sa.String(length=36), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("replied_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("replied_by", sa.String(length=36), nullable=True),
        _created_at(),
    )
    op.create_index("ix_contact_messages_email", "contact_messages", ["email"])
    op.create_index("ix_contact_messages_status", "contact_messages", ["status"])
    op.create_index("ix_contact_messages_priority", "contact_messages", ["priority"])
    op.create_index("ix_contact_messages_created_at", "contact_messages", ["created_at"])

    op.create_table(
        "contact_message_replies",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("message_id", sa.String(length=36), nullable=False),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("reply_text", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_contact_message_replies_message_id", "contact_message_replies", ["message_id"])
    op.create_index("ix_contact_message_replies_admin_id", "contact_message_replies", ["admin_id"])

    op.create_table(
        "user_notifications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="info"),
        sa.Column("related_type", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("related_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )
    op.create_index("ix_user_notifications_user_id", "user_notifications", ["user_id"])

    op.create_table(
        "admin_activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        _created_at(),
    )
    op.create_index("ix_admin_activity_logs_admin_id", "admin_activity_logs", ["admin_id"])
    op.create_index("ix_admin_activity_logs_action", "admin_activity_logs", ["action"])
    op.create_index("ix_admin_activity_logs_entity_type", "admin_activity_logs", ["entity_type"])
    op.create_index("ix_admin_activity_logs_entity_id", "admin_activity_logs", ["entity_id"])

    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=60), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "dishes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("category_id", sa.String(length=36), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_dishes_category_id", "dishes", ["category_id"])


def downgrade() -> None:
    op.drop_table("dishes")
    op.drop_table("categories")
    op.drop_table("admin_activity_logs")
    op.drop_table("user_notifications")
    op.drop_table("contact_message_replies")
    op.drop_table("contact_messages")
    op.drop_table("email_templates")
    op.drop_table("email_preferences")
    op.drop_table("email_logs")
    op.drop_index("uq_reservations_active_slot", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("users")
