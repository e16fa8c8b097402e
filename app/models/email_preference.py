from sqlalchemy import String, DateTime, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

DIGEST_FREQUENCIES = ("immediate", "daily", "weekly", "never")

class EmailPreference(Base):
    __tablename__ = "email_preferences"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), unique=True, index=True)

    email_notifications: Mapped[bool] = mapped_column(Boolean, default=True)  # master switch
    reservation_confirmations: Mapped[bool] = mapped_column(Boolean, default=True)
    reservation_reminders: Mapped[bool] = mapped_column(Boolean, default=True)
    project_updates: Mapped[bool] = mapped_column(Boolean, default=True)
    project_status_changes: Mapped[bool] = mapped_column(Boolean, default=True)
    payment_notifications: Mapped[bool] = mapped_column(Boolean, default=True)
    newsletter: Mapped[bool] = mapped_column(Boolean, default=True)
    digest_frequency: Mapped[str] = mapped_column(String(20), default="immediate")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
