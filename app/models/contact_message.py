from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

MESSAGE_STATUSES = ("new", "read", "replied", "archived")
MESSAGE_PRIORITIES = ("urgent", "high", "normal", "low")

class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(320), index=True)
    phone: Mapped[str] = mapped_column(String(40), default="")
    subject: Mapped[str] = mapped_column(String(300), default="")
    message: Mapped[str] = mapped_column(Text)

    status: Mapped[str] = mapped_column(String(20), default="new", index=True)
    priority: Mapped[str] = mapped_column(String(20), default="normal", index=True)
    assigned_to: Mapped[str] = mapped_column(String(36), nullable=True)

    read_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    replied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    replied_by: Mapped[str] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)


class ContactMessageReply(Base):
    __tablename__ = "contact_message_replies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    message_id: Mapped[str] = mapped_column(String(36), index=True)
    admin_id: Mapped[str] = mapped_column(String(36), index=True)
    reply_text: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
