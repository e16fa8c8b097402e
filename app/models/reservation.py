from sqlalchemy import String, DateTime, Date, Time, Text, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, date, time, timezone
from app.db.session import Base

ACTIVE_SLOT_CLAUSE = text("status IN ('pending', 'confirmed')")

class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        # Two active reservations can never hold the same slot, whatever the app-level check saw.
        Index(
            "uq_reservations_active_slot",
            "reservation_date",
            "reservation_time",
            unique=True,
            postgresql_where=ACTIVE_SLOT_CLAUSE,
            sqlite_where=ACTIVE_SLOT_CLAUSE,
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)

    reservation_date: Mapped[date] = mapped_column(Date, index=True)
    reservation_time: Mapped[time] = mapped_column(Time)

    meeting_type: Mapped[str] = mapped_column(String(30), default="visio")  # visio, phone, onsite
    project_type: Mapped[str] = mapped_column(String(100), nullable=True)
    estimated_budget: Mapped[str] = mapped_column(String(50), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, confirmed, cancelled
    cancelled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.reservation_date, self.reservation_time)
