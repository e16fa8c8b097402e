import logging
import uuid
from datetime import datetime, timedelta, timezone, date, time
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from app.core.errors import ValidationError, SlotUnavailableError, AuthorizationError, NotFoundError
from app.models.reservation import Reservation

logger = logging.getLogger(__name__)

BUSINESS_HOURS = (9, 18)  # [open, close) by hour, server local time
CANCELLATION_LEAD = timedelta(hours=2)
ACTIVE_STATUSES = ("pending", "confirmed")
RESERVATION_STATUSES = ("pending", "confirmed", "cancelled")
ADMIN_ROLES = ("admin",)


def check_availability(db: Session, reservation_date: date, reservation_time: time) -> bool:
    """Advisory fast path; the partial unique index is the real guarantee."""
    taken = (
        db.query(Reservation.id)
        .filter(
            Reservation.reservation_date == reservation_date,
            Reservation.reservation_time == reservation_time,
            Reservation.status.in_(ACTIVE_STATUSES),
        )
        .first()
    )
    return taken is None


def create_reservation(
    db: Session,
    user_id: str,
    reservation_date: date,
    reservation_time: time,
    meeting_type: str | None = "visio",
    project_type: str | None = None,
    estimated_budget: str | None = None,
    message: str | None = None,
    now: datetime | None = None,
) -> Reservation:
    if reservation_date is None or reservation_time is None:
        raise ValidationError("reservation date and time are required")
    meeting_type = meeting_type or "visio"

    now = now or datetime.now()
    starts_at = datetime.combine(reservation_date, reservation_time)
    if starts_at <= now:
        raise ValidationError("reservation must be in the future")

    # Hour granularity only: 17:59 is bookable, 18:00 is not.
    open_hour, close_hour = BUSINESS_HOURS
    if not (open_hour <= reservation_time.hour < close_hour):
        raise ValidationError(f"available hours: {open_hour}:00 - {close_hour}:00")

    if not check_availability(db, reservation_date, reservation_time):
        raise SlotUnavailableError()

    reservation = Reservation(
        id=str(uuid.uuid4()),
        user_id=user_id,
        reservation_date=reservation_date,
        reservation_time=reservation_time,
        meeting_type=meeting_type,
        project_type=project_type or None,
        estimated_budget=estimated_budget or None,
        message=message or None,
        status="pending",
    )
    db.add(reservation)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race for the slot between the check and the insert.
        db.rollback()
        raise SlotUnavailableError()
    db.refresh(reservation)
    logger.info("reservation %s created for user %s on %s %s", reservation.id, user_id, reservation_date, reservation_time)
    return reservation


def get_reservation(db: Session, reservation_id: str) -> Reservation:
    r = db.get(Reservation, reservation_id)
    if not r:
        raise NotFoundError("reservation not found")
    return r


def get_reservation_for(db: Session, reservation_id: str, actor_id: str, actor_role: str) -> Reservation:
    r = get_reservation(db, reservation_id)
    _require_owner_or_admin(r, actor_id, actor_role)
    return r


def cancel_reservation(db: Session, reservation_id: str, actor_id: str, actor_role: str, now: datetime | None = None) -> Reservation:
    r = get_reservation(db, reservation_id)
    _require_owner_or_admin(r, actor_id, actor_role)
    if r.status == "cancelled":
        raise ValidationError("reservation already cancelled")

    now = now or datetime.now()
    if r.starts_at < now + CANCELLATION_LEAD:
        raise ValidationError("reservations cannot be cancelled less than 2 hours before they start")

    r.status = "cancelled"
    r.cancelled_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(r)
    logger.info("reservation %s cancelled by %s (%s)", r.id, actor_id, actor_role)
    return r


def confirm_reservation(db: Session, reservation_id: str) -> Reservation:
    r = get_reservation(db, reservation_id)
    if r.status == "cancelled":
        raise ValidationError("cancelled reservations cannot be confirmed")
    r.status = "confirmed"
    db.commit()
    db.refresh(r)
    return r


def list_user_reservations(db: Session, user_id: str) -> list[Reservation]:
    return (
        db.query(Reservation)
        .filter(Reservation.user_id == user_id)
        .order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.desc())
        .all()
    )


def list_reservations(db: Session, reservation_date: date | None = None, status: str | None = None) -> list[Reservation]:
    q = db.query(Reservation)
    if reservation_date:
        q = q.filter(Reservation.reservation_date == reservation_date)
    if status:
        if status not in RESERVATION_STATUSES:
            raise ValidationError("invalid status")
        q = q.filter(Reservation.status == status)
    return q.order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.desc()).all()


def _require_owner_or_admin(r: Reservation, actor_id: str, actor_role: str) -> None:
    if r.user_id != actor_id and actor_role not in ADMIN_ROLES:
        raise AuthorizationError("access denied")
