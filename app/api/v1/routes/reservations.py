from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user, require_roles
from app.models.reservation import Reservation
from app.models.user import User
from app.schemas.reservation import AvailabilityCheck, ReservationCreate
from app.services import reservation_service
from app.services.notifications import after_commit, notify_reservation

router = APIRouter(tags=["reservations"])


def reservation_out(r: Reservation) -> dict:
    return {
        "id": r.id,
        "user_id": r.user_id,
        "reservation_date": r.reservation_date.isoformat(),
        "reservation_time": r.reservation_time.strftime("%H:%M"),
        "meeting_type": r.meeting_type,
        "project_type": r.project_type,
        "estimated_budget": r.estimated_budget,
        "message": r.message,
        "status": r.status,
        "cancelled_at": r.cancelled_at.isoformat() if r.cancelled_at else None,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


@router.post("/reservations/check-availability")
def check_availability(body: AvailabilityCheck, db: Session = Depends(get_db)):
    available = reservation_service.check_availability(db, body.reservation_date, body.reservation_time)
    return {"available": available}


@router.post("/reservations", status_code=201)
def create_reservation(body: ReservationCreate, db: Session = Depends(get_db),
                       me: User = Depends(get_current_user)):
    r = reservation_service.create_reservation(
        db,
        user_id=me.id,
        reservation_date=body.reservation_date,
        reservation_time=body.reservation_time,
        meeting_type=body.meeting_type,
        project_type=body.project_type,
        estimated_budget=body.estimated_budget,
        message=body.message,
    )
    after_commit(notify_reservation, db, r, "reservation_created")
    return {"message": "Reservation created", "reservation": reservation_out(r)}


@router.get("/reservations/my")
def my_reservations(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {"items": [reservation_out(r) for r in reservation_service.list_user_reservations(db, me.id)]}


@router.get("/reservations/admin/all")
def all_reservations(date: date | None = None, status: str | None = None,
                     db: Session = Depends(get_db),
                     me: User = Depends(require_roles("admin"))):
    rows = reservation_service.list_reservations(db, reservation_date=date, status=status)
    return {"items": [reservation_out(r) for r in rows]}


@router.get("/reservations/{reservation_id}")
def get_reservation(reservation_id: str, db: Session = Depends(get_db),
                    me: User = Depends(get_current_user)):
    r = reservation_service.get_reservation_for(db, reservation_id, me.id, me.role)
    return {"reservation": reservation_out(r)}


@router.put("/reservations/{reservation_id}/cancel")
def cancel_reservation(reservation_id: str, db: Session = Depends(get_db),
                       me: User = Depends(get_current_user)):
    r = reservation_service.cancel_reservation(db, reservation_id, me.id, me.role)
    after_commit(notify_reservation, db, r, "reservation_cancelled")
    return {"message": "Reservation cancelled", "reservation": reservation_out(r)}


@router.put("/reservations/{reservation_id}/confirm")
def confirm_reservation(reservation_id: str, db: Session = Depends(get_db),
                        me: User = Depends(require_roles("admin"))):
    r = reservation_service.confirm_reservation(db, reservation_id)
    after_commit(notify_reservation, db, r, "reservation_confirmed")
    return {"message": "Reservation confirmed", "reservation": reservation_out(r)}
