from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.contact import ContactMessageCreate
from app.services import contact_service

router = APIRouter(tags=["contact"])


@router.post("/contact", status_code=201)
def submit_contact_message(body: ContactMessageCreate, db: Session = Depends(get_db)):
    m = contact_service.create_message(
        db,
        name=body.name,
        email=body.email,
        message=body.message,
        subject=body.subject,
        phone=body.phone,
    )
    return {"message": "Message received", "id": m.id}
