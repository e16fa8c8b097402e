from datetime import date, time
from typing import Optional
from pydantic import BaseModel

class AvailabilityCheck(BaseModel):
    reservation_date: date
    reservation_time: time

class ReservationCreate(BaseModel):
    reservation_date: date
    reservation_time: time
    meeting_type: Optional[str] = "visio"
    project_type: Optional[str] = None
    estimated_budget: Optional[str] = None
    message: Optional[str] = None
