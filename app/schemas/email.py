from typing import Optional
from pydantic import BaseModel

class EmailPreferencesUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    reservation_confirmations: Optional[bool] = None
    reservation_reminders: Optional[bool] = None
    project_updates: Optional[bool] = None
    project_status_changes: Optional[bool] = None
    payment_notifications: Optional[bool] = None
    newsletter: Optional[bool] = None
    digest_frequency: Optional[str] = None

class EmailTestRequest(BaseModel):
    to: str
    subject: str = "Test email"
    message: str = "This is a test email."
