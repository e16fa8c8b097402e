from typing import Optional
from pydantic import BaseModel

class ContactMessageCreate(BaseModel):
    name: str
    email: str
    message: str
    subject: str = ""
    phone: str = ""

class ContactMessageUpdate(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[str] = None

class ContactReplyIn(BaseModel):
    reply_text: str = ""
