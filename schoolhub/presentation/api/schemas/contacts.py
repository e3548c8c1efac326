from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ContactRequest(BaseModel):
    email: EmailStr
    subject: Optional[str] = Field(default=None, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)


class ContactSubmitted(BaseModel):
    success: bool = True
    id: str
    email_sent: bool
    message: str = "Your message has been sent. An administrator will contact you shortly."


class ContactResponse(BaseModel):
    id: str
    email: str
    subject: str
    message: str
    created_at: datetime
    status: str
    email_sent: bool
    email_sent_at: Optional[datetime] = None
    email_error: Optional[str] = None
    read_at: Optional[datetime] = None
    read_by: Optional[str] = None
