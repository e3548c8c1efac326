from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class AdminContact:
    id: str
    email: str
    subject: str
    message: str
    created_at: datetime
    status: str = "unread"
    email_sent: bool = False
    email_sent_at: Optional[datetime] = None
    email_error: Optional[str] = None
    read_at: Optional[datetime] = None
    read_by: Optional[str] = None
