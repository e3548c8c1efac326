"""Account domain model for Token System registrations."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

ROLE_ADMIN = "admin"
ROLE_USER = "user"

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

ACCESS_UNLIMITED = "unlimited"
ACCESS_TRIAL = "trial"

SYSTEM_BOTH = "both"
SYSTEM_EVALUATION = "evaluation"
SYSTEM_GRADING = "grading"
SYSTEMS = (SYSTEM_EVALUATION, SYSTEM_GRADING)
SYSTEM_ACCESS_CHOICES = (SYSTEM_BOTH, SYSTEM_EVALUATION, SYSTEM_GRADING)


@dataclass(slots=True)
class Account:
    """
    A registration request and, once approved, the user it grants access to.

    A single record carries the whole lifecycle; ``status`` tells pending,
    approved and rejected registrations apart.
    """

    id: str
    email: str
    password_hash: str
    role: str = ROLE_USER
    status: str = STATUS_PENDING
    request_date: Optional[datetime] = None
    access_type: str = ACCESS_UNLIMITED
    trial_days: Optional[int] = None
    system_access: str = SYSTEM_BOTH
    expires_at: Optional[datetime] = None
    is_disabled: bool = False
    uid: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    disabled_at: Optional[datetime] = None
    enabled_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    note: Optional[str] = None
    directory_error: Optional[str] = None
    email_sent: bool = False
    email_sent_at: Optional[datetime] = None
    email_error: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_approved(self) -> bool:
        return self.status == STATUS_APPROVED

    @property
    def is_trial(self) -> bool:
        return self.access_type == ACCESS_TRIAL

    def trial_expired(self, now: Optional[datetime] = None) -> bool:
        if not self.is_trial or self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) > self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
