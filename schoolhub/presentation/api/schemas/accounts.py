from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ApproveRequest(BaseModel):
    access_type: Optional[str] = None
    system_access: Optional[str] = None


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class EditAccessRequest(BaseModel):
    access_type: Optional[str] = None
    system_access: Optional[str] = None


class ProcessRequest(BaseModel):
    action: str
    reason: Optional[str] = None
    access_type: Optional[str] = None
    system_access: Optional[str] = None


class AccountResponse(BaseModel):
    """Registration as shown to administrators; the password hash is never exposed."""

    id: str
    email: str
    role: str
    status: str
    request_date: Optional[datetime] = None
    access_type: str
    trial_days: Optional[int] = None
    system_access: str
    expires_at: Optional[datetime] = None
    is_disabled: bool
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
    email_sent: bool
    email_sent_at: Optional[datetime] = None
    email_error: Optional[str] = None


class AccountActionResponse(BaseModel):
    message: str
    user: AccountResponse
    warning: Optional[str] = None


class DeletionStep(BaseModel):
    name: str
    succeeded: bool
    detail: Optional[str] = None


class DeletionDetails(BaseModel):
    firebase_account_deleted: bool
    tokens_deleted: int
    all_data_deleted: bool
    message: str
    steps: list[DeletionStep]


class DeletionResponse(BaseModel):
    message: str
    details: DeletionDetails
