from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class LoginPayload(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SignupPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class SessionUser(BaseModel):
    email: str
    uid: Optional[str] = None
    role: str
    access_type: str
    system_access: str
    expires_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    token: str
    user: SessionUser


class SignupResponse(BaseModel):
    success: bool = True
    id: str
    message: str = "Registration request submitted successfully. An administrator will review your request."


class PrincipalResponse(BaseModel):
    email: str
    role: str
    user_type: str
    token_type: str
    system: Optional[str] = None
    system_access: str
