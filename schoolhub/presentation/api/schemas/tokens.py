"""Pydantic schemas for API token endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class GenerateTokenRequest(BaseModel):
    """Request schema for issuing an API token."""

    description: Optional[str] = None
    expiration: Optional[str] = None
    system: Optional[str] = None
    user_type: Optional[str] = None


class UpdateTokenSystemRequest(BaseModel):
    system: Optional[str] = None


class TokenSummary(BaseModel):
    """Token metadata with only a preview of the signed value."""

    id: str
    description: str
    created_by: str
    created_at: datetime
    expiration: str
    status: str
    system: str
    user_type: str
    role: str
    display_token: str


class TokenDetail(TokenSummary):
    """Token metadata including the full signed value."""

    token: str


class ListTokensResponse(BaseModel):
    items: list[TokenSummary]
    count: int
