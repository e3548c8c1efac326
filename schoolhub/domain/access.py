"""Access-type and token-lifetime rules shared by approval and token issuance."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Optional, Tuple

from .errors import DomainError
from .models.account import ACCESS_TRIAL, ACCESS_UNLIMITED

DEFAULT_TRIAL_DAYS = 7
DEFAULT_TOKEN_EXPIRATION = "30d"
NEVER_EXPIRES_ALIASES = ("never", "never_expires")

_TRIAL_RE = re.compile(r"^trial-(\d+)d$")
_DURATION_RE = re.compile(r"^(\d+)([mhdwy])$")
_UNIT_SECONDS = {
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
    "y": 365 * 24 * 60 * 60,
}


def resolve_access_type(access_type: Optional[str]) -> Tuple[str, Optional[int]]:
    """Normalize ``unlimited``, ``trial`` or ``trial-Nd`` to ``(access_type, trial_days)``."""
    value = (access_type or ACCESS_UNLIMITED).strip().lower()
    if value == ACCESS_UNLIMITED:
        return ACCESS_UNLIMITED, None
    if value == ACCESS_TRIAL:
        return ACCESS_TRIAL, DEFAULT_TRIAL_DAYS
    if value.startswith(f"{ACCESS_TRIAL}-"):
        match = _TRIAL_RE.match(value)
        if not match:
            raise DomainError(f"Invalid access type: {access_type}. Use trial-<days>d, e.g. trial-7d.")
        days = int(match.group(1))
        if days <= 0:
            raise DomainError("Trial length must be at least one day.")
        return ACCESS_TRIAL, days
    raise DomainError(f"Invalid access type: {access_type}")


def parse_duration(duration: str) -> timedelta:
    """Parse ``<int><unit>`` where unit is one of m, h, d, w, y."""
    match = _DURATION_RE.match(duration.strip()) if duration else None
    if not match:
        raise DomainError(
            f"Invalid expiration '{duration}'. Use a number followed by m, h, d, w or y (e.g. 30d).",
            error="Invalid expiration",
        )
    value, unit = match.groups()
    return timedelta(seconds=int(value) * _UNIT_SECONDS[unit])


def clamp_expiration(duration: str, max_days: int) -> str:
    """Return ``duration`` unless it lasts longer than ``max_days``, else ``"<max_days>d"``."""
    if parse_duration(duration) > timedelta(days=max_days):
        return f"{max_days}d"
    return duration
