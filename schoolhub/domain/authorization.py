"""Central role x resource x action policy.

Token System resources are checked against the principal's Token System
``role``; school-record resources against the ``user_type`` the token carries
into the Grading and Evaluation systems.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from .errors import PermissionDeniedError
from .models.account import ROLE_ADMIN, ROLE_USER, SYSTEM_BOTH

USER_TYPE_ADMIN = "admin"
USER_TYPE_TEACHER = "teacher"
USER_TYPES = (USER_TYPE_ADMIN, USER_TYPE_TEACHER)

TOKEN_TYPE_SESSION = "session"
TOKEN_TYPE_API = "api-token"

READ = "read"
CREATE = "create"
UPDATE = "update"
DELETE = "delete"

TOKEN_SYSTEM_RESOURCES = frozenset({"tokens", "accounts", "contacts"})

_ADMIN = frozenset({ROLE_ADMIN})
_ANY_USER = frozenset({ROLE_ADMIN, ROLE_USER})
_STAFF = frozenset({USER_TYPE_ADMIN, USER_TYPE_TEACHER})
_ADMIN_TYPE = frozenset({USER_TYPE_ADMIN})


def _crud(read: FrozenSet[str], write: FrozenSet[str]) -> Dict[str, FrozenSet[str]]:
    return {READ: read, CREATE: write, UPDATE: write, DELETE: write}


POLICY: Dict[str, Dict[str, FrozenSet[str]]] = {
    "tokens": _crud(_ANY_USER, _ANY_USER),
    "accounts": _crud(_ADMIN, _ADMIN),
    "contacts": _crud(_ADMIN, _ADMIN),
    "school_years": _crud(_STAFF, _ADMIN_TYPE),
    "subjects": _crud(_STAFF, _ADMIN_TYPE),
    "teachers": _crud(_STAFF, _ADMIN_TYPE),
    "students": _crud(_STAFF, _ADMIN_TYPE),
    "classes": _crud(_STAFF, _ADMIN_TYPE),
    "student_status": _crud(_STAFF, _STAFF),
    "activities": _crud(_STAFF, _STAFF),
    "grades": _crud(_STAFF, _STAFF),
    "attendance": _crud(_STAFF, _STAFF),
    "grading_criteria": _crud(_STAFF, _ADMIN_TYPE),
    "evaluations": _crud(_STAFF, _ADMIN_TYPE),
    "videos": {READ: _STAFF},
}


@dataclass(frozen=True, slots=True)
class Principal:
    """The authenticated caller, reconstructed from verified token claims."""

    email: str
    role: str
    user_type: str
    token_type: str = TOKEN_TYPE_SESSION
    system: Optional[str] = None
    system_access: str = SYSTEM_BOTH
    claims: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def may_use_system(self, system: str) -> bool:
        if self.system is not None and self.system != system:
            return False
        return self.system_access in (SYSTEM_BOTH, system)


def _subject_for(principal: Principal, resource: str) -> str:
    if resource in TOKEN_SYSTEM_RESOURCES:
        return principal.role
    return principal.user_type


def is_allowed(principal: Principal, resource: str, action: str) -> bool:
    allowed = POLICY.get(resource, {}).get(action)
    if not allowed:
        return False
    return _subject_for(principal, resource) in allowed


def authorize(principal: Principal, resource: str, action: str) -> None:
    if not is_allowed(principal, resource, action):
        raise PermissionDeniedError(
            f"{action.capitalize()} access to {resource.replace('_', ' ')} is not permitted for this account.",
        )
