from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from ...domain.access import (
    DEFAULT_TOKEN_EXPIRATION,
    DEFAULT_TRIAL_DAYS,
    NEVER_EXPIRES_ALIASES,
    clamp_expiration,
    parse_duration,
)
from ...domain.authorization import (
    TOKEN_TYPE_API,
    USER_TYPE_ADMIN,
    USER_TYPE_TEACHER,
    USER_TYPES,
    Principal,
)
from ...domain.errors import (
    AuthenticationError,
    DomainError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
)
from ...domain.models import Account, ApiToken
from ...domain.models.account import SYSTEM_BOTH, SYSTEMS
from ...domain.models.api_token import NEVER_EXPIRES
from ...domain.ports.persistence import PersistenceGateway
from .auth_service import AuthService

logger = logging.getLogger(__name__)


class TokenService:
    """Issues, lists and revokes API tokens for the Grading and Evaluation systems."""

    def __init__(
        self,
        persistence: PersistenceGateway,
        auth_service: AuthService,
        daily_limit: int = 5,
        trial_max_days: int = DEFAULT_TRIAL_DAYS,
    ) -> None:
        self._persistence = persistence
        self._auth = auth_service
        self._daily_limit = daily_limit
        self._trial_max_days = trial_max_days

    # ------------------------------------------------------------------
    def generate(
        self,
        requester: Principal,
        description: Optional[str],
        expiration: Optional[str] = None,
        system: Optional[str] = None,
        user_type: Optional[str] = None,
    ) -> ApiToken:
        if not description or not description.strip():
            raise DomainError("Description is required")
        if system not in SYSTEMS:
            raise DomainError("Valid system type (evaluation or grading) is required")

        account = self._requester_account(requester)
        system_access = account.system_access if account else requester.system_access
        if system_access not in (SYSTEM_BOTH, system):
            raise PermissionDeniedError(f"You don't have permission to generate tokens for the {system} system")

        if not requester.is_admin:
            since = self._start_of_local_day()
            created_today = self._persistence.count_tokens_created_since(requester.email, since)
            if created_today >= self._daily_limit:
                logger.info("User %s reached the daily token limit (%s)", requester.email, self._daily_limit)
                raise RateLimitExceededError(
                    f"You have reached the daily limit of {self._daily_limit} tokens per day"
                )

        final_expiration = self._resolve_expiration(requester, account, expiration)
        resolved_user_type = self._resolve_user_type(requester, user_type)

        now = datetime.now(timezone.utc)
        token_id = uuid.uuid4().hex
        claims = {
            "type": TOKEN_TYPE_API,
            "sub": requester.email,
            "email": requester.email,
            "role": requester.role,
            "user_type": resolved_user_type,
            "system": system,
            "description": description.strip(),
            "jti": token_id,
            "iat": now,
        }
        if final_expiration != NEVER_EXPIRES:
            claims["exp"] = now + parse_duration(final_expiration)

        token = ApiToken(
            id=token_id,
            token=self._auth.sign(claims),
            description=description.strip(),
            created_by=requester.email,
            created_at=now,
            expiration=final_expiration,
            system=system,
            user_type=resolved_user_type,
            role=requester.role,
        )
        self._persistence.create_token(token)
        logger.info(
            "Issued %s token %s for %s (expiration %s)", system, token.id, requester.email, final_expiration
        )
        return token

    def list(self, requester: Principal) -> List[ApiToken]:
        return self._persistence.list_tokens_by_creator(requester.email)

    def get_full(self, requester: Principal, token_id: str) -> ApiToken:
        return self._owned_token(requester, token_id)

    def delete(self, requester: Principal, token_id: str) -> ApiToken:
        token = self._owned_token(requester, token_id)
        self._persistence.delete_token(token.id)
        logger.info("Token %s deleted by %s", token.id, requester.email)
        return token

    def update_system(self, requester: Principal, token_id: str, system: Optional[str]) -> ApiToken:
        if system not in SYSTEMS:
            raise DomainError("Valid system type (evaluation or grading) is required")
        token = self._owned_token(requester, token_id)
        updated = self._persistence.update_token_system(token.id, system)
        if updated is None:
            raise NotFoundError("Token not found")
        return updated

    # ------------------------------------------------------------------
    def _requester_account(self, requester: Principal) -> Optional[Account]:
        account = self._persistence.get_account_by_email(requester.email)
        if account is None and not requester.is_admin:
            raise AuthenticationError("User information not found")
        return account

    def _resolve_expiration(self, requester: Principal, account: Optional[Account], expiration: Optional[str]) -> str:
        requested = (expiration or DEFAULT_TOKEN_EXPIRATION).strip()
        if requested in NEVER_EXPIRES_ALIASES:
            if not requester.is_admin:
                raise DomainError("Only administrators can create tokens that never expire", error="Invalid expiration")
            return NEVER_EXPIRES
        parse_duration(requested)
        if account is not None and account.is_trial:
            if account.trial_expired():
                raise PermissionDeniedError(
                    "Your trial period has ended. Please contact the administrator for full access.",
                    error="Trial period has expired",
                )
            max_days = min(account.trial_days or DEFAULT_TRIAL_DAYS, self._trial_max_days)
            if account.expires_at is not None:
                remaining = account.expires_at - datetime.now(timezone.utc)
                max_days = min(max_days, max(1, math.ceil(remaining.total_seconds() / 86400)))
            clamped = clamp_expiration(requested, max_days)
            if clamped != requested:
                logger.info("Trial user %s token expiration limited from %s to %s", requester.email, requested, clamped)
            return clamped
        return requested

    @staticmethod
    def _resolve_user_type(requester: Principal, user_type: Optional[str]) -> str:
        if not user_type:
            return USER_TYPE_ADMIN if requester.is_admin else USER_TYPE_TEACHER
        if user_type not in USER_TYPES:
            raise DomainError(f"Invalid user type: {user_type}")
        if user_type == USER_TYPE_ADMIN and not requester.is_admin:
            raise PermissionDeniedError("Only administrators can issue admin tokens")
        return user_type

    def _owned_token(self, requester: Principal, token_id: str) -> ApiToken:
        token = self._persistence.get_token(token_id)
        if token is None:
            raise NotFoundError("Token not found")
        if not requester.is_admin and token.created_by != requester.email:
            raise PermissionDeniedError("You can only access tokens you created")
        return token

    @staticmethod
    def _start_of_local_day() -> datetime:
        return datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
