from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import bcrypt
from jose import JWTError, jwt

from ...domain.authorization import (
    TOKEN_TYPE_API,
    TOKEN_TYPE_SESSION,
    USER_TYPE_ADMIN,
    USER_TYPE_TEACHER,
    Principal,
)
from ...domain.errors import AuthenticationError, DomainError, PermissionDeniedError
from ...domain.models import Account
from ...domain.models.account import ROLE_ADMIN, STATUS_APPROVED, STATUS_PENDING, SYSTEM_BOTH
from ...domain.ports.persistence import PersistenceGateway

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes and newer releases reject longer input.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise DomainError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise DomainError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    encoded = (password or "").encode("utf-8")
    if not encoded or len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


class AuthService:
    """Logs users in, issues session tokens and turns bearer tokens back into principals."""

    def __init__(
        self,
        persistence: PersistenceGateway,
        secret_key: str,
        token_exp_minutes: int = 60,
        algorithm: str = "HS256",
    ) -> None:
        if not secret_key:
            raise RuntimeError("JWT_SECRET is not configured.")
        self._persistence = persistence
        self._secret_key = secret_key
        self._token_exp_minutes = token_exp_minutes
        self._algorithm = algorithm

    @property
    def token_exp_minutes(self) -> int:
        return self._token_exp_minutes

    # ------------------------------------------------------------------
    def ensure_default_admin(self, email: Optional[str], password: Optional[str]) -> Optional[Account]:
        if not email or not password:
            return None
        existing = self._persistence.get_account_by_email(email)
        if existing:
            if existing.role != ROLE_ADMIN or existing.status != STATUS_APPROVED:
                logger.error(
                    "ADMIN_EMAIL %s belongs to a %s %s account; refusing to start without an administrator",
                    existing.email,
                    existing.status,
                    existing.role,
                )
                raise RuntimeError(f"ADMIN_EMAIL {existing.email} is registered to a non-administrator account.")
            return existing
        now = datetime.now(timezone.utc)
        logger.info("Creating default administrator account for %s", email)
        return self._persistence.create_account(
            Account(
                id=uuid.uuid4().hex,
                email=email.strip().lower(),
                password_hash=hash_password(password),
                role=ROLE_ADMIN,
                status=STATUS_APPROVED,
                request_date=now,
                approved_at=now,
                approved_by="system",
            )
        )

    def authenticate(self, email: str, password: str) -> Account:
        account = self._persistence.get_account_by_email(email or "")
        if not account or not verify_password(password, account.password_hash):
            raise AuthenticationError(
                "The email or password you entered is incorrect",
                error="Invalid credentials",
            )
        if account.status == STATUS_PENDING:
            raise PermissionDeniedError(
                "Your registration request is still awaiting administrator approval.",
                error="Account not approved",
            )
        if account.status != STATUS_APPROVED:
            raise PermissionDeniedError(
                "Your registration request was not approved.",
                error="Account not approved",
            )
        if account.is_disabled:
            raise PermissionDeniedError(
                "Your account has been disabled. Please contact the administrator.",
                error="Account Disabled",
            )
        if account.trial_expired():
            raise PermissionDeniedError(
                "Your trial period has ended. Please contact the administrator for full access.",
                error="Trial period has expired",
            )
        return account

    def login(self, email: str, password: str) -> Tuple[str, Account]:
        account = self.authenticate(email, password)
        logger.info("User %s logged in", account.email)
        return self.create_session_token(account), account

    def create_session_token(self, account: Account) -> str:
        now = datetime.now(tz=timezone.utc)
        payload = {
            "type": TOKEN_TYPE_SESSION,
            "sub": account.email,
            "email": account.email,
            "uid": account.uid,
            "role": account.role,
            "access_type": account.access_type,
            "system_access": account.system_access,
            "expires_at": account.expires_at.isoformat() if account.expires_at else None,
            "iat": now,
            "exp": now + timedelta(minutes=self._token_exp_minutes),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def sign(self, claims: dict) -> str:
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def verify_token(self, token: str) -> Principal:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            raise AuthenticationError(str(exc) or "Invalid token", error="Invalid token") from exc

        email = payload.get("email") or payload.get("sub")
        role = payload.get("role")
        if not email or not role:
            raise AuthenticationError("Token is missing required claims.", error="Invalid token")

        token_type = payload.get("type", TOKEN_TYPE_SESSION)
        if token_type == TOKEN_TYPE_API:
            stored = self._persistence.get_token(payload["jti"]) if payload.get("jti") else None
            if stored is None:
                raise AuthenticationError("This API token has been revoked.", error="Invalid token")
            user_type = payload.get("user_type", USER_TYPE_TEACHER)
            # the stored row reflects later system changes, the signed claim does not
            system = stored.system
        else:
            user_type = USER_TYPE_ADMIN if role == ROLE_ADMIN else USER_TYPE_TEACHER
            system = None

        system_access = payload.get("system_access", SYSTEM_BOTH)
        if role != ROLE_ADMIN:
            account = self._persistence.get_account_by_email(email)
            if account is None:
                raise AuthenticationError("Account no longer exists.", error="Invalid token")
            if account.is_disabled:
                raise PermissionDeniedError(
                    "Your account has been disabled. Please contact an administrator.",
                    error="Account Disabled",
                )
            if account.trial_expired():
                raise PermissionDeniedError(
                    "Your trial period has ended. Please contact the administrator for full access.",
                    error="Trial period has expired",
                )
            system_access = account.system_access

        return Principal(
            email=email,
            role=role,
            user_type=user_type,
            token_type=token_type,
            system=system,
            system_access=system_access,
            claims=payload,
        )
