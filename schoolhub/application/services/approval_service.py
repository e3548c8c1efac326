"""Registration lifecycle: signup, approval decisions and account removal."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from ...domain.access import resolve_access_type
from ...domain.errors import (
    AccountExistsError,
    CredentialDirectoryError,
    DomainError,
    NotFoundError,
    NotificationError,
    PersistenceError,
)
from ...domain.models import Account
from ...domain.models.account import (
    ACCESS_TRIAL,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    SYSTEM_ACCESS_CHOICES,
    SYSTEM_BOTH,
)
from ...domain.ports.persistence import CredentialDirectory, PersistenceGateway
from ...services.email_service import EmailService
from .auth_service import hash_password

logger = logging.getLogger(__name__)

ALREADY_EXISTS_NOTE = "User account already exists"

STEP_DIRECTORY = "credential_directory"
STEP_TOKENS = "tokens"
STEP_ACCOUNT = "account"


@dataclass
class ApprovalOutcome:
    account: Account
    warning: Optional[str] = None


@dataclass
class StepOutcome:
    name: str
    succeeded: bool
    detail: Optional[str] = None


@dataclass
class DeletionReport:
    """Recorded outcome of every step of an account deletion."""

    email: str
    steps: List[StepOutcome] = field(default_factory=list)
    tokens_deleted: int = 0

    def step(self, name: str) -> Optional[StepOutcome]:
        return next((item for item in self.steps if item.name == name), None)

    def _succeeded(self, name: str) -> bool:
        outcome = self.step(name)
        return bool(outcome and outcome.succeeded)

    @property
    def firebase_account_deleted(self) -> bool:
        return self._succeeded(STEP_DIRECTORY)

    @property
    def account_deleted(self) -> bool:
        return self._succeeded(STEP_ACCOUNT)

    @property
    def all_data_deleted(self) -> bool:
        return all(item.succeeded for item in self.steps)

    @property
    def message(self) -> str:
        if self.all_data_deleted:
            return f"All data for {self.email} was deleted"
        failed = ", ".join(f"{item.name} ({item.detail})" for item in self.steps if not item.succeeded)
        return f"Some data for {self.email} could not be deleted: {failed}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "firebase_account_deleted": self.firebase_account_deleted,
            "tokens_deleted": self.tokens_deleted,
            "all_data_deleted": self.all_data_deleted,
            "message": self.message,
            "steps": [
                {"name": item.name, "succeeded": item.succeeded, "detail": item.detail}
                for item in self.steps
            ],
        }


class ApprovalService:
    """Moves registrations between pending, approved and rejected and keeps side systems in step."""

    def __init__(
        self,
        persistence: PersistenceGateway,
        directory: CredentialDirectory,
        email_service: EmailService,
    ) -> None:
        self._persistence = persistence
        self._directory = directory
        self._email = email_service

    # Registration -----------------------------------------------------
    def signup(self, email: str, password: str) -> Account:
        email_clean = (email or "").strip().lower()
        if not email_clean or not password:
            raise DomainError("Email and password are required")
        account = Account(
            id=uuid.uuid4().hex,
            email=email_clean,
            password_hash=hash_password(password),
            status=STATUS_PENDING,
            request_date=self._now(),
        )
        self._persistence.create_account(account)
        logger.info("Registration request stored for %s", email_clean)
        return account

    def list_accounts(self) -> List[Account]:
        return self._persistence.list_accounts()

    def get(self, account_id: str) -> Account:
        account = self._persistence.get_account(account_id)
        if account is None:
            raise NotFoundError("User not found")
        return account

    # Decisions --------------------------------------------------------
    def approve(
        self,
        account_id: str,
        access_type: Optional[str] = None,
        system_access: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> ApprovalOutcome:
        account = self.get(account_id)
        if account.status != STATUS_PENDING:
            raise DomainError(f"Only pending registrations can be approved (current status: {account.status})")
        resolved_access, trial_days = resolve_access_type(access_type)
        resolved_system = self._validate_system_access(system_access)

        now = self._now()
        account.status = STATUS_APPROVED
        account.approved_at = now
        account.approved_by = actor
        self._apply_access(account, resolved_access, trial_days, now)
        account.system_access = resolved_system

        warning = self._provision(account)
        self._persistence.save_account(account)
        logger.info(
            "Approved %s with %s access to %s", account.email, account.access_type, account.system_access
        )

        self._notify(account)
        return ApprovalOutcome(account=account, warning=warning)

    def reject(self, account_id: str, reason: Optional[str] = None, actor: Optional[str] = None) -> Account:
        account = self.get(account_id)
        if account.status != STATUS_PENDING:
            raise DomainError(f"Only pending registrations can be rejected (current status: {account.status})")
        account.status = STATUS_REJECTED
        account.rejected_at = self._now()
        account.rejected_by = actor
        account.rejection_reason = reason
        self._persistence.save_account(account)
        logger.info("Rejected registration for %s", account.email)
        return account

    def edit(
        self,
        account_id: str,
        access_type: Optional[str] = None,
        system_access: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Account:
        account = self.get(account_id)
        if account.status != STATUS_APPROVED:
            raise DomainError("Can only edit approved users")
        now = self._now()
        if access_type is not None:
            resolved_access, trial_days = resolve_access_type(access_type)
            self._apply_access(account, resolved_access, trial_days, now)
        if system_access is not None:
            account.system_access = self._validate_system_access(system_access)
        account.updated_at = now
        account.updated_by = actor
        self._persistence.save_account(account)
        logger.info("Updated access settings for %s", account.email)
        return account

    def disable(self, account_id: str) -> ApprovalOutcome:
        return self._set_disabled(account_id, True)

    def enable(self, account_id: str) -> ApprovalOutcome:
        return self._set_disabled(account_id, False)

    def resend_email(self, account_id: str) -> Account:
        account = self.get(account_id)
        if account.status != STATUS_APPROVED:
            raise DomainError("User is not approved yet")
        if not self._notify(account):
            raise NotificationError(account.email_error or "Email could not be sent")
        return account

    # Deletion saga ----------------------------------------------------
    def delete(self, account_id: str) -> DeletionReport:
        account = self.get(account_id)
        report = DeletionReport(email=account.email)

        self._run_step(report, STEP_DIRECTORY, lambda: self._delete_directory_account(account))
        self._run_step(report, STEP_TOKENS, lambda: self._delete_tokens(account, report))
        self._run_step(report, STEP_ACCOUNT, lambda: self._delete_local_account(account))

        logger.info("Deletion of %s finished: %s", account.email, report.message)
        if not report.account_deleted:
            raise PersistenceError(report.message)
        return report

    @staticmethod
    def _run_step(report: DeletionReport, name: str, action: Callable[[], Optional[str]]) -> None:
        try:
            detail = action()
        except Exception as exc:
            logger.exception("Deletion step %s failed for %s", name, report.email)
            report.steps.append(StepOutcome(name, False, str(exc)))
            return
        report.steps.append(StepOutcome(name, True, detail))

    def _delete_directory_account(self, account: Account) -> Optional[str]:
        uid = account.uid
        if uid is None:
            if account.status != STATUS_APPROVED:
                return "No credential directory account was provisioned"
            uid = self._directory.find_uid(account.email)
            if uid is None:
                return "No credential directory account found"
        self._directory.delete_account(uid)
        return None

    def _delete_tokens(self, account: Account, report: DeletionReport) -> str:
        report.tokens_deleted = self._persistence.delete_tokens_by_creator(account.email)
        return f"{report.tokens_deleted} token(s) deleted"

    def _delete_local_account(self, account: Account) -> None:
        if not self._persistence.delete_account(account.id):
            raise NotFoundError("Account disappeared before it could be deleted")

    # Helpers ----------------------------------------------------------
    def _provision(self, account: Account) -> Optional[str]:
        try:
            account.uid = self._directory.create_account(account.email, account.password_hash)
            account.note = None
            account.directory_error = None
        except AccountExistsError as exc:
            account.uid = exc.uid or account.uid
            account.note = ALREADY_EXISTS_NOTE
            account.directory_error = None
            logger.info("Credential directory account already exists for %s", account.email)
        except CredentialDirectoryError as exc:
            account.directory_error = str(exc)
            logger.warning("Approved %s without a credential directory account: %s", account.email, exc)
            return f"User approved, but the login account could not be provisioned: {exc}"
        return None

    def _notify(self, account: Account) -> bool:
        result = self._email.send_approval_email(account)
        account.email_sent = result.success
        account.email_error = result.error
        if result.success:
            account.email_sent_at = self._now()
        self._persistence.save_account(account)
        return result.success

    def _set_disabled(self, account_id: str, disabled: bool) -> ApprovalOutcome:
        account = self.get(account_id)
        now = self._now()
        account.is_disabled = disabled
        if disabled:
            account.disabled_at = now
        else:
            account.enabled_at = now
        self._persistence.save_account(account)
        logger.info("Account %s %s", account.email, "disabled" if disabled else "enabled")

        warning = None
        if account.uid:
            try:
                self._directory.set_disabled(account.uid, disabled)
            except CredentialDirectoryError as exc:
                logger.warning("Could not mirror disabled=%s for %s: %s", disabled, account.email, exc)
                warning = f"Credential directory was not updated: {exc}"
        return ApprovalOutcome(account=account, warning=warning)

    @staticmethod
    def _apply_access(account: Account, access_type: str, trial_days: Optional[int], now: datetime) -> None:
        account.access_type = access_type
        if access_type == ACCESS_TRIAL:
            account.trial_days = trial_days
            account.expires_at = now + timedelta(days=trial_days)
        else:
            account.trial_days = None
            account.expires_at = None

    @staticmethod
    def _validate_system_access(system_access: Optional[str]) -> str:
        value = system_access or SYSTEM_BOTH
        if value not in SYSTEM_ACCESS_CHOICES:
            raise DomainError(f"Invalid system access: {system_access}")
        return value

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)
