"""Credential directory adapters backed by Firebase Authentication."""

import json
import logging
import uuid
from pathlib import Path
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from ...domain.errors import AccountExistsError, CredentialDirectoryError, DirectoryUnavailableError
from ...domain.ports.persistence import CredentialDirectory

logger = logging.getLogger(__name__)

_APP_NAME = "schoolhub"


def load_certificate(source: str) -> credentials.Certificate:
    """Build a service-account certificate from a file path or an inline JSON document."""
    candidate = source.strip()
    if candidate.startswith("{"):
        try:
            return credentials.Certificate(json.loads(candidate))
        except json.JSONDecodeError as exc:
            raise RuntimeError("FIREBASE_CREDENTIALS does not contain valid JSON") from exc
    path = Path(candidate)
    if not path.exists():
        raise RuntimeError(f"Firebase credentials file not found: {path}")
    return credentials.Certificate(str(path))


class FirebaseCredentialDirectory(CredentialDirectory):
    """Mirror approved accounts into Firebase Authentication through the Admin SDK."""

    def __init__(self, credentials_source: str) -> None:
        try:
            self._app = firebase_admin.get_app(_APP_NAME)
        except ValueError:
            self._app = firebase_admin.initialize_app(load_certificate(credentials_source), name=_APP_NAME)
        logger.info("Firebase credential directory initialised for project %s", self._app.project_id)

    def find_uid(self, email: str) -> Optional[str]:
        try:
            return auth.get_user_by_email(email, app=self._app).uid
        except auth.UserNotFoundError:
            return None
        except FirebaseError as exc:
            raise CredentialDirectoryError(str(exc)) from exc

    def create_account(self, email: str, password_hash: str, *, disabled: bool = False) -> str:
        """Import the account with its bcrypt hash so no plaintext password is needed."""
        existing = self.find_uid(email)
        if existing:
            raise AccountExistsError(email, existing)
        uid = uuid.uuid4().hex
        record = auth.ImportUserRecord(
            uid,
            email=email,
            email_verified=False,
            password_hash=password_hash.encode("utf-8"),
            disabled=disabled,
        )
        try:
            result = auth.import_users([record], hash_alg=auth.UserImportHash.bcrypt(), app=self._app)
        except FirebaseError as exc:
            raise CredentialDirectoryError(str(exc)) from exc
        if result.failure_count:
            reason = result.errors[0].reason if result.errors else "unknown import failure"
            if "exist" in reason.lower():
                raise AccountExistsError(email)
            raise CredentialDirectoryError(reason)
        logger.info("Provisioned credential directory account for %s", email)
        return uid

    def set_disabled(self, uid: str, disabled: bool) -> None:
        try:
            auth.update_user(uid, disabled=disabled, app=self._app)
        except FirebaseError as exc:
            raise CredentialDirectoryError(str(exc)) from exc

    def delete_account(self, uid: str) -> None:
        try:
            auth.delete_user(uid, app=self._app)
        except auth.UserNotFoundError:
            logger.info("Credential directory account %s was already removed", uid)
        except FirebaseError as exc:
            raise CredentialDirectoryError(str(exc)) from exc


class NullCredentialDirectory(CredentialDirectory):
    """Stand-in used when no Firebase credentials are configured."""

    def _unavailable(self) -> DirectoryUnavailableError:
        return DirectoryUnavailableError("Credential directory is not configured (FIREBASE_CREDENTIALS unset)")

    def find_uid(self, email: str) -> Optional[str]:
        raise self._unavailable()

    def create_account(self, email: str, password_hash: str, *, disabled: bool = False) -> str:
        raise self._unavailable()

    def set_disabled(self, uid: str, disabled: bool) -> None:
        raise self._unavailable()

    def delete_account(self, uid: str) -> None:
        raise self._unavailable()


def build_credential_directory(credentials_source: Optional[str]) -> CredentialDirectory:
    if not credentials_source:
        logger.warning("FIREBASE_CREDENTIALS not set; approvals will run without a credential directory")
        return NullCredentialDirectory()
    return FirebaseCredentialDirectory(credentials_source)
