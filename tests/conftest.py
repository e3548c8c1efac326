from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from schoolhub.core.app_factory import create_application
from schoolhub.core.config import Settings
from schoolhub.domain.errors import AccountExistsError, CredentialDirectoryError
from schoolhub.domain.models import Account, AdminContact
from schoolhub.services.email_service import EmailResult, EmailService

ADMIN_EMAIL = "admin@school.edu.ph"
ADMIN_PASSWORD = "admin-secret"
USER_PASSWORD = "teacher-pass"


class FakeCredentialDirectory:
    """In-memory credential directory recording every call."""

    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, object]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.error: Optional[Exception] = None

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    def find_uid(self, email: str) -> Optional[str]:
        self.calls.append(("find_uid", email))
        self._check()
        user = self.users.get(email)
        return user["uid"] if user else None

    def create_account(self, email: str, password_hash: str, *, disabled: bool = False) -> str:
        self.calls.append(("create_account", email))
        self._check()
        if email in self.users:
            raise AccountExistsError(email, self.users[email]["uid"])
        uid = f"uid-{len(self.users) + 1}"
        self.users[email] = {"uid": uid, "password_hash": password_hash, "disabled": disabled}
        return uid

    def set_disabled(self, uid: str, disabled: bool) -> None:
        self.calls.append(("set_disabled", uid))
        self._check()
        for user in self.users.values():
            if user["uid"] == uid:
                user["disabled"] = disabled
                return
        raise CredentialDirectoryError(f"No user {uid}")

    def delete_account(self, uid: str) -> None:
        self.calls.append(("delete_account", uid))
        self._check()
        for email, user in list(self.users.items()):
            if user["uid"] == uid:
                del self.users[email]


class RecordingEmailService(EmailService):
    """Email service that keeps sent messages instead of talking to SMTP."""

    def __init__(self) -> None:
        super().__init__(app_url="http://frontend.test")
        self.approvals: List[Account] = []
        self.contacts: List[Tuple[AdminContact, Optional[str]]] = []
        self.fail_with: Optional[str] = None

    def send_approval_email(self, account: Account) -> EmailResult:
        if self.fail_with:
            return EmailResult(False, self.fail_with)
        self.approvals.append(account)
        return EmailResult(True)

    def send_admin_contact_email(self, contact: AdminContact, admin_email: Optional[str]) -> EmailResult:
        if self.fail_with:
            return EmailResult(False, self.fail_with)
        self.contacts.append((contact, admin_email))
        return EmailResult(True)


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.setenv("JWT_SECRET", "test-signing-key")
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "schoolhub.db"))
    monkeypatch.setenv("VIDEO_BASE_DIR", str(tmp_path / "videos"))
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("ADMIN_CONTACT_EMAIL", "support@school.edu.ph")
    for key in ("SMTP_HOST", "SMTP_USERNAME", "SMTP_FROM_EMAIL", "FIREBASE_CREDENTIALS", "ENVIRONMENT"):
        monkeypatch.delenv(key, raising=False)
    return Settings()


@pytest.fixture
def directory() -> FakeCredentialDirectory:
    return FakeCredentialDirectory()


@pytest.fixture
def mailer() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
def client(settings, directory, mailer):
    app = create_application(settings=settings, credential_directory=directory, email_service=mailer)
    with TestClient(app) as test_client:
        yield test_client


def login(client: TestClient, email: str, password: str) -> Dict[str, str]:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client) -> Dict[str, str]:
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


def signup(client: TestClient, email: str, password: str = USER_PASSWORD) -> str:
    response = client.post("/auth/signup", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()["id"]


def approve(client: TestClient, admin_headers: Dict[str, str], account_id: str, **body) -> dict:
    response = client.post(f"/pending-users/{account_id}/approve", json=body, headers=admin_headers)
    assert response.status_code == 200, response.text
    return response.json()


def approved_user(
    client: TestClient,
    admin_headers: Dict[str, str],
    email: str,
    **body,
) -> Tuple[str, Dict[str, str]]:
    account_id = signup(client, email)
    approve(client, admin_headers, account_id, **body)
    return account_id, login(client, email, USER_PASSWORD)
