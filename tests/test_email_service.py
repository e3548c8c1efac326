import smtplib
from datetime import datetime, timezone

from schoolhub.domain.models import Account, AdminContact
from schoolhub.services.email_service import EmailService


class FakeSMTP:
    sent = []
    fail = False

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        if FakeSMTP.fail:
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


def _configured(monkeypatch) -> EmailService:
    FakeSMTP.sent = []
    FakeSMTP.fail = False
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return EmailService(
        smtp_host="smtp.school.edu.ph",
        smtp_username="mailer",
        smtp_password="pw",
        from_email="noreply@school.edu.ph",
    )


def _account(**overrides) -> Account:
    values = {"id": "a", "email": "teacher@school.edu.ph", "password_hash": "h", "status": "approved"}
    values.update(overrides)
    return Account(**values)


def test_describe_access_and_systems():
    trial = _account(access_type="trial", expires_at=datetime(2025, 3, 9, tzinfo=timezone.utc))
    assert EmailService.describe_access(trial) == "trial access until March 09, 2025"
    assert EmailService.describe_access(_account()) == "unlimited access"
    assert EmailService.describe_systems(_account(system_access="grading")) == "Grading System"
    assert EmailService.describe_systems(_account()) == "all systems"


def test_unconfigured_service_only_logs():
    service = EmailService()
    assert service.enabled is False
    assert service.send_approval_email(_account()).success is True


def test_approval_email_is_sent_over_smtp(monkeypatch):
    service = _configured(monkeypatch)

    result = service.send_approval_email(_account(system_access="evaluation"))

    assert result.success is True
    message = FakeSMTP.sent[0]
    assert message["To"] == "teacher@school.edu.ph"
    assert message["Subject"] == "Your Account Has Been Approved"


def test_contact_email_sets_reply_to(monkeypatch):
    service = _configured(monkeypatch)
    contact = AdminContact(
        id="c", email="visitor@school.edu.ph", subject="Help", message="Hi", created_at=datetime.now(timezone.utc)
    )

    assert service.send_admin_contact_email(contact, None).success is False
    assert service.send_admin_contact_email(contact, "admin@school.edu.ph").success is True
    assert FakeSMTP.sent[0]["Reply-To"] == "visitor@school.edu.ph"


def test_smtp_failure_is_reported(monkeypatch):
    service = _configured(monkeypatch)
    FakeSMTP.fail = True

    result = service.send_approval_email(_account())

    assert result.success is False
    assert "bad credentials" in result.error
