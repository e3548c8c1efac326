"""Service for sending account notifications."""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from ..core.config import Settings
from ..domain.models import Account, AdminContact
from ..domain.models.account import SYSTEM_EVALUATION, SYSTEM_GRADING

logger = logging.getLogger(__name__)

_SYSTEM_LABELS = {
    SYSTEM_GRADING: "Grading System",
    SYSTEM_EVALUATION: "Evaluation System",
}


@dataclass
class EmailResult:
    success: bool
    error: Optional[str] = None


class EmailService:
    """Service for sending emails via SMTP, or logging them when SMTP is not configured."""

    def __init__(
        self,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_username: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = "SchoolHub",
        app_url: str = "http://localhost:5173",
        support_email: Optional[str] = None,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.from_email = from_email
        self.from_name = from_name
        self.app_url = app_url
        self.support_email = support_email
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailService":
        return cls(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_username=settings.smtp_username,
            smtp_password=settings.smtp_password,
            from_email=settings.smtp_from_email,
            app_url=settings.app_url,
            support_email=settings.admin_contact_email,
        )

    @staticmethod
    def describe_access(account: Account) -> str:
        if account.is_trial:
            if account.expires_at:
                return f"trial access until {account.expires_at.strftime('%B %d, %Y')}"
            return "trial access"
        return "unlimited access"

    @staticmethod
    def describe_systems(account: Account) -> str:
        return _SYSTEM_LABELS.get(account.system_access, "all systems")

    def send_approval_email(self, account: Account) -> EmailResult:
        """
        Tell a user their registration was approved.

        Args:
            account: The approved account; access type, trial expiry and
                system access are reflected in the message

        Returns:
            EmailResult describing whether the message went out
        """
        access = self.describe_access(account)
        systems = self.describe_systems(account)
        subject = "Your Account Has Been Approved"
        support = ""
        if self.support_email:
            support = (
                f'<p style="color: #777; font-size: 12px;">For support, please contact '
                f'<a href="mailto:{escape(self.support_email)}">{escape(self.support_email)}</a></p>'
            )

        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
                <div style="background-color: #4A90E2; padding: 10px 20px; text-align: center;">
                    <h2 style="color: white; margin: 0;">Your Account Has Been Approved!</h2>
                </div>

                <div style="padding: 20px; border: 1px solid #ddd; border-top: none;">
                    <p>Hello,</p>
                    <p>Great news! Your account has been approved by the administrator.</p>
                    <p>You now have <strong>{access}</strong> to the <strong>{systems}</strong>.</p>
                    <p>You can log in using your registered email and password.</p>
                    <a href="{escape(self.app_url)}"
                       style="display: inline-block; background-color: #4A90E2; color: white;
                              padding: 10px 20px; text-decoration: none; border-radius: 4px;">
                        Log In Now
                    </a>
                </div>

                <div style="margin-top: 20px; text-align: center;">
                    <p style="color: #777; font-size: 12px;">
                        This is an automated message, please do not reply directly to this email.
                    </p>
                    {support}
                </div>
            </body>
        </html>
        """

        text_body = f"""
        Your Account Has Been Approved!

        Your account has been approved by the administrator.
        You now have {access} to the {systems}.

        Log in with your registered email and password at:
        {self.app_url}
        """

        return self._send_email(account.email, subject, html_body, text_body)

    def send_admin_contact_email(self, contact: AdminContact, admin_email: Optional[str]) -> EmailResult:
        """Forward a contact request to the administrator with ``Reply-To`` set to the sender."""
        if not admin_email:
            return EmailResult(False, "No administrator email configured")

        subject = f"[SchoolHub contact] {contact.subject}"
        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #1e293b;">New contact request</h2>
                <p><strong>From:</strong> {escape(contact.email)}</p>
                <p><strong>Subject:</strong> {escape(contact.subject)}</p>
                <p style="white-space: pre-wrap;">{escape(contact.message)}</p>
            </body>
        </html>
        """
        text_body = f"New contact request\n\nFrom: {contact.email}\nSubject: {contact.subject}\n\n{contact.message}\n"

        return self._send_email(admin_email, subject, html_body, text_body, reply_to=contact.email)

    def _send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
        reply_to: Optional[str] = None,
    ) -> EmailResult:
        if not self.enabled:
            logger.info("SMTP not configured; email to %s not sent. Subject: %s\n%s", to_email, subject, text_body)
            return EmailResult(True)

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email
            if reply_to:
                msg["Reply-To"] = reply_to

            msg.attach(MIMEText(text_body, "plain", "utf-8"))
            msg.attach(MIMEText(html_body, "html", "utf-8"))

            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to_email, exc)
            return EmailResult(False, str(exc))

        logger.info("Sent email '%s' to %s", subject, to_email)
        return EmailResult(True)
