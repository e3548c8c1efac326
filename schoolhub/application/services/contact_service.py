from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from ...domain.errors import DomainError, NotFoundError
from ...domain.models import AdminContact
from ...domain.ports.persistence import AdminContactRepository
from ...services.email_service import EmailService

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Registration Assistance Request"


class ContactService:
    """Stores support requests from signed-out users and forwards them to the administrator."""

    def __init__(
        self,
        repository: AdminContactRepository,
        email_service: EmailService,
        admin_email: Optional[str],
    ) -> None:
        self._repository = repository
        self._email = email_service
        self._admin_email = admin_email

    def submit(self, email: str, message: str, subject: Optional[str] = None) -> AdminContact:
        if not email or not message or not message.strip():
            raise DomainError("Email and message are required")
        contact = AdminContact(
            id=uuid.uuid4().hex,
            email=email.strip().lower(),
            subject=(subject or "").strip() or DEFAULT_SUBJECT,
            message=message.strip(),
            created_at=datetime.now(timezone.utc),
        )
        self._repository.create_contact(contact)

        result = self._email.send_admin_contact_email(contact, self._admin_email)
        contact.email_sent = result.success
        contact.email_error = result.error
        if result.success:
            contact.email_sent_at = datetime.now(timezone.utc)
        else:
            logger.warning("Admin notification for contact %s not sent: %s", contact.id, result.error)
        self._repository.update_contact_delivery(contact)
        return contact

    def list(self) -> List[AdminContact]:
        return self._repository.list_contacts()

    def mark_read(self, contact_id: str, reader: str) -> AdminContact:
        contact = self._repository.mark_contact_read(contact_id, reader)
        if contact is None:
            raise NotFoundError("Contact not found")
        return contact
