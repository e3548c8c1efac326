from typing import List

from fastapi import APIRouter, Depends

from ....application.services.contact_service import ContactService
from ....core.dependencies import get_contact_service
from ....domain.authorization import READ, UPDATE, Principal
from ....domain.models import AdminContact
from ..dependencies import require_permission
from ..schemas.contacts import ContactRequest, ContactResponse, ContactSubmitted

router = APIRouter(prefix="/admin-contacts", tags=["admin-contacts"])


def _contact(contact: AdminContact) -> ContactResponse:
    return ContactResponse(
        id=contact.id,
        email=contact.email,
        subject=contact.subject,
        message=contact.message,
        created_at=contact.created_at,
        status=contact.status,
        email_sent=contact.email_sent,
        email_sent_at=contact.email_sent_at,
        email_error=contact.email_error,
        read_at=contact.read_at,
        read_by=contact.read_by,
    )


@router.post("", response_model=ContactSubmitted)
def submit_contact(
    request: ContactRequest,
    contact_service: ContactService = Depends(get_contact_service),
) -> ContactSubmitted:
    contact = contact_service.submit(request.email, request.message, request.subject)
    return ContactSubmitted(id=contact.id, email_sent=contact.email_sent)


@router.get("", response_model=List[ContactResponse])
def list_contacts(
    _: Principal = Depends(require_permission("contacts", READ)),
    contact_service: ContactService = Depends(get_contact_service),
) -> List[ContactResponse]:
    return [_contact(contact) for contact in contact_service.list()]


@router.post("/{contact_id}/read", response_model=ContactResponse)
def mark_contact_read(
    contact_id: str,
    principal: Principal = Depends(require_permission("contacts", UPDATE)),
    contact_service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    return _contact(contact_service.mark_read(contact_id, principal.email))
