from dataclasses import dataclass

from ..application.services.approval_service import ApprovalService
from ..application.services.auth_service import AuthService
from ..application.services.contact_service import ContactService
from ..application.services.records_service import RecordsService
from ..application.services.token_service import TokenService
from .config import Settings
from ..domain.ports.persistence import CredentialDirectory, PersistenceGateway
from ..services.email_service import EmailService
from ..services.video_library import VideoLibrary


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    credential_directory: CredentialDirectory
    email_service: EmailService
    auth_service: AuthService
    token_service: TokenService
    approval_service: ApprovalService
    contact_service: ContactService
    records_service: RecordsService
    video_library: VideoLibrary
