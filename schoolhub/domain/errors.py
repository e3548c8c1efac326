"""Typed errors raised by the application services.

Every error carries the HTTP status it maps to plus a short ``error`` label;
the API layer renders them as ``{"error": ..., "message": ...}``.
"""

from typing import Optional


class DomainError(Exception):
    status_code = 400
    error = "Bad request"

    def __init__(self, message: str, *, error: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error


class ConflictError(DomainError):
    error = "Conflict"


class NotFoundError(DomainError):
    status_code = 404
    error = "Not found"


class AuthenticationError(DomainError):
    status_code = 401
    error = "Authentication failed"


class PermissionDeniedError(DomainError):
    status_code = 403
    error = "Access denied"


class RateLimitExceededError(DomainError):
    status_code = 429
    error = "Daily limit reached"


class RangeNotSatisfiableError(DomainError):
    status_code = 416
    error = "Range not satisfiable"

    def __init__(self, message: str, size: int) -> None:
        super().__init__(message)
        self.size = size


class PersistenceError(DomainError):
    status_code = 500
    error = "Database error"


class NotificationError(DomainError):
    status_code = 500
    error = "Failed to send email"


class CredentialDirectoryError(Exception):
    """Raised by the credential directory adapter; never rendered directly."""


class AccountExistsError(CredentialDirectoryError):
    def __init__(self, email: str, uid: Optional[str] = None) -> None:
        super().__init__(f"User account already exists for {email}")
        self.email = email
        self.uid = uid


class DirectoryUnavailableError(CredentialDirectoryError):
    pass
