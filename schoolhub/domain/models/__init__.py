"""Domain models for the SchoolHub backend."""

from .account import Account
from .admin_contact import AdminContact
from .api_token import ApiToken

__all__ = [
    "Account",
    "AdminContact",
    "ApiToken",
]
