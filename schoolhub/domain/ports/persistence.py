from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from ..models import Account, AdminContact, ApiToken


class AccountRepository(Protocol):
    """Persistence functions related to Token System accounts."""

    def create_account(self, account: Account) -> Account:
        ...

    def get_account(self, account_id: str) -> Optional[Account]:
        ...

    def get_account_by_email(self, email: str) -> Optional[Account]:
        ...

    def list_accounts(self) -> List[Account]:
        ...

    def save_account(self, account: Account) -> Account:
        ...

    def delete_account(self, account_id: str) -> bool:
        ...


class ApiTokenRepository(Protocol):
    """Persistence functions related to issued API tokens."""

    def create_token(self, token: ApiToken) -> ApiToken:
        ...

    def get_token(self, token_id: str) -> Optional[ApiToken]:
        ...

    def list_tokens_by_creator(self, email: str) -> List[ApiToken]:
        ...

    def count_tokens_created_since(self, email: str, since: datetime) -> int:
        ...

    def update_token_system(self, token_id: str, system: str) -> Optional[ApiToken]:
        ...

    def delete_token(self, token_id: str) -> bool:
        ...

    def delete_tokens_by_creator(self, email: str) -> int:
        ...


class AdminContactRepository(Protocol):
    """Persistence functions related to admin contact requests."""

    def create_contact(self, contact: AdminContact) -> AdminContact:
        ...

    def update_contact_delivery(self, contact: AdminContact) -> AdminContact:
        ...

    def list_contacts(self) -> List[AdminContact]:
        ...

    def mark_contact_read(self, contact_id: str, reader: str) -> Optional[AdminContact]:
        ...


class PersistenceGateway(
    AccountRepository,
    ApiTokenRepository,
    AdminContactRepository,
    Protocol,
):
    """Composite gateway combining every Token System persistence concern."""

    pass


class CredentialDirectory(Protocol):
    """External system of record for login credentials."""

    def find_uid(self, email: str) -> Optional[str]:
        ...

    def create_account(self, email: str, password_hash: str, *, disabled: bool = False) -> str:
        ...

    def set_disabled(self, uid: str, disabled: bool) -> None:
        ...

    def delete_account(self, uid: str) -> None:
        ...


class RecordRepository(Protocol):
    """Generic storage for Grading and Evaluation records."""

    def list_records(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        ...

    def get_record(self, table: str, record_id: int) -> Optional[Dict[str, Any]]:
        ...

    def create_record(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update_record(self, table: str, record_id: int, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def delete_record(self, table: str, record_id: int) -> bool:
        ...
