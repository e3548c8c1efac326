import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...domain.errors import ConflictError, PersistenceError
from ...domain.models import Account, AdminContact, ApiToken
from ...domain.ports.persistence import PersistenceGateway
from .migrations import apply_migrations

_ACCOUNT_COLUMNS = (
    "id",
    "email",
    "password_hash",
    "role",
    "status",
    "request_date",
    "access_type",
    "trial_days",
    "system_access",
    "expires_at",
    "is_disabled",
    "uid",
    "approved_at",
    "approved_by",
    "rejected_at",
    "rejected_by",
    "rejection_reason",
    "disabled_at",
    "enabled_at",
    "updated_at",
    "updated_by",
    "note",
    "directory_error",
    "email_sent",
    "email_sent_at",
    "email_error",
)
_ACCOUNT_DATETIMES = {
    "request_date",
    "expires_at",
    "approved_at",
    "rejected_at",
    "disabled_at",
    "enabled_at",
    "updated_at",
    "email_sent_at",
}
_ACCOUNT_BOOLEANS = {"is_disabled", "email_sent"}


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the Token System persistence gateway."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.path = path
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        with self._lock:
            apply_migrations(self._conn)

    def close(self) -> None:
        self._conn.close()

    # AccountRepository API --------------------------------------------------
    def create_account(self, account: Account) -> Account:
        account.email = account.email.strip().lower()
        if account.request_date is None:
            account.request_date = datetime.now(timezone.utc)
        values = self._account_values(account)
        placeholders = ", ".join("?" for _ in _ACCOUNT_COLUMNS)
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    f"INSERT INTO accounts ({', '.join(_ACCOUNT_COLUMNS)}) VALUES ({placeholders})",
                    values,
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Email already registered", error="Email already registered") from exc
        return account

    def get_account(self, account_id: str) -> Optional[Account]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM accounts WHERE id = ?", (account_id,))
            row = cur.fetchone()
        return self._row_to_account(row) if row else None

    def get_account_by_email(self, email: str) -> Optional[Account]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM accounts WHERE email = ?", (email.strip().lower(),)
            )
            row = cur.fetchone()
        return self._row_to_account(row) if row else None

    def list_accounts(self) -> List[Account]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM accounts ORDER BY request_date DESC, rowid DESC"
            )
            rows = cur.fetchall()
        return [self._row_to_account(row) for row in rows]

    def save_account(self, account: Account) -> Account:
        columns = [column for column in _ACCOUNT_COLUMNS if column != "id"]
        assignments = ", ".join(f"{column} = ?" for column in columns)
        values = self._account_values(account)[1:]
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    f"UPDATE accounts SET {assignments} WHERE id = ?",
                    (*values, account.id),
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Email already registered", error="Email already registered") from exc
        if cur.rowcount == 0:
            raise PersistenceError(f"Account {account.id} no longer exists.")
        return account

    def delete_account(self, account_id: str) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
        return cur.rowcount > 0

    # ApiTokenRepository API -------------------------------------------------
    def create_token(self, token: ApiToken) -> ApiToken:
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    INSERT INTO api_tokens (
                        id, token, description, created_by, created_at,
                        expiration, status, system, user_type, role
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        token.id,
                        token.token,
                        token.description,
                        token.created_by,
                        self._format(token.created_at),
                        token.expiration,
                        token.status,
                        token.system,
                        token.user_type,
                        token.role,
                    ),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc
        return token

    def get_token(self, token_id: str) -> Optional[ApiToken]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM api_tokens WHERE id = ?", (token_id,))
            row = cur.fetchone()
        return self._row_to_token(row) if row else None

    def list_tokens_by_creator(self, email: str) -> List[ApiToken]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM api_tokens WHERE created_by = ? ORDER BY created_at DESC, rowid DESC",
                (email,),
            )
            rows = cur.fetchall()
        return [self._row_to_token(row) for row in rows]

    def count_tokens_created_since(self, email: str, since: datetime) -> int:
        with self._lock:
            cur = self._conn.execute(
                "SELECT COUNT(*) FROM api_tokens WHERE created_by = ? AND created_at >= ?",
                (email, self._format(since)),
            )
            return cur.fetchone()[0]

    def update_token_system(self, token_id: str, system: str) -> Optional[ApiToken]:
        with self._lock, self._conn:
            self._conn.execute("UPDATE api_tokens SET system = ? WHERE id = ?", (system, token_id))
            cur = self._conn.execute("SELECT * FROM api_tokens WHERE id = ?", (token_id,))
            row = cur.fetchone()
        return self._row_to_token(row) if row else None

    def delete_token(self, token_id: str) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM api_tokens WHERE id = ?", (token_id,))
        return cur.rowcount > 0

    def delete_tokens_by_creator(self, email: str) -> int:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM api_tokens WHERE created_by = ?", (email,))
        return cur.rowcount

    # AdminContactRepository API ---------------------------------------------
    def create_contact(self, contact: AdminContact) -> AdminContact:
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO admin_contacts (
                    id, email, subject, message, created_at, status,
                    email_sent, email_sent_at, email_error, read_at, read_by
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    contact.id,
                    contact.email,
                    contact.subject,
                    contact.message,
                    self._format(contact.created_at),
                    contact.status,
                    int(contact.email_sent),
                    self._format(contact.email_sent_at),
                    contact.email_error,
                    self._format(contact.read_at),
                    contact.read_by,
                ),
            )
        return contact

    def update_contact_delivery(self, contact: AdminContact) -> AdminContact:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE admin_contacts SET email_sent = ?, email_sent_at = ?, email_error = ? WHERE id = ?",
                (
                    int(contact.email_sent),
                    self._format(contact.email_sent_at),
                    contact.email_error,
                    contact.id,
                ),
            )
        return contact

    def list_contacts(self) -> List[AdminContact]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM admin_contacts ORDER BY created_at DESC, rowid DESC"
            )
            rows = cur.fetchall()
        return [self._row_to_contact(row) for row in rows]

    def mark_contact_read(self, contact_id: str, reader: str) -> Optional[AdminContact]:
        now = self._format(datetime.now(timezone.utc))
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE admin_contacts SET status = 'read', read_at = ?, read_by = ? WHERE id = ?",
                (now, reader, contact_id),
            )
            cur = self._conn.execute("SELECT * FROM admin_contacts WHERE id = ?", (contact_id,))
            row = cur.fetchone()
        return self._row_to_contact(row) if row else None

    # Helpers ----------------------------------------------------------------
    @staticmethod
    def _format(value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(microsecond=0).isoformat()

    @staticmethod
    def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        try:
            result = datetime.fromisoformat(value)
        except ValueError:
            result = datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
        if result.tzinfo is None:
            return result.replace(tzinfo=timezone.utc)
        return result.astimezone(timezone.utc)

    def _account_values(self, account: Account) -> List[Any]:
        values: List[Any] = []
        for column in _ACCOUNT_COLUMNS:
            value = getattr(account, column)
            if column in _ACCOUNT_DATETIMES:
                value = self._format(value)
            elif column in _ACCOUNT_BOOLEANS:
                value = int(bool(value))
            values.append(value)
        return values

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        data: Dict[str, Any] = {}
        for column in _ACCOUNT_COLUMNS:
            value = row[column]
            if column in _ACCOUNT_DATETIMES:
                value = self._parse_datetime(value)
            elif column in _ACCOUNT_BOOLEANS:
                value = bool(value)
            data[column] = value
        return Account(**data)

    def _row_to_token(self, row: sqlite3.Row) -> ApiToken:
        return ApiToken(
            id=row["id"],
            token=row["token"],
            description=row["description"],
            created_by=row["created_by"],
            created_at=self._parse_datetime(row["created_at"]),
            expiration=row["expiration"],
            system=row["system"],
            user_type=row["user_type"],
            role=row["role"],
            status=row["status"],
        )

    def _row_to_contact(self, row: sqlite3.Row) -> AdminContact:
        return AdminContact(
            id=row["id"],
            email=row["email"],
            subject=row["subject"],
            message=row["message"],
            created_at=self._parse_datetime(row["created_at"]),
            status=row["status"],
            email_sent=bool(row["email_sent"]),
            email_sent_at=self._parse_datetime(row["email_sent_at"]),
            email_error=row["email_error"],
            read_at=self._parse_datetime(row["read_at"]),
            read_by=row["read_by"],
        )
