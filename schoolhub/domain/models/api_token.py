"""API token domain model for downstream system access."""

from datetime import datetime

NEVER_EXPIRES = "never_expires"


class ApiToken:
    """
    ApiToken entity representing a signed bearer credential.

    Attributes:
        id: Unique identifier, also embedded as the ``jti`` claim
        token: The signed JWT
        description: Free-text purpose given by the requester
        created_by: Email of the requester
        created_at: Issue timestamp (UTC)
        expiration: Duration string such as ``30d`` or ``never_expires``
        status: Token status, ``active`` on issue
        system: Downstream system the token addresses
        user_type: Role the token carries inside the downstream system
        role: Token System role of the requester
    """

    def __init__(
        self,
        id: str,
        token: str,
        description: str,
        created_by: str,
        created_at: datetime,
        expiration: str,
        system: str,
        user_type: str,
        role: str,
        status: str = "active",
    ):
        self.id = id
        self.token = token
        self.description = description
        self.created_by = created_by
        self.created_at = created_at
        self.expiration = expiration
        self.system = system
        self.user_type = user_type
        self.role = role
        self.status = status

    @property
    def display_token(self) -> str:
        return f"{self.token[:15]}..."

    @property
    def never_expires(self) -> bool:
        return self.expiration == NEVER_EXPIRES

    def __repr__(self) -> str:
        return f"<ApiToken id={self.id} created_by={self.created_by} system={self.system}>"

