from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.auth_service import AuthService
from ...core.dependencies import get_auth_service
from ...domain.authorization import TOKEN_SYSTEM_RESOURCES, TOKEN_TYPE_SESSION, Principal, authorize
from ...domain.errors import AuthenticationError, PermissionDeniedError

AUTH_COOKIE = "auth_token"

_bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> str:
    if credentials is not None and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    token = request.cookies.get(AUTH_COOKIE)
    if token:
        return token
    raise AuthenticationError("No token provided", error="No token provided")


def get_current_principal(
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Principal:
    return auth_service.verify_token(token)


def require_session(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.token_type != TOKEN_TYPE_SESSION:
        raise AuthenticationError("API tokens cannot be used with the Token System.", error="Invalid token")
    return principal


def require_permission(resource: str, action: str) -> Callable[..., Principal]:
    """Dependency enforcing the central policy for ``(resource, action)``."""
    source = require_session if resource in TOKEN_SYSTEM_RESOURCES else get_current_principal

    def dependency(principal: Principal = Depends(source)) -> Principal:
        authorize(principal, resource, action)
        return principal

    return dependency


def require_system(system: str) -> Callable[..., Principal]:
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.may_use_system(system):
            raise PermissionDeniedError(f"This token does not grant access to the {system} system")
        return principal

    return dependency
