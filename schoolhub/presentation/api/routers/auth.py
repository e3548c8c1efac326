from fastapi import APIRouter, Depends, Response, status

from ....application.services.approval_service import ApprovalService
from ....application.services.auth_service import AuthService
from ....core.config import Settings
from ....core.dependencies import get_approval_service, get_auth_service, get_settings
from ....domain.authorization import Principal
from ..dependencies import AUTH_COOKIE, get_current_principal
from ..schemas.auth import (
    LoginPayload,
    LoginResponse,
    PrincipalResponse,
    SessionUser,
    SignupPayload,
    SignupResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginPayload,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    token, account = auth_service.login(payload.email, payload.password)
    response.set_cookie(
        AUTH_COOKIE,
        token,
        max_age=auth_service.token_exp_minutes * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )
    return LoginResponse(
        token=token,
        user=SessionUser(
            email=account.email,
            uid=account.uid,
            role=account.role,
            access_type=account.access_type,
            system_access=account.system_access,
            expires_at=account.expires_at,
        ),
    )


@router.post("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)) -> dict:
    response.delete_cookie(
        AUTH_COOKIE,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )
    return {"success": True, "message": "Logged out successfully"}


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupPayload,
    approval_service: ApprovalService = Depends(get_approval_service),
) -> SignupResponse:
    account = approval_service.signup(payload.email, payload.password)
    return SignupResponse(id=account.id)


@router.get("/me", response_model=PrincipalResponse)
def me(principal: Principal = Depends(get_current_principal)) -> PrincipalResponse:
    return PrincipalResponse(
        email=principal.email,
        role=principal.role,
        user_type=principal.user_type,
        token_type=principal.token_type,
        system=principal.system,
        system_access=principal.system_access,
    )
