"""API router for API token issuance and management."""

from fastapi import APIRouter, Depends

from ....application.services.token_service import TokenService
from ....core.dependencies import get_token_service
from ....domain.authorization import CREATE, DELETE, READ, UPDATE, Principal
from ....domain.models import ApiToken
from ..dependencies import require_permission
from ..schemas.tokens import (
    GenerateTokenRequest,
    ListTokensResponse,
    TokenDetail,
    TokenSummary,
    UpdateTokenSystemRequest,
)

router = APIRouter(prefix="/tokens", tags=["tokens"])


def _summary(token: ApiToken) -> dict:
    return {
        "id": token.id,
        "description": token.description,
        "created_by": token.created_by,
        "created_at": token.created_at,
        "expiration": token.expiration,
        "status": token.status,
        "system": token.system,
        "user_type": token.user_type,
        "role": token.role,
        "display_token": token.display_token,
    }


def _detail(token: ApiToken) -> TokenDetail:
    return TokenDetail(token=token.token, **_summary(token))


@router.post("/generate", response_model=TokenDetail)
def generate_token(
    request: GenerateTokenRequest,
    principal: Principal = Depends(require_permission("tokens", CREATE)),
    token_service: TokenService = Depends(get_token_service),
) -> TokenDetail:
    """Issue a signed API token for the Grading or Evaluation system."""
    token = token_service.generate(
        principal,
        description=request.description,
        expiration=request.expiration,
        system=request.system,
        user_type=request.user_type,
    )
    return _detail(token)


@router.get("", response_model=ListTokensResponse)
def list_tokens(
    principal: Principal = Depends(require_permission("tokens", READ)),
    token_service: TokenService = Depends(get_token_service),
) -> ListTokensResponse:
    """List the caller's own tokens, newest first."""
    items = [TokenSummary(**_summary(token)) for token in token_service.list(principal)]
    return ListTokensResponse(items=items, count=len(items))


@router.get("/{token_id}/full", response_model=TokenDetail)
def get_full_token(
    token_id: str,
    principal: Principal = Depends(require_permission("tokens", READ)),
    token_service: TokenService = Depends(get_token_service),
) -> TokenDetail:
    return _detail(token_service.get_full(principal, token_id))


@router.put("/{token_id}/system", response_model=TokenDetail)
def update_token_system(
    token_id: str,
    request: UpdateTokenSystemRequest,
    principal: Principal = Depends(require_permission("tokens", UPDATE)),
    token_service: TokenService = Depends(get_token_service),
) -> TokenDetail:
    return _detail(token_service.update_system(principal, token_id, request.system))


@router.delete("/{token_id}")
def delete_token(
    token_id: str,
    principal: Principal = Depends(require_permission("tokens", DELETE)),
    token_service: TokenService = Depends(get_token_service),
) -> dict:
    token = token_service.delete(principal, token_id)
    return {"success": True, "id": token.id, "message": "Token deleted successfully"}
