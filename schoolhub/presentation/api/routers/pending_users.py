from typing import List, Optional

from fastapi import APIRouter, Depends

from ....application.services.approval_service import ApprovalService
from ....core.dependencies import get_approval_service
from ....domain.authorization import DELETE, READ, UPDATE, Principal
from ....domain.errors import DomainError
from ....domain.models import Account
from ..dependencies import require_permission
from ..schemas.accounts import (
    AccountActionResponse,
    AccountResponse,
    ApproveRequest,
    DeletionResponse,
    EditAccessRequest,
    ProcessRequest,
    RejectRequest,
)

router = APIRouter(prefix="/pending-users", tags=["pending-users"])

_PROCESS_ACTIONS = ("approve", "reject", "delete")


def _account(account: Account) -> AccountResponse:
    data = account.to_dict()
    data.pop("password_hash", None)
    return AccountResponse(**data)


def _action(message: str, account: Account, warning: Optional[str] = None) -> AccountActionResponse:
    return AccountActionResponse(message=message, user=_account(account), warning=warning)


@router.get("", response_model=List[AccountResponse])
def list_pending_users(
    _: Principal = Depends(require_permission("accounts", READ)),
    approval_service: ApprovalService = Depends(get_approval_service),
) -> List[AccountResponse]:
    return [_account(account) for account in approval_service.list_accounts()]


@router.post("/{account_id}/approve", response_model=AccountActionResponse)
def approve_user(
    account_id: str,
    request: Optional[ApproveRequest] = None,
    principal: Principal = Depends(require_permission("accounts", UPDATE)),
    approval_service: ApprovalService = Depends(get_approval_service),
) -> AccountActionResponse:
    request = request or ApproveRequest()
    outcome = approval_service.approve(
        account_id,
        access_type=request.access_type,
        system_access=request.system_access,
        actor=principal.email,
    )
    message = "User approved successfully" if outcome.warning is None else "User approved with warnings"
    return _action(message, outcome.account, outcome.warning)


@router.post("/{account_id}/reject", response_model=AccountActionResponse)
def reject_user(
    account_id: str,
    request: Optional[RejectRequest] = None,
    principal: Principal = Depends(require_permission("accounts", UPDATE)),
    approval_service: ApprovalService = Depends(get_approval_service),
) -> AccountActionResponse:
    request = request or RejectRequest()
    account = approval_service.reject(account_id, reason=request.reason, actor=principal.email)
    return _action("User rejected successfully", account)


@router.post("/{account_id}/process")
def process_user(
    account_id: str,
    request: ProcessRequest,
    principal: Principal = Depends(require_permission("accounts", UPDATE)),
    approval_service: ApprovalService = Depends(get_approval_service),
):
    """Single entry point applying ``approve``, ``reject`` or ``delete``."""
    if request.action not in _PROCESS_ACTIONS:
        raise DomainError("Invalid action")
    if request.action == "approve":
        outcome = approval_service.approve(
            account_id,
            access_type=request.access_type,
            system_access=request.system_access,
            actor=principal.email,
        )
        return _action("User approved successfully", outcome.account, outcome.warning)
    if request.action == "reject":
        account = approval_service.reject(account_id, reason=request.reason, actor=principal.email)
        return _action("User rejected successfully", account)
    return _delete(account_id, approval_service)


@router.post("/{account_id}/edit", response_model=AccountActionResponse)
def edit_user(
    account_id: str,
    request: EditAccessRequest,
    principal: Principal = Depends(require_permission("accounts", UPDATE)),
    approval_service: ApprovalService = Depends(get_approval_service),
) -> AccountActionResponse:
    if request.access_type is None and request.system_access is None:
        raise DomainError("Missing required parameters")
    account = approval_service.edit(
        account_id,
        access_type=request.access_type,
        system_access=request.system_access,
        actor=principal.email,
    )
    return _action("User access settings updated successfully", account)


@router.post("/{account_id}/disable", response_model=AccountActionResponse)
def disable_user(
    account_id: str,
    _: Principal = Depends(require_permission("accounts", UPDATE)),
    approval_service: ApprovalService = Depends(get_approval_service),
) -> AccountActionResponse:
    outcome = approval_service.disable(account_id)
    return _action("User account disabled successfully", outcome.account, outcome.warning)


@router.post("/{account_id}/enable", response_model=AccountActionResponse)
def enable_user(
    account_id: str,
    _: Principal = Depends(require_permission("accounts", UPDATE)),
    approval_service: ApprovalService = Depends(get_approval_service),
) -> AccountActionResponse:
    outcome = approval_service.enable(account_id)
    return _action("User account enabled successfully", outcome.account, outcome.warning)


@router.post("/{account_id}/resend-email", response_model=AccountActionResponse)
def resend_approval_email(
    account_id: str,
    _: Principal = Depends(require_permission("accounts", UPDATE)),
    approval_service: ApprovalService = Depends(get_approval_service),
) -> AccountActionResponse:
    account = approval_service.resend_email(account_id)
    return _action(f"Approval email resent to {account.email}", account)


@router.delete("/{account_id}", response_model=DeletionResponse)
def delete_user(
    account_id: str,
    _: Principal = Depends(require_permission("accounts", DELETE)),
    approval_service: ApprovalService = Depends(get_approval_service),
) -> DeletionResponse:
    return _delete(account_id, approval_service)


def _delete(account_id: str, approval_service: ApprovalService) -> DeletionResponse:
    report = approval_service.delete(account_id)
    return DeletionResponse(
        message=f"User account for {report.email} completely deleted"
        if report.all_data_deleted
        else f"User account for {report.email} deleted with warnings",
        details=report.to_dict(),
    )
