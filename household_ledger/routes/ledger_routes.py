from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock
from household_ledger.core.exceptions import ValidationException
from household_ledger.database import get_db
from household_ledger.dependencies import get_clock, get_current_account
from household_ledger.models.account import Account
from household_ledger.schemas.ledger_schemas import (
    AccountLedgerResponse,
    InviteRequest,
    LedgerCreate,
    LedgerResponse,
    LedgerUpdate,
    MemberRemoveResponse,
    MemberResponse,
    OwnershipTransferRequest,
    RoleUpdate,
)
from household_ledger.services.membership_service import MembershipService

router = APIRouter()


def _member_response(membership) -> dict:
    account = membership.account
    return {
        "id": membership.id,
        "account_id": membership.account_id,
        "display_name": account.display_name if account else None,
        "email": account.email if account else None,
        "role": membership.role,
        "joined_at": membership.joined_at,
    }


@router.get("", response_model=list[AccountLedgerResponse])
async def list_ledgers(
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    List all active ledgers the authenticated account belongs to.

    Returns each ledger with the account's role in it.
    """
    service = MembershipService(db, clock)
    return service.list_ledgers(account.id)


@router.post("", response_model=LedgerResponse, status_code=status.HTTP_201_CREATED)
async def create_ledger(
    ledger_create: LedgerCreate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Create a ledger.

    - The caller becomes its OWNER
    - Default categories are copied from the shared templates
    """
    service = MembershipService(db, clock)
    return service.create_ledger(account.id, ledger_create)


@router.get("/{ledger_id}", response_model=LedgerResponse)
async def get_ledger(
    ledger_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = MembershipService(db, clock)
    return service.get_ledger(account.id, ledger_id)


@router.patch("/{ledger_id}", response_model=LedgerResponse)
async def update_ledger(
    ledger_id: str,
    ledger_update: LedgerUpdate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Update ledger name, description or currency.

    - **Requires OWNER permissions**
    """
    service = MembershipService(db, clock)
    return service.update_ledger(account.id, ledger_id, ledger_update)


@router.delete("/{ledger_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ledger(
    ledger_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Soft-delete a ledger.

    - **Requires OWNER permissions**
    - Members, categories and transactions stay in place and come back on restore
    """
    service = MembershipService(db, clock)
    service.delete_ledger(account.id, ledger_id)


@router.post("/{ledger_id}/restore", response_model=LedgerResponse)
async def restore_ledger(
    ledger_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Restore a soft-deleted ledger (its recorded owner only)"""
    service = MembershipService(db, clock)
    return service.restore_ledger(account.id, ledger_id)


@router.get("/{ledger_id}/members", response_model=list[MemberResponse])
async def list_members(
    ledger_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    List all active members of a ledger.

    Available to every role.
    """
    service = MembershipService(db, clock)
    return service.list_members(account.id, ledger_id)


@router.post(
    "/{ledger_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def invite_member(
    ledger_id: str,
    invite_request: InviteRequest,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Invite an existing account to the ledger.

    - **Requires ADMIN or OWNER permissions**
    - Target by account_id or email
    - Default role: MEMBER; only the OWNER can invite ADMINs
    """
    service = MembershipService(db, clock)
    if invite_request.account_id:
        membership = service.invite_member(
            account.id, ledger_id, invite_request.account_id, invite_request.role
        )
    elif invite_request.email:
        membership = service.invite_member_by_email(
            account.id, ledger_id, invite_request.email, invite_request.role
        )
    else:
        raise ValidationException("Either account_id or email is required")

    return _member_response(membership)


@router.patch("/{ledger_id}/members/{account_id}/role", response_model=MemberResponse)
async def change_member_role(
    ledger_id: str,
    account_id: str,
    role_update: RoleUpdate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Change a member's role.

    - **Requires ADMIN or OWNER permissions**
    - The OWNER's role cannot be changed; use ownership transfer
    - Cannot change your own role
    """
    service = MembershipService(db, clock)
    membership = service.change_role(account.id, ledger_id, account_id, role_update.role)
    return _member_response(membership)


@router.delete("/{ledger_id}/members/{account_id}", response_model=MemberRemoveResponse)
async def remove_member(
    ledger_id: str,
    account_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Remove a member from the ledger.

    - **Requires ADMIN or OWNER permissions**; only the OWNER removes ADMINs
    - Cannot remove the OWNER
    - Cannot remove yourself; leave the ledger instead
    """
    service = MembershipService(db, clock)
    service.remove_member(account.id, ledger_id, account_id)

    return {
        "message": "Member removed successfully",
        "removed_account_id": account_id,
    }


@router.post("/{ledger_id}/transfer", response_model=list[MemberResponse])
async def transfer_ownership(
    ledger_id: str,
    transfer_request: OwnershipTransferRequest,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Hand ownership to another account.

    - **Requires OWNER permissions**
    - The previous owner stays on as ADMIN
    """
    service = MembershipService(db, clock)
    service.transfer_ownership(account.id, ledger_id, transfer_request.new_owner_id)
    return service.list_members(account.id, ledger_id)


@router.post("/{ledger_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_ledger(
    ledger_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Leave a ledger. The OWNER must transfer ownership first."""
    service = MembershipService(db, clock)
    service.leave_ledger(account.id, ledger_id)
