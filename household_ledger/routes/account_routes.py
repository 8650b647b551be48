from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock
from household_ledger.database import get_db
from household_ledger.dependencies import get_clock, get_current_account, get_token_account_id
from household_ledger.models.account import Account, AccountStatus
from household_ledger.schemas.account_schemas import (
    DeletionRequest,
    DeletionStatusResponse,
    ProfileResponse,
    ProfileUpdate,
)
from household_ledger.services.lifecycle_service import LifecycleService

router = APIRouter()


@router.get("/me", response_model=ProfileResponse)
async def get_profile(
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Get the authenticated account's profile with ledger counts"""
    service = LifecycleService(db, clock)
    return service.get_profile(account.id)


@router.patch("/me", response_model=ProfileResponse)
async def update_profile(
    profile_update: ProfileUpdate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Update profile.

    - Nickname: 2-20 characters
    - Currency and timezone must be supported values
    """
    service = LifecycleService(db, clock)
    return service.update_profile(account.id, profile_update)


@router.post(
    "/me/deletion",
    response_model=DeletionStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def request_deletion(
    deletion_request: DeletionRequest,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Request account deletion.

    - confirm_text must match the confirmation phrase exactly
    - Fails with 409 while the account owns any ledger
    - Signing in again within 30 days cancels the deletion
    """
    service = LifecycleService(db, clock)
    receipt = service.request_deletion(account.id, deletion_request.confirm_text)
    return {
        "account_id": receipt.account_id,
        "status": AccountStatus.PENDING_DELETION,
        "deleted_at": receipt.deleted_at,
        "grace_period_ends_at": receipt.grace_period_ends_at,
        "memberships_removed": receipt.memberships_removed,
    }


@router.get("/me/deletion", response_model=DeletionStatusResponse)
async def get_deletion_status(
    account_id: str = Depends(get_token_account_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Deletion state of the caller's account; does not cancel a pending deletion"""
    service = LifecycleService(db, clock)
    return service.deletion_status(account_id)
