from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock
from household_ledger.database import get_db
from household_ledger.dependencies import get_clock, get_current_account
from household_ledger.models.account import Account
from household_ledger.schemas.content_schemas import BudgetCreate, BudgetResponse, BudgetUpdate
from household_ledger.services.budget_service import BudgetService

router = APIRouter()


@router.get("", response_model=list[BudgetResponse])
async def list_budgets(
    ledger_id: str,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    include_deleted: bool = Query(False, description="Include deleted budgets (ADMIN or OWNER)"),
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = BudgetService(db, clock)
    return service.list_budgets(account.id, ledger_id, year, month, include_deleted)


@router.post("", response_model=BudgetResponse, status_code=status.HTTP_201_CREATED)
async def create_budget(
    ledger_id: str,
    budget_create: BudgetCreate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Create a monthly or yearly budget for a category.

    - **Requires ADMIN or OWNER permissions**
    - One active budget per category and period
    """
    service = BudgetService(db, clock)
    return service.create_budget(account.id, ledger_id, budget_create)


@router.patch("/{budget_id}", response_model=BudgetResponse)
async def update_budget(
    ledger_id: str,
    budget_id: str,
    budget_update: BudgetUpdate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = BudgetService(db, clock)
    return service.update_budget(account.id, ledger_id, budget_id, budget_update)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget(
    ledger_id: str,
    budget_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = BudgetService(db, clock)
    service.delete_budget(account.id, ledger_id, budget_id)


@router.post("/{budget_id}/restore", response_model=BudgetResponse)
async def restore_budget(
    ledger_id: str,
    budget_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = BudgetService(db, clock)
    return service.restore_budget(account.id, ledger_id, budget_id)
