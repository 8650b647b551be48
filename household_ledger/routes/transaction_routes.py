from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock
from household_ledger.database import get_db
from household_ledger.dependencies import get_clock, get_current_account
from household_ledger.models.account import Account
from household_ledger.models.category import CategoryType
from household_ledger.schemas.content_schemas import (
    TransactionCreate,
    TransactionFilter,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdate,
)
from household_ledger.services.transaction_service import TransactionService

router = APIRouter()


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    ledger_id: str,
    transaction: TransactionCreate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Record a transaction.

    - **Requires MEMBER, ADMIN or OWNER**
    - The type (income/expense) follows the chosen category
    """
    service = TransactionService(db, clock)
    return service.create_transaction(account.id, ledger_id, transaction)


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    ledger_id: str,
    start_date: Optional[date] = Query(None, description="Filter by start date"),
    end_date: Optional[date] = Query(None, description="Filter by end date"),
    category_id: Optional[str] = Query(None, description="Filter by category"),
    type: Optional[CategoryType] = Query(None, description="Filter by income or expense"),
    created_by: Optional[str] = Query(None, description="Filter by author"),
    include_deleted: bool = Query(False, description="Include deleted transactions (ADMIN or OWNER)"),
    limit: int = Query(100, ge=1, le=1000, description="Max results"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    List transactions with optional filters.

    Supports filtering by date range, category, type and author.
    Returns paginated results with total count.
    """
    filters = TransactionFilter(
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        type=type,
        created_by=created_by,
        include_deleted=include_deleted,
        limit=limit,
        offset=offset,
    )

    service = TransactionService(db, clock)
    transactions, total = service.get_transactions(account.id, ledger_id, filters)

    return TransactionListResponse(transactions=transactions, total=total)


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    ledger_id: str,
    transaction_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = TransactionService(db, clock)
    return service.get_transaction(account.id, ledger_id, transaction_id)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    ledger_id: str,
    transaction_id: str,
    transaction_update: TransactionUpdate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Update a transaction.

    - MEMBERs may edit their own transactions
    - ADMINs and the OWNER may edit any transaction
    """
    service = TransactionService(db, clock)
    return service.update_transaction(account.id, ledger_id, transaction_id, transaction_update)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    ledger_id: str,
    transaction_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = TransactionService(db, clock)
    service.delete_transaction(account.id, ledger_id, transaction_id)


@router.post("/{transaction_id}/restore", response_model=TransactionResponse)
async def restore_transaction(
    ledger_id: str,
    transaction_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = TransactionService(db, clock)
    return service.restore_transaction(account.id, ledger_id, transaction_id)
