from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock
from household_ledger.database import get_db
from household_ledger.dependencies import get_clock, get_current_account
from household_ledger.models.account import Account
from household_ledger.models.category import CategoryType
from household_ledger.schemas.content_schemas import (
    CategoryCreate,
    CategoryFromTemplate,
    CategoryResponse,
    CategoryTemplateResponse,
    CategoryUpdate,
)
from household_ledger.services.category_service import CategoryService

router = APIRouter()


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    ledger_id: str,
    type: Optional[CategoryType] = Query(None, description="Filter by income or expense"),
    include_deleted: bool = Query(False, description="Include deleted categories (ADMIN or OWNER)"),
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = CategoryService(db, clock)
    return service.list_categories(account.id, ledger_id, type, include_deleted)


@router.get("/templates", response_model=list[CategoryTemplateResponse])
async def list_templates(
    ledger_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Default categories that can be copied into the ledger"""
    service = CategoryService(db, clock)
    return service.list_templates(account.id, ledger_id)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def add_category(
    ledger_id: str,
    category_create: CategoryCreate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Add a custom category.

    - **Requires ADMIN or OWNER permissions**
    """
    service = CategoryService(db, clock)
    return service.add_category(account.id, ledger_id, category_create)


@router.post("/from-template", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def add_category_from_template(
    ledger_id: str,
    request: CategoryFromTemplate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = CategoryService(db, clock)
    return service.add_from_template(account.id, ledger_id, request.template_id)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    ledger_id: str,
    category_id: str,
    category_update: CategoryUpdate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Update a custom category.

    - **Requires ADMIN or OWNER permissions**
    - Default (template) categories are read-only
    """
    service = CategoryService(db, clock)
    return service.update_category(account.id, ledger_id, category_id, category_update)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    ledger_id: str,
    category_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = CategoryService(db, clock)
    service.delete_category(account.id, ledger_id, category_id)


@router.post("/{category_id}/restore", response_model=CategoryResponse)
async def restore_category(
    ledger_id: str,
    category_id: str,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    service = CategoryService(db, clock)
    return service.restore_category(account.id, ledger_id, category_id)
