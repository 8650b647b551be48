from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from household_ledger.core.constants import CATEGORY_NAME_MAX_LENGTH
from household_ledger.models.budget import BudgetPeriod
from household_ledger.models.category import CategoryType


class CategoryCreate(BaseModel):
    """Schema for adding a custom category"""

    name: str = Field(..., min_length=1, max_length=CATEGORY_NAME_MAX_LENGTH)
    type: CategoryType
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = Field(None, max_length=50)
    sort_order: Optional[int] = Field(None, ge=0)


class CategoryFromTemplate(BaseModel):
    template_id: str


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=CATEGORY_NAME_MAX_LENGTH)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = Field(None, max_length=50)
    sort_order: Optional[int] = Field(None, ge=0)


class CategoryTemplateResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    name: str
    type: CategoryType
    color: str
    icon: str
    sort_order: int


class CategoryResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    ledger_id: str
    template_id: Optional[str]
    name: str
    type: CategoryType
    color: str
    icon: str
    sort_order: int
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime]


class TransactionCreate(BaseModel):
    """Schema for creating a new transaction"""

    category_id: str
    amount: float = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    transaction_date: date


class TransactionUpdate(BaseModel):
    """Schema for updating a transaction"""

    category_id: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    transaction_date: Optional[date] = None


class TransactionResponse(BaseModel):
    """Schema for transaction response"""

    model_config = {"from_attributes": True}

    id: str
    ledger_id: str
    category_id: str
    created_by: Optional[str]
    amount: float
    type: CategoryType
    title: str
    description: Optional[str]
    transaction_date: date
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime]


class TransactionListResponse(BaseModel):
    """Schema for list of transactions"""

    transactions: list[TransactionResponse]
    total: int


class TransactionFilter(BaseModel):
    """Schema for filtering transactions"""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_id: Optional[str] = None
    type: Optional[CategoryType] = None
    created_by: Optional[str] = None
    include_deleted: bool = False
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)


class BudgetCreate(BaseModel):
    category_id: str
    amount: float = Field(..., gt=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    year: int = Field(..., ge=2000, le=2100)
    month: Optional[int] = Field(None, ge=1, le=12)

    @model_validator(mode="after")
    def check_month_matches_period(self):
        if self.period == BudgetPeriod.MONTHLY and self.month is None:
            raise ValueError("month is required for monthly budgets")
        if self.period == BudgetPeriod.YEARLY and self.month is not None:
            raise ValueError("month must be omitted for yearly budgets")
        return self


class BudgetUpdate(BaseModel):
    amount: float = Field(..., gt=0)


class BudgetResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    ledger_id: str
    category_id: str
    created_by: Optional[str]
    amount: float
    period: BudgetPeriod
    year: int
    month: Optional[int]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime]
