from datetime import datetime
from pydantic import BaseModel, Field

from household_ledger.models.account import AccountStatus


class ProfileUpdate(BaseModel):
    """Schema for updating the caller's profile"""

    display_name: str | None = Field(None, max_length=50)
    avatar_url: str | None = Field(None, max_length=1024)
    currency: str | None = Field(None, min_length=3, max_length=3)
    timezone: str | None = Field(None, max_length=64)


class ProfileResponse(BaseModel):
    """Profile with ledger participation counts"""

    id: str
    email: str | None
    display_name: str | None
    avatar_url: str | None
    currency: str
    timezone: str
    status: AccountStatus
    created_at: datetime
    updated_at: datetime
    owned_ledger_count: int
    shared_ledger_count: int


class DeletionRequest(BaseModel):
    """Account deletion request; confirm_text must match the fixed phrase exactly"""

    confirm_text: str


class DeletionStatusResponse(BaseModel):
    account_id: str
    status: AccountStatus
    deleted_at: datetime | None
    grace_period_ends_at: datetime | None
    memberships_removed: int | None = None
