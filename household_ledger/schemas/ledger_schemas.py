from datetime import datetime
from pydantic import BaseModel, Field

from household_ledger.core.constants import DEFAULT_CURRENCY, LEDGER_NAME_MAX_LENGTH
from household_ledger.models.role import LedgerRole


class LedgerCreate(BaseModel):
    """Create a ledger; the caller becomes its owner"""

    name: str = Field(..., min_length=1, max_length=LEDGER_NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=1000)
    currency: str = Field(default=DEFAULT_CURRENCY, min_length=3, max_length=3)


class LedgerUpdate(BaseModel):
    """Update ledger details (OWNER only)"""

    name: str | None = Field(None, min_length=1, max_length=LEDGER_NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=1000)
    currency: str | None = Field(None, min_length=3, max_length=3)


class LedgerResponse(BaseModel):
    """Ledger details response"""

    id: str
    name: str
    description: str | None
    currency: str
    created_by: str | None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    model_config = {"from_attributes": True}


class AccountLedgerResponse(LedgerResponse):
    """Ledger with the requesting account's role"""

    role: LedgerRole


class MemberResponse(BaseModel):
    """Ledger member details with account info"""

    id: str
    account_id: str
    display_name: str | None
    email: str | None
    role: LedgerRole
    joined_at: datetime


class InviteRequest(BaseModel):
    """Invite an account to the ledger by id or email"""

    account_id: str | None = Field(None, min_length=1, description="Account to invite")
    email: str | None = Field(None, min_length=3, max_length=255, description="Email of the account to invite")
    role: LedgerRole = Field(default=LedgerRole.MEMBER, description="Role to assign (default: MEMBER)")


class RoleUpdate(BaseModel):
    """Change a member's role"""

    role: LedgerRole = Field(..., description="New role to assign")


class OwnershipTransferRequest(BaseModel):
    """Hand ledger ownership to another account"""

    new_owner_id: str = Field(..., min_length=1)


class MemberRemoveResponse(BaseModel):
    """Response after removing member"""

    message: str
    removed_account_id: str
