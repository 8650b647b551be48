from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_ledger.core.constants import DEFAULT_CURRENCY, DEFAULT_TIMEZONE
from household_ledger.models.base import Base, TimestampMixin, Tombstonable

if TYPE_CHECKING:
    from household_ledger.models.membership import Membership


class AccountStatus(str, PyEnum):
    """Account lifecycle states"""

    ACTIVE = "active"
    PENDING_DELETION = "pending_deletion"
    DELETED = "deleted"


class Account(Base, TimestampMixin, Tombstonable):
    """
    A person using the ledger, identified by the auth provider's subject.

    Only stores profile attributes - no auth credentials. Auto-created on
    first authentication with a valid JWT.

    Lifecycle state is derived from two markers:
    - deleted_at set, erased_at NULL: PendingDeletion (grace period running)
    - erased_at set: Deleted, profile fields have been erased

    ``version`` is an optimistic lock: every UPDATE checks and bumps it, so
    two transactions that both read the same account cannot both commit.
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    # id is the 'sub' claim issued by the authentication provider
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default=DEFAULT_TIMEZONE)
    erased_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    memberships: Mapped[list["Membership"]] = relationship("Membership", back_populates="account")

    __mapper_args__ = {"version_id_col": version}

    @property
    def status(self) -> AccountStatus:
        if self.erased_at is not None:
            return AccountStatus.DELETED
        if self.deleted_at is not None:
            return AccountStatus.PENDING_DELETION
        return AccountStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Account(id='{self.id}', status={self.status.value})>"
