"""Membership model linking accounts to ledgers with roles."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, ForeignKey, Enum, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_ledger.core.clock import utcnow
from household_ledger.models.base import Base, TimestampMixin, Tombstonable, new_id
from household_ledger.models.role import LedgerRole

if TYPE_CHECKING:
    from household_ledger.models.account import Account
    from household_ledger.models.ledger import Ledger


class Membership(Base, TimestampMixin, Tombstonable):
    """
    Join table linking accounts to ledgers with roles.

    Example memberships:
    - Account "Alice" has role OWNER in ledger "Smith Household"
    - Account "Bob" has role MEMBER in ledger "Smith Household"
    - Account "Alice" has role VIEWER in ledger "Trip to Jeju"

    Constraints:
    - Unique(ledger_id, account_id) - one row per account per ledger; leaving
      and re-joining reuses the row by clearing deleted_at
    - Exactly one active OWNER per non-deleted ledger (enforced by the
      membership service)
    """

    __tablename__ = "memberships"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    ledger_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("ledgers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[LedgerRole] = mapped_column(
        Enum(LedgerRole, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=LedgerRole.MEMBER,
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Relationships
    ledger: Mapped["Ledger"] = relationship("Ledger", back_populates="memberships")
    account: Mapped["Account"] = relationship("Account", back_populates="memberships")

    # Constraints
    __table_args__ = (
        UniqueConstraint("ledger_id", "account_id", name="uq_ledger_account"),
    )

    def __repr__(self) -> str:
        return f"<Membership(ledger_id='{self.ledger_id}', account_id='{self.account_id}', role={self.role.value})>"
