"""Ledger model: the shared budget boundary."""

from typing import TYPE_CHECKING

from sqlalchemy import String, Integer, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_ledger.core.constants import DEFAULT_CURRENCY
from household_ledger.models.base import Base, TimestampMixin, Tombstonable, new_id

if TYPE_CHECKING:
    from household_ledger.models.membership import Membership
    from household_ledger.models.category import Category


class Ledger(Base, TimestampMixin, Tombstonable):
    """
    A named budget shared among accounts through memberships.

    Examples:
    - "Smith Household" - couple sharing groceries and rent
    - "Trip to Jeju" - friends splitting travel costs

    Categories, transactions and budgets belong to a ledger. Accounts reach
    them through a Membership with a role (Owner, Admin, Member, Viewer).

    ``created_by`` is the current owner. For every non-deleted ledger there
    is exactly one active OWNER membership and its account is
    ``created_by``. The column only becomes NULL when the owner of an
    already deleted ledger is permanently erased.

    ``version`` is an optimistic lock. Every operation that touches the
    owner invariant writes this row, so racing writers conflict here.
    """

    __tablename__ = "ledgers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    created_by: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    memberships: Mapped[list["Membership"]] = relationship("Membership", back_populates="ledger")
    categories: Mapped[list["Category"]] = relationship("Category", back_populates="ledger")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Ledger(id='{self.id}', name='{self.name}')>"
