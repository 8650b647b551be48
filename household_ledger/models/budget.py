from enum import Enum as PyEnum

from sqlalchemy import String, Integer, Numeric, ForeignKey, Enum
from sqlalchemy.orm import Mapped, mapped_column

from household_ledger.models.base import Base, TimestampMixin, Tombstonable, new_id


class BudgetPeriod(str, PyEnum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Budget(Base, TimestampMixin, Tombstonable):
    """Spending limit for one category of a ledger over a month or a year."""

    __tablename__ = "budgets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    ledger_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("ledgers.id"), nullable=False, index=True
    )
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("categories.id"), nullable=False, index=True
    )
    created_by: Mapped[str | None] = mapped_column(
        String(255), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    amount: Mapped[float] = mapped_column(Numeric(precision=15, scale=2, asdecimal=False), nullable=False)
    period: Mapped[BudgetPeriod] = mapped_column(
        Enum(BudgetPeriod, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=BudgetPeriod.MONTHLY,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # month is required for MONTHLY budgets and NULL for YEARLY ones
