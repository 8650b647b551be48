from datetime import date

from sqlalchemy import String, Numeric, ForeignKey, Date, Text, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_ledger.models.base import Base, TimestampMixin, Tombstonable, new_id
from household_ledger.models.category import Category, CategoryType, category_type_enum


class Transaction(Base, TimestampMixin, Tombstonable):
    """
    Income or expense entry in a ledger.

    Amount is always positive; ``type`` mirrors the category's type.
    ``transaction_date`` is when the money moved, ``created_at`` is when it
    was recorded. ``created_by`` is NULL once the author has been erased.
    """

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    ledger_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("ledgers.id"), nullable=False, index=True
    )
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("categories.id"), nullable=False, index=True
    )
    created_by: Mapped[str | None] = mapped_column(
        String(255), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount: Mapped[float] = mapped_column(Numeric(precision=15, scale=2, asdecimal=False), nullable=False)
    type: Mapped[CategoryType] = mapped_column(category_type_enum, nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # Relationships
    category: Mapped["Category"] = relationship("Category")

    # Composite indexes for common queries
    __table_args__ = (
        Index("ix_transactions_ledger_date", "ledger_id", "transaction_date"),
    )
