from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import String, Integer, ForeignKey, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_ledger.core.constants import (
    CATEGORY_DEFAULT_COLOR,
    CATEGORY_DEFAULT_ICON,
    CATEGORY_DEFAULT_SORT_ORDER,
)
from household_ledger.models.base import Base, TimestampMixin, Tombstonable, new_id

if TYPE_CHECKING:
    from household_ledger.models.ledger import Ledger


class CategoryType(str, PyEnum):
    """Category type enumeration"""

    INCOME = "income"
    EXPENSE = "expense"


category_type_enum = Enum(
    CategoryType, native_enum=False, values_callable=lambda x: [e.value for e in x]
)


class CategoryTemplate(Base, TimestampMixin):
    """
    Shared, read-only category definitions.

    Every new ledger gets a copy of each template as its default categories.
    """

    __tablename__ = "category_templates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(20), nullable=False)
    type: Mapped[CategoryType] = mapped_column(category_type_enum, nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default=CATEGORY_DEFAULT_COLOR)
    icon: Mapped[str] = mapped_column(String(50), nullable=False, default=CATEGORY_DEFAULT_ICON)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=CATEGORY_DEFAULT_SORT_ORDER)


class Category(Base, TimestampMixin, Tombstonable):
    """
    Ledger-scoped transaction category.

    Categories copied from a template keep ``template_id`` and cannot be
    renamed; custom categories have no template.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    ledger_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("ledgers.id"), nullable=False, index=True
    )
    template_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("category_templates.id"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(20), nullable=False)
    type: Mapped[CategoryType] = mapped_column(category_type_enum, nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default=CATEGORY_DEFAULT_COLOR)
    icon: Mapped[str] = mapped_column(String(50), nullable=False, default=CATEGORY_DEFAULT_ICON)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=CATEGORY_DEFAULT_SORT_ORDER)

    # Relationships
    ledger: Mapped["Ledger"] = relationship("Ledger", back_populates="categories")

    @property
    def is_template(self) -> bool:
        return self.template_id is not None
