from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock, utcnow
from household_ledger.core.exceptions import NotFoundException, ValidationException
from household_ledger.database import atomic
from household_ledger.models.category import Category, CategoryTemplate, CategoryType
from household_ledger.models.role import LedgerAction
from household_ledger.repositories.category_repository import CategoryRepository
from household_ledger.schemas.content_schemas import CategoryCreate, CategoryUpdate
from household_ledger.services.authorization_service import AuthorizationService


class CategoryService:
    """Service layer for ledger categories"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.category_repo = CategoryRepository(db)
        self.authz = AuthorizationService(db)

    def list_templates(self, actor_id: str, ledger_id: str) -> list[CategoryTemplate]:
        """Shared templates available to copy into the ledger"""
        self.authz.require(actor_id, ledger_id, LedgerAction.READ_CATEGORIES)
        with atomic(self.db):
            return self.category_repo.get_templates()

    def list_categories(
        self,
        actor_id: str,
        ledger_id: str,
        category_type: CategoryType | None = None,
        include_deleted: bool = False,
    ) -> list[Category]:
        """
        List categories of a ledger.

        Deleted categories are only listed for admins and owners.
        """
        action = LedgerAction.MANAGE_CATEGORIES if include_deleted else LedgerAction.READ_CATEGORIES
        self.authz.require(actor_id, ledger_id, action)
        return self.category_repo.get_by_ledger(ledger_id, category_type, include_deleted)

    def add_category(self, actor_id: str, ledger_id: str, data: CategoryCreate) -> Category:
        """Add a custom category (ADMIN or OWNER)"""
        name = data.name.strip()
        if not name:
            raise ValidationException("Category name is required")

        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_CATEGORIES)
            category = Category(ledger_id=ledger_id, name=name, type=data.type)
            if data.color is not None:
                category.color = data.color
            if data.icon is not None:
                category.icon = data.icon
            if data.sort_order is not None:
                category.sort_order = data.sort_order
            category = self.category_repo.add(category)

        return category

    def add_from_template(self, actor_id: str, ledger_id: str, template_id: str) -> Category:
        """Copy a shared template into the ledger (ADMIN or OWNER)"""
        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_CATEGORIES)
            template = self.category_repo.get_template(template_id)
            if template is None:
                raise NotFoundException("Category template not found")
            category = self.category_repo.add(
                Category(
                    ledger_id=ledger_id,
                    template_id=template.id,
                    name=template.name,
                    type=template.type,
                    color=template.color,
                    icon=template.icon,
                    sort_order=template.sort_order,
                )
            )

        return category

    def update_category(
        self, actor_id: str, ledger_id: str, category_id: str, data: CategoryUpdate
    ) -> Category:
        """
        Update a custom category.

        Raises:
            ValidationException: If the category was created from a template
        """
        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_CATEGORIES)
            category = self._get_category(category_id, ledger_id)
            if category.is_template:
                raise ValidationException("Default categories cannot be modified")

            if data.name is not None:
                if not data.name.strip():
                    raise ValidationException("Category name is required")
                category.name = data.name.strip()
            if data.color is not None:
                category.color = data.color
            if data.icon is not None:
                category.icon = data.icon
            if data.sort_order is not None:
                category.sort_order = data.sort_order

        return category

    def delete_category(self, actor_id: str, ledger_id: str, category_id: str) -> None:
        """
        Soft-delete a custom category.

        Transactions and budgets keep pointing at it; it just disappears
        from active listings and can no longer be chosen for new entries.
        """
        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_CATEGORIES)
            category = self._get_category(category_id, ledger_id, include_deleted=True)
            if category.is_template:
                raise ValidationException("Default categories cannot be deleted")
            self.category_repo.soft_delete(category, self.clock())

    def restore_category(self, actor_id: str, ledger_id: str, category_id: str) -> Category:
        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_CATEGORIES)
            category = self._get_category(category_id, ledger_id, include_deleted=True)
            self.category_repo.restore(category)

        return category

    def _get_category(
        self, category_id: str, ledger_id: str, include_deleted: bool = False
    ) -> Category:
        category = self.category_repo.get_in_ledger(category_id, ledger_id, include_deleted)
        if category is None:
            raise NotFoundException(f"Category {category_id} not found")
        return category
