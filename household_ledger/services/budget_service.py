from typing import Optional

from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock, utcnow
from household_ledger.core.exceptions import NotFoundException, ValidationException
from household_ledger.database import atomic
from household_ledger.models.budget import Budget
from household_ledger.models.role import LedgerAction
from household_ledger.repositories.budget_repository import BudgetRepository
from household_ledger.repositories.category_repository import CategoryRepository
from household_ledger.schemas.content_schemas import BudgetCreate, BudgetUpdate
from household_ledger.services.authorization_service import AuthorizationService


class BudgetService:
    """Service layer for ledger budgets"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.budget_repo = BudgetRepository(db)
        self.category_repo = CategoryRepository(db)
        self.authz = AuthorizationService(db)

    def list_budgets(
        self,
        actor_id: str,
        ledger_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        include_deleted: bool = False,
    ) -> list[Budget]:
        action = LedgerAction.MANAGE_BUDGETS if include_deleted else LedgerAction.READ_BUDGETS
        self.authz.require(actor_id, ledger_id, action)
        return self.budget_repo.get_by_ledger(ledger_id, year, month, include_deleted)

    def create_budget(self, actor_id: str, ledger_id: str, data: BudgetCreate) -> Budget:
        """
        Create a budget (ADMIN or OWNER).

        Raises:
            NotFoundException: If the category is not active in this ledger
            ValidationException: If an active budget already covers the same
                category and period
        """
        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_BUDGETS)
            if self.category_repo.get_in_ledger(data.category_id, ledger_id) is None:
                raise NotFoundException(f"Category {data.category_id} not found")

            duplicate = self.budget_repo.find_active_duplicate(
                ledger_id, data.category_id, data.period, data.year, data.month
            )
            if duplicate is not None:
                raise ValidationException("A budget already exists for this category and period")

            budget = self.budget_repo.add(
                Budget(
                    ledger_id=ledger_id,
                    category_id=data.category_id,
                    created_by=actor_id,
                    amount=data.amount,
                    period=data.period,
                    year=data.year,
                    month=data.month,
                )
            )

        return budget

    def update_budget(
        self, actor_id: str, ledger_id: str, budget_id: str, data: BudgetUpdate
    ) -> Budget:
        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_BUDGETS)
            budget = self._get_budget(budget_id, ledger_id)
            budget.amount = data.amount

        return budget

    def delete_budget(self, actor_id: str, ledger_id: str, budget_id: str) -> None:
        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_BUDGETS)
            budget = self._get_budget(budget_id, ledger_id, include_deleted=True)
            self.budget_repo.soft_delete(budget, self.clock())

    def restore_budget(self, actor_id: str, ledger_id: str, budget_id: str) -> Budget:
        """
        Restore a deleted budget.

        Raises:
            ValidationException: If another active budget now covers its period
        """
        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_BUDGETS)
            budget = self._get_budget(budget_id, ledger_id, include_deleted=True)
            if budget.is_deleted:
                duplicate = self.budget_repo.find_active_duplicate(
                    ledger_id, budget.category_id, budget.period, budget.year, budget.month
                )
                if duplicate is not None:
                    raise ValidationException(
                        "Another budget already covers this category and period"
                    )
            self.budget_repo.restore(budget)

        return budget

    def _get_budget(self, budget_id: str, ledger_id: str, include_deleted: bool = False) -> Budget:
        budget = self.budget_repo.get_in_ledger(budget_id, ledger_id, include_deleted)
        if budget is None:
            raise NotFoundException(f"Budget {budget_id} not found")
        return budget
