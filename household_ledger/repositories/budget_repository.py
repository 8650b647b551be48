from typing import Optional

from household_ledger.models.budget import Budget, BudgetPeriod
from household_ledger.repositories.base import TombstoneRepository


class BudgetRepository(TombstoneRepository[Budget]):
    """Repository for Budget data access"""

    model = Budget

    def get_in_ledger(
        self, budget_id: str, ledger_id: str, include_deleted: bool = False
    ) -> Optional[Budget]:
        return (
            self.query(include_deleted)
            .filter(Budget.id == budget_id, Budget.ledger_id == ledger_id)
            .first()
        )

    def get_by_ledger(
        self,
        ledger_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        include_deleted: bool = False,
    ) -> list[Budget]:
        query = self.query(include_deleted).filter(Budget.ledger_id == ledger_id)
        if year is not None:
            query = query.filter(Budget.year == year)
        if month is not None:
            query = query.filter(Budget.month == month)
        return query.order_by(Budget.year, Budget.month, Budget.category_id).all()

    def find_active_duplicate(
        self,
        ledger_id: str,
        category_id: str,
        period: BudgetPeriod,
        year: int,
        month: Optional[int],
    ) -> Optional[Budget]:
        """Find an active budget covering the same category and period"""
        query = self.query().filter(
            Budget.ledger_id == ledger_id,
            Budget.category_id == category_id,
            Budget.period == period,
            Budget.year == year,
        )
        if month is None:
            query = query.filter(Budget.month.is_(None))
        else:
            query = query.filter(Budget.month == month)
        return query.first()

    def clear_author(self, account_id: str) -> int:
        return (
            self.db.query(Budget)
            .filter(Budget.created_by == account_id)
            .update({Budget.created_by: None}, synchronize_session=False)
        )
