from datetime import date
from typing import Optional

from household_ledger.models.category import CategoryType
from household_ledger.models.transaction import Transaction
from household_ledger.repositories.base import TombstoneRepository


class TransactionRepository(TombstoneRepository[Transaction]):
    """Repository for Transaction data access"""

    model = Transaction

    def get_in_ledger(
        self, transaction_id: str, ledger_id: str, include_deleted: bool = False
    ) -> Optional[Transaction]:
        """
        Get transaction by ID, ensuring it belongs to the ledger.

        Returns:
            Transaction object or None if not found or belongs to a different ledger
        """
        return (
            self.query(include_deleted)
            .filter(Transaction.id == transaction_id, Transaction.ledger_id == ledger_id)
            .first()
        )

    def get_with_filters(
        self,
        ledger_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[str] = None,
        transaction_type: Optional[CategoryType] = None,
        created_by: Optional[str] = None,
        include_deleted: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        """
        Get transactions of one ledger with filters.

        Args:
            ledger_id: Ledger ID for isolation
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
            category_id: Optional category filter
            transaction_type: Optional income/expense filter
            created_by: Optional author filter
            include_deleted: Include tombstoned transactions (audit)
            limit: Maximum number of results
            offset: Pagination offset

        Returns:
            Tuple of (transactions list, total count)
        """
        query = self.query(include_deleted).filter(Transaction.ledger_id == ledger_id)

        if start_date is not None:
            query = query.filter(Transaction.transaction_date >= start_date)

        if end_date is not None:
            query = query.filter(Transaction.transaction_date <= end_date)

        if category_id is not None:
            query = query.filter(Transaction.category_id == category_id)

        if transaction_type is not None:
            query = query.filter(Transaction.type == transaction_type)

        if created_by is not None:
            query = query.filter(Transaction.created_by == created_by)

        # Get total count before pagination
        total = query.count()

        transactions = (
            query.order_by(Transaction.transaction_date.desc(), Transaction.created_at.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

        return transactions, total

    def clear_author(self, account_id: str) -> int:
        """Nullify authorship of every transaction, deleted or not, by an erased account"""
        return (
            self.db.query(Transaction)
            .filter(Transaction.created_by == account_id)
            .update({Transaction.created_by: None}, synchronize_session=False)
        )
