from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock, utcnow
from household_ledger.core.exceptions import NotFoundException
from household_ledger.core.logging import get_logger
from household_ledger.database import atomic
from household_ledger.models.role import LedgerAction
from household_ledger.models.transaction import Transaction
from household_ledger.repositories.category_repository import CategoryRepository
from household_ledger.repositories.transaction_repository import TransactionRepository
from household_ledger.schemas.content_schemas import (
    TransactionCreate,
    TransactionFilter,
    TransactionUpdate,
)
from household_ledger.services.authorization_service import AuthorizationService

logger = get_logger(__name__)

EDIT_ACTIONS = (LedgerAction.EDIT_TRANSACTION, LedgerAction.EDIT_OWN_TRANSACTION)
DELETE_ACTIONS = (LedgerAction.DELETE_TRANSACTION, LedgerAction.DELETE_OWN_TRANSACTION)


class TransactionService:
    """Service layer for transaction business logic"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.transaction_repo = TransactionRepository(db)
        self.category_repo = CategoryRepository(db)
        self.authz = AuthorizationService(db)

    def create_transaction(
        self, actor_id: str, ledger_id: str, data: TransactionCreate
    ) -> Transaction:
        """
        Record a transaction authored by ``actor_id``.

        The transaction's type is copied from its category.

        Raises:
            UnauthorizedException: If actor is a viewer or not a member
            NotFoundException: If the category is not an active category of the ledger
        """
        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.CREATE_TRANSACTION)
            category = self.category_repo.get_in_ledger(data.category_id, ledger_id)
            if category is None:
                raise NotFoundException(f"Category {data.category_id} not found")

            transaction = self.transaction_repo.add(
                Transaction(
                    ledger_id=ledger_id,
                    category_id=category.id,
                    created_by=actor_id,
                    amount=data.amount,
                    type=category.type,
                    title=data.title.strip(),
                    description=data.description,
                    transaction_date=data.transaction_date,
                )
            )

        return transaction

    def get_transaction(self, actor_id: str, ledger_id: str, transaction_id: str) -> Transaction:
        """
        Get transaction by ID.

        Raises:
            NotFoundException: If transaction doesn't exist in this ledger
        """
        self.authz.require(actor_id, ledger_id, LedgerAction.READ_TRANSACTIONS)
        return self._get_transaction(transaction_id, ledger_id)

    def get_transactions(
        self, actor_id: str, ledger_id: str, filters: TransactionFilter
    ) -> tuple[list[Transaction], int]:
        """
        List transactions with filters.

        Deleted transactions are only listed for admins and owners.

        Returns:
            Tuple of (transactions, total_count)
        """
        self.authz.require(actor_id, ledger_id, LedgerAction.READ_TRANSACTIONS)
        if filters.include_deleted:
            self.authz.require(actor_id, ledger_id, LedgerAction.DELETE_TRANSACTION)

        return self.transaction_repo.get_with_filters(
            ledger_id=ledger_id,
            start_date=filters.start_date,
            end_date=filters.end_date,
            category_id=filters.category_id,
            transaction_type=filters.type,
            created_by=filters.created_by,
            include_deleted=filters.include_deleted,
            limit=filters.limit,
            offset=filters.offset,
        )

    def update_transaction(
        self, actor_id: str, ledger_id: str, transaction_id: str, data: TransactionUpdate
    ) -> Transaction:
        """
        Update a transaction.

        Members may edit their own transactions, admins and owners any.
        Changing the category re-derives the type.
        """
        with atomic(self.db):
            transaction = self._get_transaction(transaction_id, ledger_id)
            self.authz.require_any(actor_id, ledger_id, EDIT_ACTIONS, transaction.created_by)

            if data.category_id is not None and data.category_id != transaction.category_id:
                category = self.category_repo.get_in_ledger(data.category_id, ledger_id)
                if category is None:
                    raise NotFoundException(f"Category {data.category_id} not found")
                transaction.category_id = category.id
                transaction.type = category.type
            if data.amount is not None:
                transaction.amount = data.amount
            if data.title is not None:
                transaction.title = data.title.strip()
            if data.description is not None:
                transaction.description = data.description
            if data.transaction_date is not None:
                transaction.transaction_date = data.transaction_date

        return transaction

    def delete_transaction(self, actor_id: str, ledger_id: str, transaction_id: str) -> None:
        """Soft-delete a transaction (own for members, any for admins and owners)"""
        with atomic(self.db):
            transaction = self._get_transaction(transaction_id, ledger_id, include_deleted=True)
            self.authz.require_any(actor_id, ledger_id, DELETE_ACTIONS, transaction.created_by)
            self.transaction_repo.soft_delete(transaction, self.clock())

        logger.info(
            "transaction_deleted",
            ledger_id=ledger_id,
            transaction_id=transaction_id,
            actor_id=actor_id,
        )

    def restore_transaction(
        self, actor_id: str, ledger_id: str, transaction_id: str
    ) -> Transaction:
        with atomic(self.db):
            transaction = self._get_transaction(transaction_id, ledger_id, include_deleted=True)
            self.authz.require_any(actor_id, ledger_id, DELETE_ACTIONS, transaction.created_by)
            self.transaction_repo.restore(transaction)

        return transaction

    def _get_transaction(
        self, transaction_id: str, ledger_id: str, include_deleted: bool = False
    ) -> Transaction:
        transaction = self.transaction_repo.get_in_ledger(transaction_id, ledger_id, include_deleted)
        if not transaction:
            raise NotFoundException(f"Transaction {transaction_id} not found")
        return transaction
