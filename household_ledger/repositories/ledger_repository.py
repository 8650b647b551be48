"""Repository for Ledger model operations."""

from household_ledger.models.ledger import Ledger
from household_ledger.models.membership import Membership
from household_ledger.models.role import LedgerRole
from household_ledger.repositories.base import TombstoneRepository


class LedgerRepository(TombstoneRepository[Ledger]):
    """Repository for Ledger model operations"""

    model = Ledger

    def get_for_account(self, account_id: str) -> list[tuple[Ledger, Membership]]:
        """
        Get active ledgers the account is an active member of.

        Returns:
            List of (ledger, membership) pairs ordered by ledger creation
        """
        return (
            self.db.query(Ledger, Membership)
            .join(Membership, Membership.ledger_id == Ledger.id)
            .filter(
                Membership.account_id == account_id,
                Membership.active_clause(),
                Ledger.active_clause(),
            )
            .order_by(Ledger.created_at, Ledger.id)
            .all()
        )

    def count_owned_active(self, account_id: str) -> int:
        """
        Count non-deleted ledgers the account currently owns.

        Ownership is an active OWNER membership, which by invariant matches
        ``created_by``; both are required so a broken row never hides a ledger.
        """
        return (
            self.db.query(Ledger)
            .join(Membership, Membership.ledger_id == Ledger.id)
            .filter(
                Ledger.active_clause(),
                Membership.active_clause(),
                Membership.account_id == account_id,
                Membership.role == LedgerRole.OWNER,
            )
            .count()
        )

    def clear_owner_reference(self, account_id: str) -> int:
        """Nullify created_by on deleted ledgers last owned by an erased account"""
        return (
            self.db.query(Ledger)
            .filter(Ledger.created_by == account_id, Ledger.deleted_at.is_not(None))
            .update({Ledger.created_by: None}, synchronize_session=False)
        )
