"""Repository for Membership model operations."""

from datetime import datetime

from household_ledger.models.membership import Membership
from household_ledger.models.role import LedgerRole
from household_ledger.repositories.base import TombstoneRepository


class MembershipRepository(TombstoneRepository[Membership]):
    """Repository for Membership model operations"""

    model = Membership

    def get_membership(
        self, account_id: str, ledger_id: str, include_deleted: bool = False
    ) -> Membership | None:
        """
        Get membership for a specific account in a specific ledger.

        Args:
            account_id: Account ID
            ledger_id: Ledger ID
            include_deleted: Also return a membership the account left

        Returns:
            Membership object or None if not found
        """
        return (
            self.query(include_deleted)
            .filter(
                Membership.account_id == account_id,
                Membership.ledger_id == ledger_id,
            )
            .first()
        )

    def get_ledger_members(self, ledger_id: str) -> list[Membership]:
        """Get all active memberships for a ledger, most privileged first"""
        members = self.query().filter(Membership.ledger_id == ledger_id).all()
        return sorted(members, key=lambda m: (-m.role.rank, m.joined_at))

    def count_ledger_members(self, ledger_id: str) -> int:
        return self.query().filter(Membership.ledger_id == ledger_id).count()

    def get_account_memberships(self, account_id: str) -> list[Membership]:
        """Get all active memberships for an account (every ledger it belongs to)"""
        return self.query().filter(Membership.account_id == account_id).all()

    def get_owners(self, ledger_id: str) -> list[Membership]:
        """
        Get the active owner memberships for a ledger.

        Returns a list so invariant checks can detect zero or several owners.
        """
        return (
            self.query()
            .filter(
                Membership.ledger_id == ledger_id,
                Membership.role == LedgerRole.OWNER,
            )
            .all()
        )

    def soft_delete_all_for_account(self, account_id: str, now: datetime) -> int:
        """
        Tombstone every active membership of an account.

        Returns:
            Number of memberships removed
        """
        memberships = self.get_account_memberships(account_id)
        for membership in memberships:
            membership.mark_deleted(now)
        self.db.flush()
        return len(memberships)
