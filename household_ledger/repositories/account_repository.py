from datetime import datetime

from sqlalchemy import update

from household_ledger.models.account import Account
from household_ledger.repositories.base import TombstoneRepository


class AccountRepository(TombstoneRepository[Account]):
    """Repository for Account model operations"""

    model = Account

    def get_any(self, account_id: str) -> Account | None:
        """Get account by provider id regardless of lifecycle state"""
        return self.get(account_id, include_deleted=True)

    def get_active_by_email(self, email: str) -> Account | None:
        return self.query().filter(Account.email == email).first()

    def get_active(self, account_id: str) -> Account | None:
        """Get account only if it is Active (not pending deletion, not erased)"""
        return self.get(account_id)

    def create(self, account_id: str, email: str | None = None) -> Account:
        """
        Create the account on first authentication.

        Args:
            account_id: Subject claim from the auth provider's JWT

        Returns:
            New Account object (flushed, not committed)
        """
        return self.add(Account(id=account_id, email=email))

    def get_expired_ids(self, cutoff: datetime, limit: int) -> list[str]:
        """
        Ids of accounts pending deletion since at or before ``cutoff``.

        Already erased accounts are excluded, so repeated sweeps find nothing.
        """
        rows = (
            self.db.query(Account.id)
            .filter(
                Account.deleted_at.is_not(None),
                Account.deleted_at <= cutoff,
                Account.erased_at.is_(None),
            )
            .order_by(Account.deleted_at)
            .limit(limit)
            .all()
        )
        return [row.id for row in rows]

    def claim_and_erase(self, account_id: str, cutoff: datetime, now: datetime) -> bool:
        """
        Claim an expired account and erase its profile in one conditional update.

        Only one concurrent sweep worker can flip ``erased_at`` from NULL;
        the others see rowcount 0 and skip the account. The version column
        is bumped so in-flight ORM writers of this row conflict too.
        ``deleted_at`` is kept as the record of when deletion was requested.

        Returns:
            True if this caller won the claim
        """
        result = self.db.execute(
            update(Account)
            .where(
                Account.id == account_id,
                Account.erased_at.is_(None),
                Account.deleted_at.is_not(None),
                Account.deleted_at <= cutoff,
            )
            .values(
                email=None,
                display_name=None,
                avatar_url=None,
                erased_at=now,
                version=Account.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
