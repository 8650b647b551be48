"""Ledger context for request authorization."""

from dataclasses import dataclass

from household_ledger.models.membership import Membership
from household_ledger.models.role import (
    ACTION_MIN_ROLE,
    OWN_RESOURCE_ACTIONS,
    LedgerAction,
    LedgerRole,
)


@dataclass
class LedgerContext:
    """
    An account's standing inside one ledger.

    Built from an active membership of an active ledger. Used by the
    authorization service for every permission decision.

    Attributes:
        account_id: The acting account
        ledger_id: The ledger being accessed
        role: The account's role within this ledger
    """

    account_id: str
    ledger_id: str
    role: LedgerRole

    @classmethod
    def from_membership(cls, membership: Membership) -> "LedgerContext":
        return cls(
            account_id=membership.account_id,
            ledger_id=membership.ledger_id,
            role=membership.role,
        )

    def has_permission(self, required_role: LedgerRole) -> bool:
        """Check if the role meets or exceeds required role."""
        return self.role >= required_role

    def allows(self, action: LedgerAction, resource_author_id: str | None = None) -> bool:
        """
        Decide whether this context may perform ``action``.

        Own-resource actions also require ``resource_author_id`` to be the
        acting account; a missing author (erased account) never matches.
        """
        if not self.has_permission(ACTION_MIN_ROLE[action]):
            return False
        if action in OWN_RESOURCE_ACTIONS:
            return resource_author_id is not None and resource_author_id == self.account_id
        return True

    def is_owner(self) -> bool:
        return self.role == LedgerRole.OWNER

    def is_admin_or_higher(self) -> bool:
        return self.role >= LedgerRole.ADMIN

    def __repr__(self) -> str:
        return f"<LedgerContext(account_id={self.account_id}, ledger_id={self.ledger_id}, role={self.role.value})>"
