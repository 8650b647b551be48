"""Role-based authorization inside a ledger."""

from sqlalchemy.orm import Session

from household_ledger.core.exceptions import UnauthorizedException
from household_ledger.models.ledger_context import LedgerContext
from household_ledger.models.role import LedgerAction
from household_ledger.repositories.ledger_repository import LedgerRepository
from household_ledger.repositories.membership_repository import MembershipRepository


class AuthorizationService:
    """
    Decides whether an account may perform an action in a ledger.

    Decisions are made against the account's active membership in an
    active ledger. Having no such membership is an ordinary denial, never
    an error.
    """

    def __init__(self, db: Session):
        self.db = db
        self.ledger_repo = LedgerRepository(db)
        self.membership_repo = MembershipRepository(db)

    def get_context(self, account_id: str, ledger_id: str) -> LedgerContext | None:
        """
        Resolve the account's role in the ledger.

        Returns:
            LedgerContext, or None if the ledger is deleted or the account
            has no active membership in it
        """
        if self.ledger_repo.get(ledger_id) is None:
            return None
        membership = self.membership_repo.get_membership(account_id, ledger_id)
        if membership is None:
            return None
        return LedgerContext.from_membership(membership)

    def can(
        self,
        account_id: str,
        ledger_id: str,
        action: LedgerAction | str,
        resource_author_id: str | None = None,
    ) -> bool:
        """
        Check whether ``account_id`` may perform ``action`` in ``ledger_id``.

        Args:
            account_id: Acting account
            ledger_id: Target ledger
            action: LedgerAction or its string value, e.g. "edit-own-transaction"
            resource_author_id: Author of the resource for own-resource actions

        Returns:
            True if permitted; False for unknown actions
        """
        try:
            action = LedgerAction(action)
        except ValueError:
            return False
        context = self.get_context(account_id, ledger_id)
        if context is None:
            return False
        return context.allows(action, resource_author_id)

    def require(
        self,
        account_id: str,
        ledger_id: str,
        action: LedgerAction | str,
        resource_author_id: str | None = None,
    ) -> LedgerContext:
        """
        Like ``can`` but returns the context or raises.

        Raises:
            UnauthorizedException: If the action is not permitted
        """
        context = self.get_context(account_id, ledger_id)
        if context is None:
            raise UnauthorizedException("You are not a member of this ledger")
        action = LedgerAction(action)
        if not context.allows(action, resource_author_id):
            raise UnauthorizedException(
                f"Role '{context.role.value}' is not allowed to {action.value.replace('-', ' ')}"
            )
        return context

    def require_any(
        self,
        account_id: str,
        ledger_id: str,
        actions: tuple[LedgerAction, ...],
        resource_author_id: str | None = None,
    ) -> LedgerContext:
        """Require at least one of ``actions``; used for own-or-any transaction edits."""
        context = self.get_context(account_id, ledger_id)
        if context is None:
            raise UnauthorizedException("You are not a member of this ledger")
        if not any(context.allows(action, resource_author_id) for action in actions):
            raise UnauthorizedException(
                f"Role '{context.role.value}' is not allowed to modify this resource"
            )
        return context
