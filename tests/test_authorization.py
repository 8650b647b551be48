import pytest

from household_ledger.core.exceptions import UnauthorizedException
from household_ledger.models.role import (
    LedgerAction,
    LedgerRole,
    assignable_roles,
)
from household_ledger.services.authorization_service import AuthorizationService


@pytest.fixture
def authz(db_session):
    return AuthorizationService(db_session)


class TestRoleOrdering:
    """LedgerRole total order"""

    def test_roles_are_ordered(self):
        assert LedgerRole.VIEWER < LedgerRole.MEMBER < LedgerRole.ADMIN < LedgerRole.OWNER
        assert LedgerRole.OWNER >= LedgerRole.OWNER
        assert not LedgerRole.ADMIN > LedgerRole.OWNER

    def test_assignable_roles(self):
        assert assignable_roles(LedgerRole.OWNER) == (
            LedgerRole.ADMIN,
            LedgerRole.MEMBER,
            LedgerRole.VIEWER,
        )
        assert assignable_roles(LedgerRole.ADMIN) == (LedgerRole.MEMBER, LedgerRole.VIEWER)
        assert assignable_roles(LedgerRole.MEMBER) == ()
        assert assignable_roles(LedgerRole.VIEWER) == ()


class TestCan:
    """Permission decisions per role"""

    def test_every_member_can_read(self, authz, household):
        for account_id in ("alice", "bob", "carol", "dave"):
            assert authz.can(account_id, household, LedgerAction.READ_TRANSACTIONS)
            assert authz.can(account_id, household, "read-members")

    def test_viewer_can_never_write(self, authz, household):
        assert not authz.can("dave", household, LedgerAction.CREATE_TRANSACTION)
        assert not authz.can("dave", household, LedgerAction.EDIT_TRANSACTION)
        assert not authz.can("dave", household, LedgerAction.EDIT_OWN_TRANSACTION, "dave")
        assert not authz.can("dave", household, LedgerAction.DELETE_OWN_TRANSACTION, "dave")

    def test_edit_own_transaction_requires_authorship(self, authz, household):
        assert authz.can("carol", household, "edit-own-transaction", resource_author_id="carol")
        assert not authz.can("carol", household, "edit-own-transaction", resource_author_id="bob")
        assert not authz.can("carol", household, "edit-own-transaction", resource_author_id=None)

    def test_member_cannot_edit_any_transaction(self, authz, household):
        assert not authz.can("carol", household, LedgerAction.EDIT_TRANSACTION)
        assert not authz.can("carol", household, LedgerAction.DELETE_TRANSACTION)

    def test_admin_manages_but_does_not_own(self, authz, household):
        assert authz.can("bob", household, LedgerAction.EDIT_TRANSACTION)
        assert authz.can("bob", household, LedgerAction.MANAGE_CATEGORIES)
        assert authz.can("bob", household, LedgerAction.MANAGE_MEMBERS)
        assert not authz.can("bob", household, LedgerAction.DELETE_LEDGER)
        assert not authz.can("bob", household, LedgerAction.TRANSFER_OWNERSHIP)
        assert not authz.can("bob", household, LedgerAction.REMOVE_ADMIN)

    def test_owner_can_everything(self, authz, household):
        for action in LedgerAction:
            author = "alice" if action in (
                LedgerAction.EDIT_OWN_TRANSACTION,
                LedgerAction.DELETE_OWN_TRANSACTION,
            ) else None
            assert authz.can("alice", household, action, author)

    def test_non_member_is_denied(self, authz, household):
        assert not authz.can("erin", household, LedgerAction.READ_LEDGER)
        assert not authz.can("nobody", household, LedgerAction.READ_LEDGER)

    def test_unknown_ledger_is_denied(self, authz, household):
        assert not authz.can("alice", "no-such-ledger", LedgerAction.READ_LEDGER)

    def test_deleted_ledger_denies_everyone(self, authz, household, memberships):
        memberships.delete_ledger("alice", household)

        assert not authz.can("alice", household, LedgerAction.READ_LEDGER)
        assert not authz.can("bob", household, LedgerAction.READ_LEDGER)

    def test_former_member_is_denied(self, authz, household, memberships):
        memberships.leave_ledger("carol", household)

        assert not authz.can("carol", household, LedgerAction.READ_LEDGER)

    def test_unknown_action_is_denied(self, authz, household):
        assert not authz.can("alice", household, "launch-rockets")
        assert not authz.can("erin", household, "launch-rockets")


class TestRequire:
    def test_returns_context(self, authz, household):
        context = authz.require("bob", household, LedgerAction.MANAGE_MEMBERS)

        assert context.role == LedgerRole.ADMIN
        assert context.is_admin_or_higher()
        assert not context.is_owner()

    def test_raises_for_insufficient_role(self, authz, household):
        with pytest.raises(UnauthorizedException):
            authz.require("carol", household, LedgerAction.MANAGE_CATEGORIES)

    def test_raises_for_non_member(self, authz, household):
        with pytest.raises(UnauthorizedException):
            authz.require("erin", household, LedgerAction.READ_LEDGER)

    def test_require_any_accepts_own_or_any(self, authz, household):
        actions = (LedgerAction.EDIT_TRANSACTION, LedgerAction.EDIT_OWN_TRANSACTION)

        authz.require_any("carol", household, actions, "carol")
        authz.require_any("bob", household, actions, "carol")
        with pytest.raises(UnauthorizedException):
            authz.require_any("carol", household, actions, "bob")
