"""Ledger roles and the actions they grant."""

from enum import Enum as PyEnum


class LedgerRole(str, PyEnum):
    """
    Membership roles, totally ordered by privilege.

    Role Hierarchy (highest to lowest):
    1. OWNER - Everything admins can do, plus delete the ledger, transfer
       ownership and remove admins
    2. ADMIN - Manage categories, budgets and non-owner memberships
    3. MEMBER - Create, edit and delete own transactions
    4. VIEWER - Read-only access to the ledger and its data

    Roles compare by privilege, so ``LedgerRole.ADMIN > LedgerRole.MEMBER``
    holds and ``max(roles)`` returns the most privileged one.
    """

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, LedgerRole):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, LedgerRole):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, LedgerRole):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, LedgerRole):
            return NotImplemented
        return self.rank >= other.rank


_ROLE_RANK = {
    LedgerRole.VIEWER: 1,
    LedgerRole.MEMBER: 2,
    LedgerRole.ADMIN: 3,
    LedgerRole.OWNER: 4,
}


class LedgerAction(str, PyEnum):
    """Actions checked by the authorization service."""

    READ_LEDGER = "read-ledger"
    READ_MEMBERS = "read-members"
    READ_CATEGORIES = "read-categories"
    READ_TRANSACTIONS = "read-transactions"
    READ_BUDGETS = "read-budgets"

    CREATE_TRANSACTION = "create-transaction"
    EDIT_OWN_TRANSACTION = "edit-own-transaction"
    DELETE_OWN_TRANSACTION = "delete-own-transaction"

    EDIT_TRANSACTION = "edit-transaction"
    DELETE_TRANSACTION = "delete-transaction"
    MANAGE_CATEGORIES = "manage-categories"
    MANAGE_BUDGETS = "manage-budgets"
    MANAGE_MEMBERS = "manage-members"

    UPDATE_LEDGER = "update-ledger"
    DELETE_LEDGER = "delete-ledger"
    TRANSFER_OWNERSHIP = "transfer-ownership"
    REMOVE_ADMIN = "remove-admin"


# Minimum role for each action
ACTION_MIN_ROLE: dict[LedgerAction, LedgerRole] = {
    LedgerAction.READ_LEDGER: LedgerRole.VIEWER,
    LedgerAction.READ_MEMBERS: LedgerRole.VIEWER,
    LedgerAction.READ_CATEGORIES: LedgerRole.VIEWER,
    LedgerAction.READ_TRANSACTIONS: LedgerRole.VIEWER,
    LedgerAction.READ_BUDGETS: LedgerRole.VIEWER,
    LedgerAction.CREATE_TRANSACTION: LedgerRole.MEMBER,
    LedgerAction.EDIT_OWN_TRANSACTION: LedgerRole.MEMBER,
    LedgerAction.DELETE_OWN_TRANSACTION: LedgerRole.MEMBER,
    LedgerAction.EDIT_TRANSACTION: LedgerRole.ADMIN,
    LedgerAction.DELETE_TRANSACTION: LedgerRole.ADMIN,
    LedgerAction.MANAGE_CATEGORIES: LedgerRole.ADMIN,
    LedgerAction.MANAGE_BUDGETS: LedgerRole.ADMIN,
    LedgerAction.MANAGE_MEMBERS: LedgerRole.ADMIN,
    LedgerAction.UPDATE_LEDGER: LedgerRole.OWNER,
    LedgerAction.DELETE_LEDGER: LedgerRole.OWNER,
    LedgerAction.TRANSFER_OWNERSHIP: LedgerRole.OWNER,
    LedgerAction.REMOVE_ADMIN: LedgerRole.OWNER,
}

# Actions that additionally require the account to be the resource's author
OWN_RESOURCE_ACTIONS = frozenset(
    {LedgerAction.EDIT_OWN_TRANSACTION, LedgerAction.DELETE_OWN_TRANSACTION}
)


def assignable_roles(actor_role: LedgerRole) -> tuple[LedgerRole, ...]:
    """
    Roles an actor may grant through invite or role change.

    OWNER is never assignable; it only moves through ownership transfer.
    """
    if actor_role == LedgerRole.OWNER:
        return (LedgerRole.ADMIN, LedgerRole.MEMBER, LedgerRole.VIEWER)
    if actor_role == LedgerRole.ADMIN:
        return (LedgerRole.MEMBER, LedgerRole.VIEWER)
    return ()
