from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock, utcnow
from household_ledger.core.constants import MAX_MEMBERS_PER_LEDGER, SUPPORTED_CURRENCIES
from household_ledger.core.exceptions import (
    AlreadyMemberException,
    CannotDemoteOwnerException,
    CannotLeaveAsSoleOwnerException,
    CannotRemoveSoleOwnerException,
    ConcurrencyConflictException,
    InsufficientRoleException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from household_ledger.core.logging import get_logger
from household_ledger.database import atomic
from household_ledger.models.ledger import Ledger
from household_ledger.models.membership import Membership
from household_ledger.models.role import LedgerAction, LedgerRole, assignable_roles
from household_ledger.repositories.account_repository import AccountRepository
from household_ledger.repositories.category_repository import CategoryRepository
from household_ledger.repositories.ledger_repository import LedgerRepository
from household_ledger.repositories.membership_repository import MembershipRepository
from household_ledger.schemas.ledger_schemas import LedgerCreate, LedgerUpdate
from household_ledger.services.authorization_service import AuthorizationService

logger = get_logger(__name__)


class MembershipService:
    """
    Service layer for ledgers and their memberships.

    Every mutation runs as one transaction and re-verifies the owner
    invariant before commit: a non-deleted ledger has exactly one active
    OWNER membership and it belongs to ``Ledger.created_by``.
    """

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.ledger_repo = LedgerRepository(db)
        self.membership_repo = MembershipRepository(db)
        self.account_repo = AccountRepository(db)
        self.category_repo = CategoryRepository(db)
        self.authz = AuthorizationService(db)

    # Ledgers

    def create_ledger(self, owner_id: str, attrs: LedgerCreate) -> Ledger:
        """
        Create a ledger owned by ``owner_id``.

        The ledger, the owner membership and the default categories are
        created in one transaction. The owner's account row is written too,
        so a concurrent deletion request for the same account conflicts
        instead of slipping past its ownership check.

        Raises:
            UnauthorizedException: If the owner account is not active
            ValidationException: If name or currency is invalid
        """
        name = attrs.name.strip()
        if not name:
            raise ValidationException("Ledger name is required")
        if attrs.currency not in SUPPORTED_CURRENCIES:
            raise ValidationException(
                f"Unsupported currency. Supported: {', '.join(SUPPORTED_CURRENCIES)}"
            )

        with atomic(self.db):
            owner = self.account_repo.get_active(owner_id)
            if owner is None:
                raise UnauthorizedException("Only active accounts can create ledgers")

            now = self.clock()
            ledger = self.ledger_repo.add(
                Ledger(
                    name=name,
                    description=attrs.description.strip() if attrs.description else None,
                    currency=attrs.currency,
                    created_by=owner_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            self.membership_repo.add(
                Membership(
                    ledger_id=ledger.id,
                    account_id=owner_id,
                    role=LedgerRole.OWNER,
                    joined_at=now,
                )
            )
            self.category_repo.copy_templates(ledger.id)
            self.account_repo.touch(owner, now)
            self._check_owner_invariant(ledger)

        logger.info("ledger_created", ledger_id=ledger.id, owner_id=owner_id)
        return ledger

    def list_ledgers(self, account_id: str) -> list[dict]:
        """
        List active ledgers the account belongs to, with its role in each.
        """
        result = []
        for ledger, membership in self.ledger_repo.get_for_account(account_id):
            result.append(
                {
                    "id": ledger.id,
                    "name": ledger.name,
                    "description": ledger.description,
                    "currency": ledger.currency,
                    "created_by": ledger.created_by,
                    "created_at": ledger.created_at,
                    "updated_at": ledger.updated_at,
                    "deleted_at": ledger.deleted_at,
                    "role": membership.role,
                }
            )
        return result

    def get_ledger(self, actor_id: str, ledger_id: str) -> Ledger:
        self.authz.require(actor_id, ledger_id, LedgerAction.READ_LEDGER)
        return self._get_active_ledger(ledger_id)

    def update_ledger(self, actor_id: str, ledger_id: str, changes: LedgerUpdate) -> Ledger:
        """
        Update ledger details (OWNER only).

        Raises:
            UnauthorizedException: If actor is not the owner
            ValidationException: If currency is unsupported
        """
        with atomic(self.db):
            self.authz.require(actor_id, ledger_id, LedgerAction.UPDATE_LEDGER)
            ledger = self._get_active_ledger(ledger_id)

            if changes.name is not None:
                if not changes.name.strip():
                    raise ValidationException("Ledger name is required")
                ledger.name = changes.name.strip()
            if changes.description is not None:
                ledger.description = changes.description.strip()
            if changes.currency is not None:
                if changes.currency not in SUPPORTED_CURRENCIES:
                    raise ValidationException(
                        f"Unsupported currency. Supported: {', '.join(SUPPORTED_CURRENCIES)}"
                    )
                ledger.currency = changes.currency
            ledger.updated_at = self.clock()

        return ledger

    def delete_ledger(self, actor_id: str, ledger_id: str) -> None:
        """
        Soft-delete a ledger (OWNER only).

        Memberships, categories, transactions and budgets are left as they
        are; they simply stop being reachable through active ledgers.
        Deleting an already-deleted ledger is a no-op for its owner.
        """
        with atomic(self.db):
            existing = self.ledger_repo.get(ledger_id, include_deleted=True)
            if existing is not None and existing.is_deleted and existing.created_by == actor_id:
                return
            self.authz.require(actor_id, ledger_id, LedgerAction.DELETE_LEDGER)
            ledger = self._get_active_ledger(ledger_id)
            self.ledger_repo.soft_delete(ledger, self.clock())

        logger.info("ledger_deleted", ledger_id=ledger_id, actor_id=actor_id)

    def restore_ledger(self, actor_id: str, ledger_id: str) -> Ledger:
        """
        Restore a soft-deleted ledger.

        Only the recorded owner may restore, and only while their owner
        membership is still active, so the owner invariant holds again the
        moment the ledger becomes visible. Restoring an active ledger is a
        no-op.

        Raises:
            NotFoundException: If the ledger does not exist
            UnauthorizedException: If actor is not the recorded, active owner
        """
        with atomic(self.db):
            ledger = self.ledger_repo.get(ledger_id, include_deleted=True)
            if ledger is None:
                raise NotFoundException("Ledger not found")
            if not ledger.is_deleted:
                self.authz.require(actor_id, ledger_id, LedgerAction.READ_LEDGER)
                return ledger

            membership = self.membership_repo.get_membership(actor_id, ledger_id)
            if (
                ledger.created_by != actor_id
                or membership is None
                or membership.role != LedgerRole.OWNER
                or self.account_repo.get_active(actor_id) is None
            ):
                raise UnauthorizedException("Only the ledger owner can restore a ledger")

            self.ledger_repo.restore(ledger)
            self._check_owner_invariant(ledger)

        logger.info("ledger_restored", ledger_id=ledger_id, actor_id=actor_id)
        return ledger

    # Members

    def list_members(self, actor_id: str, ledger_id: str) -> list[dict]:
        """
        Get all active members of a ledger with account details.

        Available to every role.
        """
        self.authz.require(actor_id, ledger_id, LedgerAction.READ_MEMBERS)

        result = []
        for membership in self.membership_repo.get_ledger_members(ledger_id):
            account = membership.account
            result.append(
                {
                    "id": membership.id,
                    "account_id": membership.account_id,
                    "display_name": account.display_name if account else None,
                    "email": account.email if account else None,
                    "role": membership.role,
                    "joined_at": membership.joined_at,
                }
            )
        return result

    def invite_member(
        self, actor_id: str, ledger_id: str, target_account_id: str, role: LedgerRole
    ) -> Membership:
        """
        Add an account to the ledger (ADMIN or OWNER).

        Admins may grant MEMBER or VIEWER; only the owner may grant ADMIN.
        OWNER is never granted here, use transfer_ownership. An account that
        left earlier gets its old membership row back with the new role.

        Raises:
            UnauthorizedException: If actor lacks member management rights
            InsufficientRoleException: If ``role`` exceeds what actor may grant
            NotFoundException: If target account does not exist or is not active
            AlreadyMemberException: If target already has an active membership
            ValidationException: If the ledger is full
        """
        with atomic(self.db):
            context = self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_MEMBERS)
            ledger = self._get_active_ledger(ledger_id)

            if role not in assignable_roles(context.role):
                raise InsufficientRoleException(
                    f"Role '{context.role.value}' cannot grant role '{role.value}'"
                )

            if self.account_repo.get_active(target_account_id) is None:
                raise NotFoundException("Account not found")

            existing = self.membership_repo.get_membership(
                target_account_id, ledger_id, include_deleted=True
            )
            if existing is not None and not existing.is_deleted:
                raise AlreadyMemberException(f"Account {target_account_id} is already a member")

            if self.membership_repo.count_ledger_members(ledger_id) >= MAX_MEMBERS_PER_LEDGER:
                raise ValidationException(
                    f"A ledger can have at most {MAX_MEMBERS_PER_LEDGER} members"
                )

            now = self.clock()
            if existing is not None:
                existing.role = role
                existing.joined_at = now
                self.membership_repo.restore(existing)
                membership = existing
            else:
                membership = self.membership_repo.add(
                    Membership(
                        ledger_id=ledger_id,
                        account_id=target_account_id,
                        role=role,
                        joined_at=now,
                    )
                )
            self.ledger_repo.touch(ledger, now)

        logger.info(
            "member_invited",
            ledger_id=ledger_id,
            actor_id=actor_id,
            account_id=target_account_id,
            role=role.value,
        )
        return membership

    def invite_member_by_email(
        self, actor_id: str, ledger_id: str, email: str, role: LedgerRole
    ) -> Membership:
        """Resolve an active account by email, then invite it."""
        self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_MEMBERS)
        account = self.account_repo.get_active_by_email(email.strip().lower())
        if account is None:
            raise NotFoundException("No account is registered with that email")
        return self.invite_member(actor_id, ledger_id, account.id, role)

    def change_role(
        self, actor_id: str, ledger_id: str, target_account_id: str, new_role: LedgerRole
    ) -> Membership:
        """
        Change a member's role.

        Raises:
            UnauthorizedException: If actor lacks member management rights
                or targets themself
            NotFoundException: If target has no active membership
            CannotDemoteOwnerException: If target is the owner
            InsufficientRoleException: If granting OWNER, or an admin tries
                to change an admin or promote to admin
        """
        with atomic(self.db):
            context = self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_MEMBERS)
            ledger = self._get_active_ledger(ledger_id)

            membership = self.membership_repo.get_membership(target_account_id, ledger_id)
            if membership is None:
                raise NotFoundException("Member not found in this ledger")

            # Owner's role only changes through transfer_ownership
            if membership.role == LedgerRole.OWNER:
                raise CannotDemoteOwnerException(
                    "The owner's role cannot be changed; transfer ownership first"
                )

            if new_role == LedgerRole.OWNER:
                raise InsufficientRoleException(
                    "Ownership can only be granted by transferring it"
                )

            if target_account_id == actor_id:
                raise UnauthorizedException("Cannot change your own role")

            if membership.role == LedgerRole.ADMIN or new_role == LedgerRole.ADMIN:
                if not context.is_owner():
                    raise InsufficientRoleException(
                        "Only the owner can promote to admin or change an admin's role"
                    )

            if membership.role != new_role:
                old_role = membership.role
                membership.role = new_role
                self.ledger_repo.touch(ledger, self.clock())
                self._check_owner_invariant(ledger)
                logger.info(
                    "member_role_changed",
                    ledger_id=ledger_id,
                    actor_id=actor_id,
                    account_id=target_account_id,
                    old_role=old_role.value,
                    new_role=new_role.value,
                )

        return membership

    def remove_member(self, actor_id: str, ledger_id: str, target_account_id: str) -> None:
        """
        Remove a member from the ledger (soft delete).

        Raises:
            UnauthorizedException: If actor lacks rights, targets themself,
                or an admin targets another admin
            NotFoundException: If target was never a member; removing a
                former member is a no-op
            CannotRemoveSoleOwnerException: If target is the owner
        """
        with atomic(self.db):
            context = self.authz.require(actor_id, ledger_id, LedgerAction.MANAGE_MEMBERS)
            ledger = self._get_active_ledger(ledger_id)

            membership = self.membership_repo.get_membership(
                target_account_id, ledger_id, include_deleted=True
            )
            if membership is None:
                raise NotFoundException("Member not found in this ledger")
            if membership.is_deleted:
                return

            if membership.role == LedgerRole.OWNER:
                raise CannotRemoveSoleOwnerException(
                    "The owner cannot be removed; transfer ownership first"
                )

            if target_account_id == actor_id:
                raise UnauthorizedException("Use leave to remove yourself from a ledger")

            if membership.role == LedgerRole.ADMIN and not context.allows(LedgerAction.REMOVE_ADMIN):
                raise UnauthorizedException("Only the owner can remove an admin")

            now = self.clock()
            self.membership_repo.soft_delete(membership, now)
            self.ledger_repo.touch(ledger, now)
            self._check_owner_invariant(ledger)

        logger.info(
            "member_removed", ledger_id=ledger_id, actor_id=actor_id, account_id=target_account_id
        )

    def transfer_ownership(
        self, current_owner_id: str, ledger_id: str, new_owner_id: str
    ) -> Membership:
        """
        Hand the ledger to another account.

        In one transaction the current owner becomes ADMIN, the target's
        membership is promoted (created, or restored if they had left) to
        OWNER, and ``Ledger.created_by`` moves to the target. The ledger row
        is version-checked, so a concurrent membership change on the same
        ledger makes one of the two transactions fail as a whole.

        Returns:
            The new owner's membership

        Raises:
            NotFoundException: If the ledger or target account doesn't exist
            UnauthorizedException: If caller is not the current owner
            ValidationException: If transferring to oneself
        """
        with atomic(self.db):
            ledger = self._get_active_ledger(ledger_id)
            self.authz.require(current_owner_id, ledger_id, LedgerAction.TRANSFER_OWNERSHIP)

            if new_owner_id == current_owner_id:
                raise ValidationException("You already own this ledger")

            if self.account_repo.get_active(new_owner_id) is None:
                raise NotFoundException("Account not found")

            now = self.clock()
            current = self.membership_repo.get_membership(current_owner_id, ledger_id)
            target = self.membership_repo.get_membership(
                new_owner_id, ledger_id, include_deleted=True
            )

            current.role = LedgerRole.ADMIN
            if target is None:
                target = self.membership_repo.add(
                    Membership(
                        ledger_id=ledger_id,
                        account_id=new_owner_id,
                        role=LedgerRole.OWNER,
                        joined_at=now,
                    )
                )
            else:
                if target.is_deleted:
                    target.joined_at = now
                    target.mark_restored()
                target.role = LedgerRole.OWNER

            ledger.created_by = new_owner_id
            self.ledger_repo.touch(ledger, now)
            self._check_owner_invariant(ledger)

        logger.info(
            "ownership_transferred",
            ledger_id=ledger_id,
            previous_owner_id=current_owner_id,
            new_owner_id=new_owner_id,
        )
        return target

    def leave_ledger(self, account_id: str, ledger_id: str) -> None:
        """
        Leave a ledger (self-removal).

        Raises:
            NotFoundException: If the account was never a member; leaving
                twice is a no-op
            CannotLeaveAsSoleOwnerException: If the account is the owner
        """
        with atomic(self.db):
            ledger = self._get_active_ledger(ledger_id)
            membership = self.membership_repo.get_membership(
                account_id, ledger_id, include_deleted=True
            )
            if membership is None:
                raise NotFoundException("You are not a member of this ledger")
            if membership.is_deleted:
                return

            if membership.role == LedgerRole.OWNER:
                raise CannotLeaveAsSoleOwnerException(
                    "The owner cannot leave; transfer ownership or delete the ledger first"
                )

            now = self.clock()
            self.membership_repo.soft_delete(membership, now)
            self.ledger_repo.touch(ledger, now)

        logger.info("member_left", ledger_id=ledger_id, account_id=account_id)

    # Helpers

    def _get_active_ledger(self, ledger_id: str) -> Ledger:
        ledger = self.ledger_repo.get(ledger_id)
        if ledger is None:
            raise NotFoundException("Ledger not found")
        return ledger

    def _check_owner_invariant(self, ledger: Ledger) -> None:
        """
        Verify exactly one active owner matching ``created_by`` before commit.

        A violation here means another transaction interleaved with this one;
        raising rolls the whole operation back.
        """
        owners = self.membership_repo.get_owners(ledger.id)
        if len(owners) != 1 or owners[0].account_id != ledger.created_by:
            logger.error(
                "owner_invariant_violated",
                ledger_id=ledger.id,
                owner_count=len(owners),
                created_by=ledger.created_by,
            )
            raise ConcurrencyConflictException(
                "Ledger ownership changed concurrently; retry the request"
            )
