"""Account lifecycle: deletion request, grace period, restoration and erasure."""

import hashlib
import re
import time
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock, utcnow
from household_ledger.core.constants import (
    DELETE_ACCOUNT_CONFIRM_TEXT,
    DELETION_GRACE_PERIOD,
    NICKNAME_MAX_LENGTH,
    NICKNAME_MIN_LENGTH,
    SUPPORTED_CURRENCIES,
    SUPPORTED_TIMEZONES,
)
from household_ledger.core.exceptions import (
    AccountPermanentlyDeletedException,
    ConfirmTextMismatchException,
    HasOwnedLedgersException,
    InfrastructureException,
    NotFoundException,
    ValidationException,
)
from household_ledger.core.logging import get_logger
from household_ledger.database import atomic
from household_ledger.models.account import Account, AccountStatus
from household_ledger.models.deletion_audit import DeletedAccount, DeletionJobLog
from household_ledger.models.role import LedgerRole
from household_ledger.repositories.account_repository import AccountRepository
from household_ledger.repositories.budget_repository import BudgetRepository
from household_ledger.repositories.deletion_audit_repository import DeletionAuditRepository
from household_ledger.repositories.ledger_repository import LedgerRepository
from household_ledger.repositories.membership_repository import MembershipRepository
from household_ledger.repositories.transaction_repository import TransactionRepository
from household_ledger.schemas.account_schemas import ProfileUpdate

logger = get_logger(__name__)

NICKNAME_PATTERN = re.compile(r"^[가-힣a-zA-Z0-9\s]+$")


@dataclass
class DeletionReceipt:
    """Outcome of a successful deletion request"""

    account_id: str
    deleted_at: datetime
    grace_period_ends_at: datetime
    memberships_removed: int


@dataclass
class SweepReport:
    """Outcome of one expiry sweep run"""

    candidates: int = 0
    erased: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)
    dry_run: bool = False
    duration_ms: int = 0


class LifecycleService:
    """
    Account state machine: Active -> PendingDeletion -> Deleted.

    - request_deletion moves Active to PendingDeletion and removes the
      account from every ledger it belongs to
    - reauthenticate within the grace period moves it back to Active;
      memberships removed by the deletion request stay removed
    - sweep_expired (or a late reauthenticate) erases the profile and
      makes the account Deleted for good
    """

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.account_repo = AccountRepository(db)
        self.ledger_repo = LedgerRepository(db)
        self.membership_repo = MembershipRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.budget_repo = BudgetRepository(db)
        self.audit_repo = DeletionAuditRepository(db)

    # State transitions

    def request_deletion(self, account_id: str, confirmation_text: str) -> DeletionReceipt:
        """
        Move an Active account to PendingDeletion.

        The ownership check and the writes share one transaction. The
        account row is version-checked on update, and create_ledger writes
        the same row, so a ledger created concurrently by this account makes
        one of the two transactions fail instead of leaving an owned ledger
        behind a deleted account.

        Args:
            account_id: Account requesting deletion
            confirmation_text: Must equal DELETE_ACCOUNT_CONFIRM_TEXT exactly

        Raises:
            ConfirmTextMismatchException: If the phrase does not match
            HasOwnedLedgersException: If the account owns any non-deleted ledger
            NotFoundException: If the account does not exist
            ValidationException: If deletion was already requested
            AccountPermanentlyDeletedException: If the account is already erased
        """
        if confirmation_text != DELETE_ACCOUNT_CONFIRM_TEXT:
            raise ConfirmTextMismatchException("Confirmation text does not match")

        with atomic(self.db):
            account = self.account_repo.get_any(account_id)
            if account is None:
                raise NotFoundException("Account not found")
            if account.status == AccountStatus.DELETED:
                raise AccountPermanentlyDeletedException("Account has been permanently deleted")
            if account.status == AccountStatus.PENDING_DELETION:
                raise ValidationException("Account deletion has already been requested")

            owned = self.ledger_repo.count_owned_active(account_id)
            if owned:
                raise HasOwnedLedgersException(owned)

            now = self.clock()
            self.account_repo.soft_delete(account, now)
            removed = self.membership_repo.soft_delete_all_for_account(account_id, now)

        logger.info(
            "account_deletion_requested",
            account_id=account_id,
            memberships_removed=removed,
        )
        return DeletionReceipt(
            account_id=account_id,
            deleted_at=now,
            grace_period_ends_at=now + DELETION_GRACE_PERIOD,
            memberships_removed=removed,
        )

    def reauthenticate(self, account_id: str, email: str | None = None) -> Account:
        """
        Called for every session issued by the authentication provider.

        - unknown account: created (first authentication)
        - PendingDeletion inside the grace period: restored to Active
        - PendingDeletion past the grace period: erased, then refused
        - Deleted: refused

        Returns:
            The Active account

        Raises:
            AccountPermanentlyDeletedException: If the account is, or has
                just become, Deleted
        """
        with atomic(self.db):
            account = self.account_repo.get_any(account_id)
            if account is None:
                account = self.account_repo.create(account_id, _normalize_email(email))
                logger.info("account_created", account_id=account_id)
                return account

            status = account.status
            if status == AccountStatus.ACTIVE:
                normalized = _normalize_email(email)
                if normalized and account.email != normalized:
                    account.email = normalized
                return account

            if status == AccountStatus.PENDING_DELETION:
                now = self.clock()
                if now - account.deleted_at < DELETION_GRACE_PERIOD:
                    self.account_repo.restore(account)
                    logger.info("account_restored", account_id=account_id)
                    return account
                self._erase(account_id, now)

        # Reached only for Deleted accounts, including one erased just above
        logger.info("reauthentication_refused", account_id=account_id)
        raise AccountPermanentlyDeletedException(
            "The grace period has ended and the account was permanently deleted"
        )

    def sweep_expired(self, batch_size: int = 100, dry_run: bool = False) -> SweepReport:
        """
        Erase every account whose grace period has ended.

        Each account is claimed and erased in its own transaction; a failure
        on one account is recorded and the sweep moves on. Safe to run from
        several workers at once: the conditional claim lets exactly one of
        them erase a given account. Running it again over the same accounts
        changes nothing.

        Args:
            batch_size: Maximum accounts to process in this run
            dry_run: Only report candidates, write nothing

        Returns:
            SweepReport with erased, skipped (claimed elsewhere) and failed ids
        """
        started = time.monotonic()
        now = self.clock()
        cutoff = now - DELETION_GRACE_PERIOD

        candidates = self.account_repo.get_expired_ids(cutoff, batch_size)
        report = SweepReport(candidates=len(candidates), dry_run=dry_run)

        for account_id in candidates:
            if dry_run:
                logger.info("sweep_candidate", account_id=account_id, dry_run=True)
                continue
            try:
                with atomic(self.db):
                    erased = self._erase(account_id, now)
            except InfrastructureException as e:
                logger.error("sweep_account_failed", account_id=account_id, error=str(e))
                report.errors.append({"account_id": account_id, "error": str(e)})
                continue
            if erased:
                report.erased.append(account_id)
            else:
                report.skipped.append(account_id)

        report.duration_ms = int((time.monotonic() - started) * 1000)

        if candidates and not dry_run:
            with atomic(self.db):
                self.audit_repo.record_job(
                    DeletionJobLog(
                        executed_at=now,
                        accounts_processed=len(report.erased),
                        error_count=len(report.errors),
                        errors=report.errors or None,
                        details={
                            "dry_run": False,
                            "duration_ms": report.duration_ms,
                            "total_candidates": report.candidates,
                            "skipped": len(report.skipped),
                        },
                    )
                )

        logger.info(
            "sweep_finished",
            candidates=report.candidates,
            erased=len(report.erased),
            skipped=len(report.skipped),
            errors=len(report.errors),
            dry_run=dry_run,
            duration_ms=report.duration_ms,
        )
        return report

    def _erase(self, account_id: str, now: datetime) -> bool:
        """
        Permanently erase an expired account. Caller owns the transaction.

        Profile fields are blanked, authorship on transactions and budgets
        and the owner reference on deleted ledgers are set to NULL, and a
        DeletedAccount row keeps a hash of the email for audit.

        Returns:
            False if the account was already claimed by another worker
        """
        account = self.account_repo.get_any(account_id)
        if account is None:
            return False
        email, deleted_at = account.email, account.deleted_at

        cutoff = now - DELETION_GRACE_PERIOD
        if not self.account_repo.claim_and_erase(account_id, cutoff, now):
            return False

        self.membership_repo.soft_delete_all_for_account(account_id, now)
        transactions = self.transaction_repo.clear_author(account_id)
        budgets = self.budget_repo.clear_author(account_id)
        ledgers = self.ledger_repo.clear_owner_reference(account_id)
        self.audit_repo.record_erasure(
            DeletedAccount(
                original_account_id=account_id,
                email_hash=_hash_email(email),
                deleted_at=deleted_at,
                erased_at=now,
            )
        )

        logger.info(
            "account_erased",
            account_id=account_id,
            transactions_anonymized=transactions,
            budgets_anonymized=budgets,
            ledgers_detached=ledgers,
        )
        return True

    # Profile

    def get_profile(self, account_id: str) -> dict:
        """
        Get the caller's profile with owned and shared ledger counts.
        """
        account = self.account_repo.get_active(account_id)
        if account is None:
            raise NotFoundException("Account not found")

        ledgers = self.ledger_repo.get_for_account(account_id)
        owned = sum(1 for _, membership in ledgers if membership.role == LedgerRole.OWNER)

        return {
            "id": account.id,
            "email": account.email,
            "display_name": account.display_name,
            "avatar_url": account.avatar_url,
            "currency": account.currency,
            "timezone": account.timezone,
            "status": account.status,
            "created_at": account.created_at,
            "updated_at": account.updated_at,
            "owned_ledger_count": owned,
            "shared_ledger_count": len(ledgers) - owned,
        }

    def update_profile(self, account_id: str, changes: ProfileUpdate) -> dict:
        """
        Update display name, avatar, currency or timezone.

        Raises:
            ValidationException: If a value is not accepted
        """
        if changes.display_name is not None:
            validate_nickname(changes.display_name)
        if changes.currency is not None and changes.currency not in SUPPORTED_CURRENCIES:
            raise ValidationException(
                f"Unsupported currency. Supported: {', '.join(SUPPORTED_CURRENCIES)}"
            )
        if changes.timezone is not None and changes.timezone not in SUPPORTED_TIMEZONES:
            raise ValidationException("Unsupported timezone")

        with atomic(self.db):
            account = self.account_repo.get_active(account_id)
            if account is None:
                raise NotFoundException("Account not found")

            if changes.display_name is not None:
                account.display_name = changes.display_name.strip()
            if changes.avatar_url is not None:
                account.avatar_url = changes.avatar_url or None
            if changes.currency is not None:
                account.currency = changes.currency
            if changes.timezone is not None:
                account.timezone = changes.timezone

        return self.get_profile(account_id)

    def deletion_status(self, account_id: str) -> dict:
        account = self.account_repo.get_any(account_id)
        if account is None:
            raise NotFoundException("Account not found")
        grace_end = (
            account.deleted_at + DELETION_GRACE_PERIOD if account.deleted_at is not None else None
        )
        return {
            "account_id": account.id,
            "status": account.status,
            "deleted_at": account.deleted_at,
            "grace_period_ends_at": grace_end,
        }


def validate_nickname(nickname: str) -> None:
    """Nickname: 2-20 chars of Hangul, latin letters, digits and single spaces."""
    trimmed = nickname.strip()
    if not trimmed:
        raise ValidationException("Nickname is required")
    if len(trimmed) < NICKNAME_MIN_LENGTH:
        raise ValidationException(f"Nickname must be at least {NICKNAME_MIN_LENGTH} characters")
    if len(trimmed) > NICKNAME_MAX_LENGTH:
        raise ValidationException(f"Nickname must be at most {NICKNAME_MAX_LENGTH} characters")
    if not NICKNAME_PATTERN.match(trimmed):
        raise ValidationException("Nickname may only contain letters, digits and spaces")
    if re.search(r"\s{2,}", trimmed):
        raise ValidationException("Nickname cannot contain consecutive spaces")


def _normalize_email(email: str | None) -> str | None:
    return email.strip().lower() if email else None


def _hash_email(email: str | None) -> str | None:
    if not email:
        return None
    return hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()
