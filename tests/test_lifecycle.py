import hashlib

import pytest

from household_ledger.core.constants import DELETE_ACCOUNT_CONFIRM_TEXT
from household_ledger.core.exceptions import (
    AccountPermanentlyDeletedException,
    ConcurrencyConflictException,
    ConfirmTextMismatchException,
    HasOwnedLedgersException,
    InfrastructureException,
    ValidationException,
)
from household_ledger.models.account import Account, AccountStatus
from household_ledger.models.deletion_audit import DeletedAccount, DeletionJobLog
from household_ledger.models.ledger import Ledger
from household_ledger.models.membership import Membership
from household_ledger.models.role import LedgerRole
from household_ledger.schemas.account_schemas import ProfileUpdate
from household_ledger.schemas.content_schemas import TransactionCreate
from household_ledger.schemas.ledger_schemas import LedgerCreate
from household_ledger.services.transaction_service import TransactionService

from conftest import active_role, assert_single_owner, bump_version


def get_account(db, account_id: str) -> Account:
    db.expire_all()
    return db.query(Account).filter(Account.id == account_id).one()


class TestRequestDeletion:
    """Test the deletion request"""

    def test_confirm_text_must_match_exactly(self, db_session, make_account, lifecycle):
        make_account("erin")

        for wrong in ("", "탈퇴하겠습니다", " 탈퇴하겠습니다.", "delete"):
            with pytest.raises(ConfirmTextMismatchException):
                lifecycle.request_deletion("erin", wrong)

        assert get_account(db_session, "erin").status == AccountStatus.ACTIVE

    def test_owner_of_ledgers_is_refused_without_mutation(self, db_session, household, lifecycle, memberships):
        memberships.create_ledger("alice", LedgerCreate(name="Trip"))

        with pytest.raises(HasOwnedLedgersException) as exc_info:
            lifecycle.request_deletion("alice", DELETE_ACCOUNT_CONFIRM_TEXT)

        assert exc_info.value.owned_ledger_count == 2
        assert get_account(db_session, "alice").deleted_at is None
        assert active_role(db_session, "alice", household) == LedgerRole.OWNER
        assert_single_owner(db_session, household)

    def test_deleted_ledgers_do_not_block(self, db_session, household, lifecycle, memberships):
        memberships.delete_ledger("alice", household)

        receipt = lifecycle.request_deletion("alice", DELETE_ACCOUNT_CONFIRM_TEXT)

        assert receipt.account_id == "alice"
        assert get_account(db_session, "alice").status == AccountStatus.PENDING_DELETION

    def test_memberships_are_soft_deleted(self, db_session, household, lifecycle, memberships, clock):
        other = memberships.create_ledger("bob", LedgerCreate(name="Bob's"))
        memberships.invite_member("bob", other.id, "carol", LedgerRole.VIEWER)

        receipt = lifecycle.request_deletion("carol", DELETE_ACCOUNT_CONFIRM_TEXT)

        assert receipt.memberships_removed == 2
        assert receipt.deleted_at == clock()
        assert active_role(db_session, "carol", household) is None
        assert active_role(db_session, "carol", other.id) is None
        # rows are tombstoned, never removed
        assert db_session.query(Membership).filter(Membership.account_id == "carol").count() == 2

    def test_other_members_are_untouched(self, db_session, household, lifecycle):
        lifecycle.request_deletion("carol", DELETE_ACCOUNT_CONFIRM_TEXT)

        assert active_role(db_session, "alice", household) == LedgerRole.OWNER
        assert active_role(db_session, "bob", household) == LedgerRole.ADMIN
        assert active_role(db_session, "dave", household) == LedgerRole.VIEWER
        assert_single_owner(db_session, household)

    def test_second_request_is_rejected(self, make_account, lifecycle):
        make_account("erin")
        lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)

        with pytest.raises(ValidationException):
            lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)

    def test_concurrent_account_write_aborts_request(self, db_session, household, lifecycle, monkeypatch):
        original = lifecycle.ledger_repo.count_owned_active

        def racing_count(account_id):
            # e.g. a ledger being created by the same account
            bump_version(db_session, "accounts", account_id)
            return original(account_id)

        monkeypatch.setattr(lifecycle.ledger_repo, "count_owned_active", racing_count)

        with pytest.raises(ConcurrencyConflictException):
            lifecycle.request_deletion("carol", DELETE_ACCOUNT_CONFIRM_TEXT)

        assert get_account(db_session, "carol").deleted_at is None
        assert active_role(db_session, "carol", household) == LedgerRole.MEMBER


class TestReauthenticate:
    """Test reauthentication across the grace period"""

    def test_first_authentication_creates_account(self, db_session, lifecycle):
        account = lifecycle.reauthenticate("frank", "Frank@Example.com")

        assert account.id == "frank"
        assert account.email == "frank@example.com"
        assert account.status == AccountStatus.ACTIVE

    def test_active_account_is_returned(self, make_account, lifecycle):
        make_account("erin")

        assert lifecycle.reauthenticate("erin").id == "erin"

    def test_within_grace_period_restores(self, db_session, household, lifecycle, clock):
        lifecycle.request_deletion("carol", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=29)

        account = lifecycle.reauthenticate("carol")

        assert account.status == AccountStatus.ACTIVE
        assert get_account(db_session, "carol").deleted_at is None
        # memberships stay removed
        assert active_role(db_session, "carol", household) is None

    def test_after_grace_period_erases(self, db_session, make_account, lifecycle, clock):
        make_account("erin")
        lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=31)

        with pytest.raises(AccountPermanentlyDeletedException):
            lifecycle.reauthenticate("erin")

        account = get_account(db_session, "erin")
        assert account.status == AccountStatus.DELETED
        assert account.email is None

    def test_exactly_thirty_days_is_expired(self, make_account, lifecycle, clock):
        make_account("erin")
        lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=30)

        with pytest.raises(AccountPermanentlyDeletedException):
            lifecycle.reauthenticate("erin")

    def test_deleted_is_terminal(self, make_account, lifecycle, clock):
        make_account("erin")
        lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=31)
        lifecycle.sweep_expired()

        for _ in range(2):
            with pytest.raises(AccountPermanentlyDeletedException):
                lifecycle.reauthenticate("erin", "erin@example.com")


class TestSweepExpired:
    """Test the erasure sweep"""

    def test_erases_only_expired_accounts(self, db_session, make_account, lifecycle, clock):
        make_account("erin")
        make_account("frank")
        lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=10)
        lifecycle.request_deletion("frank", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=21)

        report = lifecycle.sweep_expired()

        assert report.erased == ["erin"]
        assert get_account(db_session, "erin").status == AccountStatus.DELETED
        assert get_account(db_session, "frank").status == AccountStatus.PENDING_DELETION

    def test_erasure_anonymizes_and_audits(self, db_session, household, lifecycle, clock):
        service = TransactionService(db_session, clock)
        category_id = service.category_repo.get_by_ledger(household)[0].id
        transaction = service.create_transaction(
            "carol",
            household,
            TransactionCreate(category_id=category_id, amount=12000, title="Lunch", transaction_date=clock().date()),
        )
        lifecycle.request_deletion("carol", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=30)

        lifecycle.sweep_expired()

        db_session.expire_all()
        assert service.get_transaction("alice", household, transaction.id).created_by is None
        audit = db_session.query(DeletedAccount).filter(DeletedAccount.original_account_id == "carol").one()
        assert audit.email_hash == hashlib.sha256(b"carol@example.com").hexdigest()
        account = get_account(db_session, "carol")
        assert account.display_name is None
        assert account.erased_at == clock()

    def test_erasing_owner_of_deleted_ledger_detaches_it(self, db_session, household, lifecycle, memberships, clock):
        memberships.delete_ledger("alice", household)
        lifecycle.request_deletion("alice", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=31)

        lifecycle.sweep_expired()

        db_session.expire_all()
        ledger = db_session.query(Ledger).filter(Ledger.id == household).one()
        assert ledger.created_by is None
        assert ledger.is_deleted

    def test_idempotent(self, db_session, make_account, lifecycle, clock):
        make_account("erin")
        lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=31)

        first = lifecycle.sweep_expired()
        second = lifecycle.sweep_expired()

        assert first.erased == ["erin"]
        assert second.candidates == 0
        assert second.erased == []
        assert db_session.query(DeletedAccount).count() == 1
        assert db_session.query(DeletionJobLog).count() == 1

    def test_account_claimed_elsewhere_is_skipped(self, db_session, make_account, lifecycle, clock, monkeypatch):
        make_account("erin")
        lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=31)
        original = lifecycle.account_repo.claim_and_erase

        def claimed_by_other_worker(account_id, cutoff, now):
            original(account_id, cutoff, now)
            return original(account_id, cutoff, now)

        monkeypatch.setattr(lifecycle.account_repo, "claim_and_erase", claimed_by_other_worker)

        report = lifecycle.sweep_expired()

        assert report.erased == []
        assert report.skipped == ["erin"]
        assert db_session.query(DeletedAccount).count() == 0

    def test_dry_run_writes_nothing(self, db_session, make_account, lifecycle, clock):
        make_account("erin")
        lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=31)

        report = lifecycle.sweep_expired(dry_run=True)

        assert report.candidates == 1
        assert report.erased == []
        assert get_account(db_session, "erin").status == AccountStatus.PENDING_DELETION
        assert db_session.query(DeletionJobLog).count() == 0

    def test_failure_is_collected_and_sweep_continues(self, db_session, make_account, lifecycle, clock, monkeypatch):
        for account_id in ("erin", "frank"):
            make_account(account_id)
            lifecycle.request_deletion(account_id, DELETE_ACCOUNT_CONFIRM_TEXT)
        clock.advance(days=31)
        original = lifecycle.audit_repo.record_erasure

        def flaky_record(record):
            if record.original_account_id == "erin":
                raise InfrastructureException("disk full")
            return original(record)

        monkeypatch.setattr(lifecycle.audit_repo, "record_erasure", flaky_record)

        report = lifecycle.sweep_expired()

        assert report.erased == ["frank"]
        assert report.errors == [{"account_id": "erin", "error": "disk full"}]
        # the failed account is rolled back and picked up by the next run
        assert get_account(db_session, "erin").status == AccountStatus.PENDING_DELETION
        log = db_session.query(DeletionJobLog).one()
        assert log.error_count == 1


class TestProfile:
    """Test profile operations"""

    def test_profile_counts(self, household, lifecycle, memberships):
        memberships.create_ledger("bob", LedgerCreate(name="Bob's"))

        profile = lifecycle.get_profile("bob")

        assert profile["owned_ledger_count"] == 1
        assert profile["shared_ledger_count"] == 1

    def test_update_nickname(self, make_account, lifecycle):
        make_account("erin")

        profile = lifecycle.update_profile("erin", ProfileUpdate(display_name="에린 Kim"))

        assert profile["display_name"] == "에린 Kim"

    @pytest.mark.parametrize("nickname", ["a", "x" * 21, "bad!name", "two  spaces"])
    def test_invalid_nickname(self, make_account, lifecycle, nickname):
        make_account("erin")

        with pytest.raises(ValidationException):
            lifecycle.update_profile("erin", ProfileUpdate(display_name=nickname))

    def test_unsupported_timezone(self, make_account, lifecycle):
        make_account("erin")

        with pytest.raises(ValidationException):
            lifecycle.update_profile("erin", ProfileUpdate(timezone="Mars/Olympus"))

    def test_deletion_status(self, make_account, lifecycle, clock):
        make_account("erin")
        lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)

        status = lifecycle.deletion_status("erin")

        assert status["status"] == AccountStatus.PENDING_DELETION
        assert (status["grace_period_ends_at"] - status["deleted_at"]).days == 30
