import pytest
from click.testing import CliRunner

from household_ledger.core.constants import DELETE_ACCOUNT_CONFIRM_TEXT
from household_ledger.core.exceptions import InfrastructureException
from household_ledger.jobs import sweep
from household_ledger.models.account import Account, AccountStatus
from household_ledger.services.lifecycle_service import LifecycleService

from conftest import TestingSessionLocal


@pytest.fixture
def runner(db_session, clock, monkeypatch):
    """CLI runner wired to the test database and clock"""
    monkeypatch.setattr(sweep, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(
        sweep, "LifecycleService", lambda db: LifecycleService(db, clock)
    )
    return CliRunner()


@pytest.fixture
def expired_account(db_session, make_account, lifecycle, clock):
    make_account("erin")
    lifecycle.request_deletion("erin", DELETE_ACCOUNT_CONFIRM_TEXT)
    clock.advance(days=31)
    return "erin"


class TestSweepCommand:
    def test_erases_expired_accounts(self, runner, db_session, expired_account):
        result = runner.invoke(sweep.main, [])

        assert result.exit_code == 0
        assert "erased 1" in result.output
        db_session.expire_all()
        account = db_session.query(Account).filter(Account.id == expired_account).one()
        assert account.status == AccountStatus.DELETED

    def test_dry_run(self, runner, db_session, expired_account):
        result = runner.invoke(sweep.main, ["--dry-run"])

        assert result.exit_code == 0
        assert "dry run" in result.output
        db_session.expire_all()
        account = db_session.query(Account).filter(Account.id == expired_account).one()
        assert account.status == AccountStatus.PENDING_DELETION

    def test_nothing_to_do(self, runner):
        result = runner.invoke(sweep.main, ["--batch-size", "5"])

        assert result.exit_code == 0
        assert "0 expired" in result.output

    def test_failures_exit_non_zero(self, runner, expired_account, monkeypatch):
        def failing_erase(self, account_id, now):
            raise InfrastructureException("lock wait timeout")

        monkeypatch.setattr(LifecycleService, "_erase", failing_erase)

        result = runner.invoke(sweep.main, [])

        assert result.exit_code == 1

    def test_rejects_zero_batch(self, runner):
        result = runner.invoke(sweep.main, ["--batch-size", "0"])

        assert result.exit_code == 2
