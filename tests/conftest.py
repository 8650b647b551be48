import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-household-ledger")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from datetime import datetime, timedelta, UTC
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from jose import jwt

from household_ledger.core.clock import FrozenClock
from household_ledger.database import get_db
from household_ledger.dependencies import get_clock
from household_ledger.models.base import Base
from household_ledger.config import settings
# Import all model classes to ensure they're registered with SQLAlchemy
from household_ledger.models.account import Account
from household_ledger.models.budget import Budget
from household_ledger.models.category import Category, CategoryTemplate
from household_ledger.models.deletion_audit import DeletedAccount, DeletionJobLog
from household_ledger.models.ledger import Ledger
from household_ledger.models.membership import Membership
from household_ledger.models.role import LedgerRole
from household_ledger.models.transaction import Transaction
from household_ledger.schemas.ledger_schemas import LedgerCreate
from household_ledger.services.lifecycle_service import LifecycleService
from household_ledger.services.membership_service import MembershipService
# Import FastAPI app AFTER model imports
from household_ledger.main import app

# Test database (SQLite in-memory for speed)
# Use StaticPool to ensure all connections share the same in-memory database
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

START = datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture(scope="function")
def db_session():
    """Create fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    """Frozen clock; tests move time with clock.advance(days=...)"""
    return FrozenClock(START)


@pytest.fixture(scope="function")
def client(db_session, clock):
    """FastAPI test client with test database and frozen clock"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_test_token(
    account_id: str = "test-user-123", email: str | None = None, expired: bool = False
) -> str:
    """
    Generate valid JWT token for testing.

    Args:
        account_id: Account ID to embed in 'sub' claim
        email: Optional 'email' claim
        expired: If True, create expired token

    Returns:
        Encoded JWT token
    """
    if expired:
        exp = datetime.now(UTC) - timedelta(minutes=5)
    else:
        exp = datetime.now(UTC) + timedelta(minutes=15)

    payload = {"sub": account_id, "exp": exp, "iat": datetime.now(UTC)}
    if email:
        payload["email"] = email

    token = jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")
    return token


def headers_for(account_id: str, email: str | None = None) -> dict:
    """Authorization headers for the given account"""
    return {"Authorization": f"Bearer {create_test_token(account_id, email)}"}


@pytest.fixture
def lifecycle(db_session, clock):
    return LifecycleService(db_session, clock)


@pytest.fixture
def memberships(db_session, clock):
    return MembershipService(db_session, clock)


@pytest.fixture
def make_account(lifecycle):
    """Create an active account the way first authentication does"""

    def _make(account_id: str, email: str | None = None) -> Account:
        return lifecycle.reauthenticate(account_id, email or f"{account_id}@example.com")

    return _make


@pytest.fixture
def household(make_account, memberships):
    """
    Ledger "Household" owned by alice, with bob (admin), carol (member)
    and dave (viewer). erin has an account but is not a member.
    """
    for name in ("alice", "bob", "carol", "dave", "erin"):
        make_account(name)
    ledger = memberships.create_ledger("alice", LedgerCreate(name="Household"))
    memberships.invite_member("alice", ledger.id, "bob", LedgerRole.ADMIN)
    memberships.invite_member("alice", ledger.id, "carol", LedgerRole.MEMBER)
    memberships.invite_member("alice", ledger.id, "dave", LedgerRole.VIEWER)
    return ledger.id


def bump_version(db, table: str, row_id: str) -> None:
    """Simulate a concurrent committed writer of a versioned row"""
    db.execute(text(f"UPDATE {table} SET version = version + 1 WHERE id = :id"), {"id": row_id})


def assert_single_owner(db, ledger_id: str) -> None:
    """Exactly one active OWNER membership, matching Ledger.created_by"""
    db.expire_all()
    ledger = db.query(Ledger).filter(Ledger.id == ledger_id).one()
    owners = (
        db.query(Membership)
        .filter(
            Membership.ledger_id == ledger_id,
            Membership.role == LedgerRole.OWNER,
            Membership.deleted_at.is_(None),
        )
        .all()
    )
    assert len(owners) == 1
    assert owners[0].account_id == ledger.created_by


def active_role(db, account_id: str, ledger_id: str) -> LedgerRole | None:
    db.expire_all()
    membership = (
        db.query(Membership)
        .filter(
            Membership.account_id == account_id,
            Membership.ledger_id == ledger_id,
            Membership.deleted_at.is_(None),
        )
        .first()
    )
    return membership.role if membership else None
