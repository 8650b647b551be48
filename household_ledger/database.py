from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.orm.exc import StaleDataError

from household_ledger.config import settings
from household_ledger.core.exceptions import (
    ConcurrencyConflictException,
    InfrastructureException,
)
from household_ledger.core.logging import get_logger

logger = get_logger(__name__)


def _connect_args() -> dict:
    """Driver arguments carrying the statement timeout."""
    if settings.is_sqlite:
        return {
            "check_same_thread": False,
            "timeout": settings.DB_STATEMENT_TIMEOUT_MS / 1000,
        }
    if settings.DATABASE_URL.startswith("postgresql"):
        return {"options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"}
    return {}


def _pool_args() -> dict:
    if settings.is_sqlite:
        return {}
    return {"pool_size": settings.DB_POOL_SIZE, "max_overflow": settings.DB_MAX_OVERFLOW}


# Create SQLAlchemy engine
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,  # Verify connections before using
    isolation_level=settings.DB_ISOLATION_LEVEL,
    echo=settings.DEBUG,  # Log SQL queries in debug mode
    connect_args=_connect_args(),
    **_pool_args(),
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """
    FastAPI dependency for database sessions.

    Yields a database session and ensures it's closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a block as one transaction: commit on success, roll back on any error.

    Store failures are translated so callers can tell a retryable
    infrastructure problem from a domain denial:

    - StaleDataError (optimistic version check failed) and IntegrityError
      (a concurrent insert won a unique constraint) become
      ConcurrencyConflictException
    - any other DBAPIError (timeouts, serialization failures, lost
      connections) becomes InfrastructureException

    Usage:
        with atomic(self.db):
            membership.role = LedgerRole.ADMIN
    """
    try:
        yield db
        db.commit()
    except (StaleDataError, IntegrityError) as e:
        db.rollback()
        logger.warning("transaction_conflict", error=str(e))
        raise ConcurrencyConflictException(
            "The data changed while the request was processed; retry the request"
        ) from e
    except DBAPIError as e:
        db.rollback()
        logger.error("store_failure", error=str(e))
        raise InfrastructureException("Data store unavailable; retry the request") from e
    except Exception:
        db.rollback()
        raise
