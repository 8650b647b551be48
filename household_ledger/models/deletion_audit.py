"""Audit records left behind by permanent account erasure."""

from datetime import datetime

from sqlalchemy import String, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from household_ledger.core.clock import utcnow
from household_ledger.models.base import Base, new_id


class DeletedAccount(Base):
    """
    One row per erased account.

    Keeps only a hash of the email so a returning user can be recognised by
    support without retaining personal data.
    """

    __tablename__ = "deleted_accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    original_account_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    deleted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    erased_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class DeletionJobLog(Base):
    """Outcome of one expiry sweep run."""

    __tablename__ = "deletion_job_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    executed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    accounts_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[list | None] = mapped_column(JSON, nullable=True)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
