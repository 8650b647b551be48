"""Declarative base and shared column mixins."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from household_ledger.core.clock import utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    """created_at / updated_at columns maintained by SQLAlchemy."""

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )


class Tombstonable:
    """
    Soft-delete contract shared by every entity with a ``deleted_at`` column.

    A row is visible to active queries iff ``deleted_at`` is NULL. Deleting
    and restoring only flip the tombstone; rows are never removed here and
    nothing cascades to child rows.
    """

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, default=None, index=True
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def mark_deleted(self, now: datetime) -> bool:
        """Set the tombstone. Returns False if the row was already deleted."""
        if self.deleted_at is not None:
            return False
        self.deleted_at = now
        return True

    def mark_restored(self) -> bool:
        """Clear the tombstone. Returns False if the row was already active."""
        if self.deleted_at is None:
            return False
        self.deleted_at = None
        return True

    @classmethod
    def active_clause(cls):
        return cls.deleted_at.is_(None)
