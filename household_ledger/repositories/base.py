"""Soft-delete aware repository base shared by every tombstonable entity."""

from datetime import datetime
from typing import Generic, TypeVar

from sqlalchemy.orm import Query, Session
from sqlalchemy.orm.attributes import flag_modified

from household_ledger.models.base import Tombstonable

T = TypeVar("T", bound=Tombstonable)


class TombstoneRepository(Generic[T]):
    """
    Read/write access with uniform tombstone semantics.

    Every read defaults to active rows (``deleted_at IS NULL``); callers
    must pass ``include_deleted=True`` to see tombstoned rows (audit and
    lifecycle sweep only). Repositories never commit: the service that owns
    the unit of work does, through ``database.atomic``.
    """

    model: type[T]

    def __init__(self, db: Session):
        self.db = db

    def query(self, include_deleted: bool = False) -> Query:
        query = self.db.query(self.model)
        if not include_deleted:
            query = query.filter(self.model.active_clause())
        return query

    def get(self, entity_id: str, include_deleted: bool = False) -> T | None:
        return self.query(include_deleted).filter(self.model.id == entity_id).first()

    def add(self, entity: T) -> T:
        """Stage a new row and flush so generated ids are available"""
        self.db.add(entity)
        self.db.flush()
        return entity

    def soft_delete(self, entity: T, now: datetime) -> bool:
        """
        Tombstone a row. Deleting an already deleted row is a no-op.

        Returns:
            True if the row changed
        """
        changed = entity.mark_deleted(now)
        if changed:
            self.db.flush()
        return changed

    def restore(self, entity: T) -> bool:
        """
        Clear a row's tombstone. Restoring an active row is a no-op.

        Returns:
            True if the row changed
        """
        changed = entity.mark_restored()
        if changed:
            self.db.flush()
        return changed

    def touch(self, entity, now: datetime) -> None:
        """
        Force a versioned UPDATE of ``entity`` at the next flush.

        Used on Ledger and Account rows to make racing check-and-mutate
        transactions collide on the optimistic version check even when no
        business column of the row changes.
        """
        entity.updated_at = now
        flag_modified(entity, "updated_at")
        self.db.flush()
