"""Repository for account erasure audit records."""

from sqlalchemy.orm import Session

from household_ledger.models.deletion_audit import DeletedAccount, DeletionJobLog


class DeletionAuditRepository:
    """Repository for DeletedAccount and DeletionJobLog rows"""

    def __init__(self, db: Session):
        self.db = db

    def record_erasure(self, record: DeletedAccount) -> DeletedAccount:
        self.db.add(record)
        self.db.flush()
        return record

    def record_job(self, log: DeletionJobLog) -> DeletionJobLog:
        self.db.add(log)
        self.db.flush()
        return log

