"""Injectable time source.

Timestamps are stored as naive UTC datetimes so that values round-trip
identically through SQLite and PostgreSQL.
"""

from datetime import datetime, timedelta, UTC
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current instant as naive UTC."""
    return datetime.now(UTC).replace(tzinfo=None)


class FrozenClock:
    """Clock that only moves when told to. Used by tests and dry runs."""

    def __init__(self, start: datetime | None = None):
        self.current = start or utcnow()

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current
