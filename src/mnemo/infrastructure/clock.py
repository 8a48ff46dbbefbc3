"""Clock adapters."""

from datetime import datetime, timedelta, timezone

from mnemo.domain.models import ensure_utc
from mnemo.domain.ports import Clock


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """
    A clock that only moves when told to.

    Used by tests and by the CLI's ``--now`` override.
    """

    def __init__(self, start: datetime):
        self._now = ensure_utc(start)

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = ensure_utc(value)

    def advance(self, **delta: float) -> datetime:
        """Move forward by a timedelta given as keyword arguments (days=1, hours=3...)."""
        self._now = self._now + timedelta(**delta)
        return self._now
