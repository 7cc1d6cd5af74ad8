"""
Clock abstraction for the progress core.

Every "today" used by streaks, daily goals and the diagnostic cooldown is
resolved here, under one IANA time zone taken from configuration. Timestamps
(`now`) are always timezone-aware UTC; calendar days (`today`) are the local
date of that instant in the configured zone.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import get_settings
from progress_core.core.errors import InvalidInputError


class Clock:
    """Wall clock bound to a single time zone policy."""

    def __init__(self, tz: str | None = None):
        name = tz or get_settings().timezone
        try:
            self.zone = ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise InvalidInputError(f"Unknown time zone: {name!r}") from e

    def now(self) -> datetime:
        """Current instant as aware UTC."""
        return datetime.now(UTC)

    def today(self) -> date:
        """Current calendar date in the configured zone."""
        return self.local_date(self.now())

    def local_date(self, instant: datetime) -> date:
        """Calendar date of an aware instant in the configured zone."""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        return instant.astimezone(self.zone).date()


class FixedClock(Clock):
    """
    Clock frozen at a given instant.

    Used by tests and replays; `advance` moves it forward explicitly.
    """

    def __init__(self, instant: datetime, tz: str | None = None):
        super().__init__(tz)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=self.zone)
        self._instant = instant.astimezone(UTC)

    def now(self) -> datetime:
        return self._instant

    def advance(self, days: int = 0, hours: int = 0, minutes: int = 0) -> None:
        self._instant += timedelta(days=days, hours=hours, minutes=minutes)
