"""
Streak Tracker.

Counts consecutive calendar days with at least one qualifying activity
(any successful XP grant). Days are calendar dates under the clock's time
zone; callers never compute "today" themselves.

Rules, with `last` the stored last study date:
- last == today        -> unchanged (already counted)
- today - last == 1    -> streak + 1
- today - last  > 1    -> reset to 1
- no last date         -> 1
- today < last         -> unchanged (clock skew between devices)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from progress_core.core.clock import Clock
from progress_core.core.errors import InvalidInputError, StorageError
from progress_core.gamification.stats import load_stats


@dataclass(frozen=True)
class StreakResult:
    """Streak state after an activity."""

    streak_current: int
    streak_max: int
    changed: bool


def next_streak(current: int, last: date | None, today: date) -> int:
    """Streak value after studying on `today`."""
    if last is None:
        return 1
    gap = (today - last).days
    if gap <= 0:
        return current
    if gap == 1:
        return current + 1
    return 1


class StreakTracker:
    """Maintains the consecutive-day study count on UserStats."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or Clock()

    def touch_streak(self, user_id: str, today: date | None = None) -> StreakResult:
        """
        Register study activity for `user_id` on `today`.

        Args:
            user_id: Learner identifier
            today: Calendar date of the activity (defaults to the clock's today)

        Returns:
            StreakResult with `changed` False when the day was already counted
        """
        if today is None:
            today = self.clock.today()
        if not isinstance(today, date):
            raise InvalidInputError(f"today must be a date, got {today!r}")

        try:
            stats = load_stats(self.session, user_id, self.clock.now())
            last = stats.last_study_date

            if last is not None and today <= last:
                if today < last:
                    logger.warning(
                        f"Streak touch for {user_id} on {today} precedes last study date {last}; ignoring"
                    )
                return StreakResult(stats.streak_current, stats.streak_max, changed=False)

            new_streak = next_streak(stats.streak_current, last, today)
            stats.streak_current = new_streak
            stats.streak_max = max(stats.streak_max, new_streak)
            stats.last_study_date = today
            stats.updated_at = self.clock.now()
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Streak update failed for {user_id}: {e}")
            raise StorageError(f"Could not update streak for {user_id}") from e

        logger.debug(f"Streak for {user_id}: {new_streak} (max {stats.streak_max})")
        return StreakResult(stats.streak_current, stats.streak_max, changed=True)

    def record_activity(self, user_id: str) -> StreakResult:
        """Touch the streak for the clock's current day."""
        return self.touch_streak(user_id, self.clock.today())
