"""
UserStats access shared by the XP ledger and the streak tracker.

The aggregate row is created on first use with an insert-if-absent on the
primary key, then always re-read from storage so concurrent writers never
work from a stale in-memory copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from progress_core.assessment.proficiency import percent
from progress_core.core.levels import DEFAULT_TABLE, LevelInfo, LevelTable
from progress_core.db.database import insert_if_absent
from progress_core.db.models import UserStats


@dataclass(frozen=True)
class StatsSnapshot:
    """Read-only view of a user's aggregate stats, level included."""

    user_id: str
    xp_total: int
    level: int
    title: str
    streak_current: int
    streak_max: int
    last_study_date: date | None
    questions_answered: int
    questions_correct: int
    battles_played: int
    battles_perfect: int

    @property
    def accuracy_pct(self) -> int:
        return percent(self.questions_correct, self.questions_answered)

    @classmethod
    def from_row(cls, row: UserStats, table: LevelTable = DEFAULT_TABLE) -> StatsSnapshot:
        info = table.level_for(row.xp_total)
        return cls(
            user_id=row.user_id,
            xp_total=row.xp_total,
            level=info.level,
            title=info.title,
            streak_current=row.streak_current,
            streak_max=row.streak_max,
            last_study_date=row.last_study_date,
            questions_answered=row.questions_answered,
            questions_correct=row.questions_correct,
            battles_played=row.battles_played,
            battles_perfect=row.battles_perfect,
        )

    def level_info(self, table: LevelTable = DEFAULT_TABLE) -> LevelInfo:
        return table.level_for(self.xp_total)


def load_stats(session: Session, user_id: str, now: datetime) -> UserStats:
    """Get the stats row for `user_id`, creating an empty one if needed."""
    insert_if_absent(
        session,
        UserStats,
        key=["user_id"],
        values={
            "user_id": user_id,
            "xp_total": 0,
            "streak_current": 0,
            "streak_max": 0,
            "questions_answered": 0,
            "questions_correct": 0,
            "battles_played": 0,
            "battles_perfect": 0,
            "created_at": now,
            "updated_at": now,
        },
    )
    stmt = select(UserStats).where(UserStats.user_id == user_id).execution_options(populate_existing=True)
    return session.execute(stmt).scalar_one()


def find_stats(session: Session, user_id: str) -> UserStats | None:
    """Get the stats row for `user_id` without creating it."""
    stmt = select(UserStats).where(UserStats.user_id == user_id).execution_options(populate_existing=True)
    return session.execute(stmt).scalar_one_or_none()
