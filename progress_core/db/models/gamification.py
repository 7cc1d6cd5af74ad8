"""
Gamification Models.

SQLAlchemy models for the XP economy:
- Per-user aggregate stats (XP total, streak, answer and battle counters)
- Append-only XP history
- Achievement unlocks (unique per user and achievement)
- Daily goals and per-day progress
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Date, DateTime, Index, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class UserStats(Base):
    """
    Aggregate progress for one user.

    Written only through the XP ledger and streak tracker. The level is not
    stored: it is derived from `xp_total` via the level table on every read.
    """

    __tablename__ = "user_stats"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)

    # XP (non-decreasing, equals the sum of xp_history.amount)
    xp_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Streak
    streak_current: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    streak_max: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_study_date: Mapped[date | None] = mapped_column(Date)

    # Counters
    questions_answered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    questions_correct: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    battles_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    battles_perfect: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<UserStats user={self.user_id} xp={self.xp_total} streak={self.streak_current}>"


class XPHistoryEntry(Base):
    """
    One XP grant. Rows are never updated or deleted.

    `event_key` is optional; when present it is unique per user so the same
    logical event (a finalized session, an achievement bonus) cannot be
    granted twice.
    `seq` numbers the grants of one user in insertion order.
    """

    __tablename__ = "xp_history"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    event_key: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("user_id", "event_key", name="uq_xp_history_user_event"),
        Index("idx_xp_history_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<XPHistoryEntry user={self.user_id} amount={self.amount} reason={self.reason!r}>"


class AchievementUnlock(Base):
    """An achievement held by a user. At most one row per (user, achievement)."""

    __tablename__ = "achievement_unlocks"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    achievement_code: Mapped[str] = mapped_column(Text, nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "achievement_code", name="uq_achievement_user_code"),
    )

    def __repr__(self) -> str:
        return f"<AchievementUnlock user={self.user_id} code={self.achievement_code}>"


class UserGoal(Base):
    """Daily targets chosen by (or defaulted for) a user."""

    __tablename__ = "user_goals"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    daily_xp_target: Mapped[int] = mapped_column(Integer, nullable=False)
    daily_questions_target: Mapped[int] = mapped_column(Integer, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<UserGoal user={self.user_id} xp={self.daily_xp_target} questions={self.daily_questions_target}>"


class DailyProgress(Base):
    """Activity accumulated by a user on one calendar day."""

    __tablename__ = "daily_progress"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    xp_gained: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    questions_answered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    questions_correct: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    xp_goal_met: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    questions_goal_met: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "day", name="uq_daily_progress_user_day"),
    )

    def __repr__(self) -> str:
        return f"<DailyProgress user={self.user_id} day={self.day} xp={self.xp_gained}>"
