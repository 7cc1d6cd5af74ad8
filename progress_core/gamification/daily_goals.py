"""
Daily Goals.

Per-day XP and question targets. Each user gets default targets on first
use; activity is accumulated into one DailyProgress row per (user, day),
written with a keyed upsert so repeated or concurrent updates for the same
day never create a second row.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import get_settings
from progress_core.core.clock import Clock
from progress_core.core.errors import InvalidInputError, StorageError
from progress_core.db.database import insert_if_absent, upsert
from progress_core.db.models import DailyProgress, UserGoal


@dataclass(frozen=True)
class DailyStatus:
    """A day's progress against the user's targets."""

    day: date
    xp_gained: int
    questions_answered: int
    questions_correct: int
    daily_xp_target: int
    daily_questions_target: int
    xp_goal_met: bool
    questions_goal_met: bool

    @property
    def xp_pct(self) -> int:
        if self.daily_xp_target <= 0:
            return 0
        return min(100, (100 * self.xp_gained) // self.daily_xp_target)

    @property
    def questions_pct(self) -> int:
        if self.daily_questions_target <= 0:
            return 0
        return min(100, (100 * self.questions_answered) // self.daily_questions_target)


class DailyGoals:
    """Tracks daily XP and question targets."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or Clock()

    def get_goal(self, user_id: str) -> UserGoal:
        """The user's targets, created with defaults on first use."""
        defaults = get_settings().get_goal_defaults()
        insert_if_absent(
            self.session,
            UserGoal,
            key=["user_id"],
            values={
                "user_id": user_id,
                "daily_xp_target": defaults["daily_xp"],
                "daily_questions_target": defaults["daily_questions"],
                "active": True,
                "updated_at": self.clock.now(),
            },
        )
        stmt = select(UserGoal).where(UserGoal.user_id == user_id).execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one()

    def set_targets(self, user_id: str, daily_xp: int, daily_questions: int) -> UserGoal:
        """Change the user's daily targets."""
        for name, value in (("daily_xp", daily_xp), ("daily_questions", daily_questions)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidInputError(f"{name} target must be a positive integer, got {value!r}")
        try:
            goal = self.get_goal(user_id)
            goal.daily_xp_target = daily_xp
            goal.daily_questions_target = daily_questions
            goal.updated_at = self.clock.now()
            self.session.flush()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not update goals for {user_id}") from e
        logger.info(f"Daily goals for {user_id}: {daily_xp} XP, {daily_questions} questions")
        return goal

    def record(self, user_id: str, xp_gained: int = 0, answered: int = 0, correct: int = 0) -> DailyStatus:
        """
        Add activity to today's progress and refresh the goal flags.

        Args:
            user_id: Learner identifier
            xp_gained: XP earned by the activity
            answered: Questions answered
            correct: Questions answered correctly
        """
        if min(xp_gained, answered, correct) < 0 or correct > answered:
            raise InvalidInputError(
                f"Invalid daily activity xp={xp_gained} answered={answered} correct={correct}"
            )

        today = self.clock.today()
        now = self.clock.now()
        try:
            goal = self.get_goal(user_id)
            upsert(
                self.session,
                DailyProgress,
                key=["user_id", "day"],
                values={
                    "user_id": user_id,
                    "day": today,
                    "xp_gained": xp_gained,
                    "questions_answered": answered,
                    "questions_correct": correct,
                    "xp_goal_met": False,
                    "questions_goal_met": False,
                    "updated_at": now,
                },
                update={
                    "xp_gained": DailyProgress.xp_gained + xp_gained,
                    "questions_answered": DailyProgress.questions_answered + answered,
                    "questions_correct": DailyProgress.questions_correct + correct,
                    "updated_at": now,
                },
            )
            progress = self._load(user_id, today)
            progress.xp_goal_met = progress.xp_gained >= goal.daily_xp_target
            progress.questions_goal_met = progress.questions_answered >= goal.daily_questions_target
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Daily progress update failed for {user_id}: {e}")
            raise StorageError(f"Could not update daily progress for {user_id}") from e

        return self._status(progress, goal)

    def progress_for(self, user_id: str, day: date | None = None) -> DailyStatus:
        """Progress on `day` (default today); zeros when nothing was recorded."""
        day = day or self.clock.today()
        goal = self.get_goal(user_id)
        progress = self._load(user_id, day)
        if progress is None:
            return DailyStatus(
                day=day,
                xp_gained=0,
                questions_answered=0,
                questions_correct=0,
                daily_xp_target=goal.daily_xp_target,
                daily_questions_target=goal.daily_questions_target,
                xp_goal_met=False,
                questions_goal_met=False,
            )
        return self._status(progress, goal)

    def _load(self, user_id: str, day: date) -> DailyProgress | None:
        stmt = (
            select(DailyProgress)
            .where(DailyProgress.user_id == user_id, DailyProgress.day == day)
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _status(progress: DailyProgress, goal: UserGoal) -> DailyStatus:
        return DailyStatus(
            day=progress.day,
            xp_gained=progress.xp_gained,
            questions_answered=progress.questions_answered,
            questions_correct=progress.questions_correct,
            daily_xp_target=goal.daily_xp_target,
            daily_questions_target=goal.daily_questions_target,
            xp_goal_met=progress.xp_goal_met,
            questions_goal_met=progress.questions_goal_met,
        )
