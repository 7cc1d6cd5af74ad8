"""
XP Ledger.

Append-only record of experience grants plus the cumulative total kept on
UserStats. A grant writes the history row and increments the total inside
the caller's transaction, so the two can only be committed (or rolled back)
together; `recompute_total` rebuilds the total from history if they ever
disagree.

The ledger does not deduplicate by reading. Callers that need at-most-once
semantics pass an `event_key`, which is enforced by a unique constraint on
(user_id, event_key).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import get_settings
from progress_core.assessment.outcomes import AnswerOutcome, Difficulty
from progress_core.core.clock import Clock
from progress_core.core.errors import DuplicateEventError, InvalidInputError, StorageError
from progress_core.core.levels import DEFAULT_TABLE, LevelInfo, LevelTable
from progress_core.db.models import UserStats, XPHistoryEntry
from progress_core.gamification.stats import StatsSnapshot, find_stats, load_stats
from progress_core.gamification.streak import StreakResult, StreakTracker

# Exam XP by score band (minimum score, XP), highest first
EXAM_SCORE_BANDS: tuple[tuple[int, int], ...] = ((700, 150), (600, 100), (500, 75), (0, 50))


@dataclass(frozen=True)
class XPRates:
    """XP rewarded per activity."""

    question_easy: int = 5
    question_medium: int = 10
    question_hard: int = 15
    battle_hit: int = 20
    battle_perfect_bonus: int = 50
    exercise_complete: int = 30
    exam_score_bands: tuple[tuple[int, int], ...] = field(default=EXAM_SCORE_BANDS)

    @classmethod
    def from_settings(cls) -> XPRates:
        return cls(**get_settings().get_xp_rates())

    def for_question(self, difficulty: Difficulty) -> int:
        return {
            Difficulty.EASY: self.question_easy,
            Difficulty.MEDIUM: self.question_medium,
            Difficulty.HARD: self.question_hard,
        }[difficulty]

    def for_answers(self, outcomes: Iterable[AnswerOutcome]) -> int:
        """XP for the correct answers of a practice session."""
        return sum(self.for_question(o.difficulty) for o in outcomes if o.correct)

    def for_battle(self, correct: int, total: int) -> int:
        xp = correct * self.battle_hit
        if total > 0 and correct == total:
            xp += self.battle_perfect_bonus
        return xp

    def for_exam_score(self, score: int) -> int:
        for minimum, xp in self.exam_score_bands:
            if score >= minimum:
                return xp
        return self.exam_score_bands[-1][1]


@dataclass(frozen=True)
class XPGrantResult:
    """Outcome of a grant request."""

    xp_gained: int
    xp_total: int
    level_info: LevelInfo
    streak: int
    leveled_up: bool
    rejected_reason: str | None = None

    @property
    def accepted(self) -> bool:
        return self.rejected_reason is None


class XPLedger:
    """
    Owns UserStats XP and counters.

    Every accepted grant also touches the streak: studying "today" is
    defined as receiving any XP today.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        level_table: LevelTable = DEFAULT_TABLE,
        streak_tracker: StreakTracker | None = None,
    ):
        self.session = session
        self.clock = clock or Clock()
        self.level_table = level_table
        self.streak_tracker = streak_tracker or StreakTracker(session, self.clock)

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------

    def grant_xp(
        self,
        user_id: str,
        amount: int,
        reason: str,
        event_key: str | None = None,
    ) -> XPGrantResult:
        """
        Grant `amount` XP to `user_id`.

        Args:
            user_id: Learner identifier
            amount: Positive integer; zero or negative amounts are a no-op
            reason: Human-readable motive stored in history
            event_key: Optional identity of the logical event (unique per user)

        Returns:
            XPGrantResult; `rejected_reason` is set when nothing was written

        Raises:
            InvalidInputError: amount is not an integer, or reason/key empty
            DuplicateEventError: `event_key` was already granted
            StorageError: the store failed; the transaction must be rolled back
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidInputError(f"XP amount must be an integer, got {amount!r}")
        if not isinstance(reason, str) or not reason.strip():
            raise InvalidInputError("XP grant reason must be a non-empty string")
        if event_key is not None and not event_key.strip():
            raise InvalidInputError("event_key must be non-empty when given")

        if amount <= 0:
            logger.warning(f"Rejected XP grant of {amount} for {user_id} ({reason})")
            return self._rejected(user_id, f"XP amount must be positive, got {amount}")

        now = self.clock.now()
        try:
            stats = load_stats(self.session, user_id, now)
            before = self.level_table.level_for(stats.xp_total)
            seq = self.session.execute(
                select(func.coalesce(func.max(XPHistoryEntry.seq), 0)).where(XPHistoryEntry.user_id == user_id)
            ).scalar_one()

            self.session.add(
                XPHistoryEntry(
                    user_id=user_id,
                    amount=amount,
                    reason=reason,
                    event_key=event_key,
                    created_at=now,
                    seq=seq + 1,
                )
            )
            self.session.flush()

            self.session.execute(
                update(UserStats)
                .where(UserStats.user_id == user_id)
                .values(xp_total=UserStats.xp_total + amount, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            stats = load_stats(self.session, user_id, now)
        except IntegrityError as e:
            if event_key is not None:
                logger.error(f"Duplicate XP event '{event_key}' for {user_id}")
                raise DuplicateEventError(user_id, event_key) from e
            raise StorageError(f"Could not record XP grant for {user_id}") from e
        except SQLAlchemyError as e:
            logger.error(f"XP grant failed for {user_id}: {e}")
            raise StorageError(f"Could not record XP grant for {user_id}") from e

        after = self.level_table.level_for(stats.xp_total)
        streak = self.streak_tracker.touch_streak(user_id, self.clock.today())
        leveled_up = after.level > before.level

        logger.info(f"+{amount} XP for {user_id} ({reason}); total {stats.xp_total}")
        if leveled_up:
            logger.info(f"{user_id} reached level {after.level} ({after.title})")

        return XPGrantResult(
            xp_gained=amount,
            xp_total=stats.xp_total,
            level_info=after,
            streak=streak.streak_current,
            leveled_up=leveled_up,
        )

    def _rejected(self, user_id: str, reason: str) -> XPGrantResult:
        stats = find_stats(self.session, user_id)
        xp_total = stats.xp_total if stats else 0
        return XPGrantResult(
            xp_gained=0,
            xp_total=xp_total,
            level_info=self.level_table.level_for(xp_total),
            streak=stats.streak_current if stats else 0,
            leveled_up=False,
            rejected_reason=reason,
        )

    def record_activity(self, user_id: str) -> StreakResult:
        """Touch the streak for today without granting XP."""
        return self.streak_tracker.record_activity(user_id)

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def record_answers(self, user_id: str, outcomes: Iterable[AnswerOutcome]) -> StatsSnapshot:
        """Add a session's answers to the question counters."""
        items = list(outcomes)
        answered = len(items)
        correct = sum(1 for item in items if item.correct)
        return self._increment(
            user_id,
            questions_answered=UserStats.questions_answered + answered,
            questions_correct=UserStats.questions_correct + correct,
        )

    def record_battle(self, user_id: str, correct: int, total: int) -> StatsSnapshot:
        """Count a finished battle; perfect when every answer was right."""
        if total <= 0 or not 0 <= correct <= total:
            raise InvalidInputError(f"Invalid battle result {correct}/{total}")
        perfect = 1 if correct == total else 0
        return self._increment(
            user_id,
            battles_played=UserStats.battles_played + 1,
            battles_perfect=UserStats.battles_perfect + perfect,
        )

    def _increment(self, user_id: str, **values) -> StatsSnapshot:
        now = self.clock.now()
        try:
            load_stats(self.session, user_id, now)
            self.session.execute(
                update(UserStats)
                .where(UserStats.user_id == user_id)
                .values(updated_at=now, **values)
                .execution_options(synchronize_session=False)
            )
            stats = load_stats(self.session, user_id, now)
        except SQLAlchemyError as e:
            logger.error(f"Counter update failed for {user_id}: {e}")
            raise StorageError(f"Could not update counters for {user_id}") from e
        return StatsSnapshot.from_row(stats, self.level_table)

    # ------------------------------------------------------------------
    # Reads and consistency
    # ------------------------------------------------------------------

    def get_stats(self, user_id: str) -> StatsSnapshot:
        """Current aggregate stats (an empty row is created on first read)."""
        try:
            stats = load_stats(self.session, user_id, self.clock.now())
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read stats for {user_id}") from e
        return StatsSnapshot.from_row(stats, self.level_table)

    def level_info(self, user_id: str) -> LevelInfo:
        return self.get_stats(user_id).level_info(self.level_table)

    def history(self, user_id: str, limit: int | None = None) -> list[XPHistoryEntry]:
        """Grants for `user_id`, newest first."""
        stmt = (
            select(XPHistoryEntry)
            .where(XPHistoryEntry.user_id == user_id)
            .order_by(XPHistoryEntry.created_at.desc(), XPHistoryEntry.seq.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def history_total(self, user_id: str) -> int:
        stmt = select(func.coalesce(func.sum(XPHistoryEntry.amount), 0)).where(
            XPHistoryEntry.user_id == user_id
        )
        return int(self.session.execute(stmt).scalar_one())

    def verify(self, user_id: str) -> bool:
        """True when the stored total equals the sum of the history."""
        stats = find_stats(self.session, user_id)
        stored = stats.xp_total if stats else 0
        return stored == self.history_total(user_id)

    def recompute_total(self, user_id: str) -> int:
        """Reset the stored total to the sum of the history and return it."""
        now = self.clock.now()
        total = self.history_total(user_id)
        stats = load_stats(self.session, user_id, now)
        if stats.xp_total != total:
            logger.warning(f"XP total for {user_id} was {stats.xp_total}, history sums to {total}; repairing")
            stats.xp_total = total
            stats.updated_at = now
            self.session.flush()
        return total
