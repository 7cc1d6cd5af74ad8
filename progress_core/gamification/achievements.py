"""
Achievement Engine.

Evaluates a declarative catalogue of unlock rules against a stats snapshot
(and optionally the latest proficiency result) and grants each
achievement's one-time XP bonus through the XP ledger.

Idempotency is structural: an unlock row is inserted only if none exists
for (user, achievement) under a unique constraint, and the bonus is granted
only when this call inserted the row. The bonus grant also carries the
event key `achievement:<code>`, so a racing second grant fails loudly
instead of silently doubling the reward.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from importlib import resources
from pathlib import Path

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import get_settings
from progress_core.assessment.proficiency import ProficiencyResult, ScoringMode
from progress_core.core.clock import Clock
from progress_core.core.errors import InvalidInputError, StorageError
from progress_core.db.database import insert_if_absent
from progress_core.db.models import AchievementUnlock
from progress_core.gamification.stats import StatsSnapshot
from progress_core.gamification.xp_ledger import XPLedger


class Metric(str, Enum):
    """Quantities an unlock condition can test."""

    QUESTIONS_ANSWERED = "questions_answered"
    QUESTIONS_CORRECT = "questions_correct"
    BATTLES_PLAYED = "battles_played"
    BATTLES_PERFECT = "battles_perfect"
    STREAK_CURRENT = "streak_current"
    STREAK_MAX = "streak_max"
    XP_TOTAL = "xp_total"
    LEVEL = "level"
    DIAGNOSTIC_COMPLETE = "diagnostic_complete"
    PROFICIENCY_SCORE = "proficiency_score"


class AchievementCondition(BaseModel):
    """`metric >= threshold` over the snapshot and latest proficiency."""

    model_config = ConfigDict(frozen=True)

    metric: Metric
    threshold: int = Field(ge=0)

    def value(self, stats: StatsSnapshot, proficiency: ProficiencyResult | None) -> int | None:
        """Current value of the metric, or None when it cannot be measured."""
        if self.metric is Metric.DIAGNOSTIC_COMPLETE:
            return int(proficiency is not None and proficiency.mode is ScoringMode.DIAGNOSTIC)
        if self.metric is Metric.PROFICIENCY_SCORE:
            return proficiency.score if proficiency is not None else None
        return getattr(stats, self.metric.value)

    def is_met(self, stats: StatsSnapshot, proficiency: ProficiencyResult | None = None) -> bool:
        value = self.value(stats, proficiency)
        return value is not None and value >= self.threshold


class AchievementDefinition(BaseModel):
    """A catalogue entry."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = ""
    category: str = "geral"
    icon: str = ""
    xp_bonus: int = Field(default=0, ge=0)
    condition: AchievementCondition


class CatalogueFile(BaseModel):
    """Schema of an achievement catalogue YAML file."""

    achievements: list[AchievementDefinition]


class AchievementCatalogue:
    """Ordered, immutable list of achievements with unique codes."""

    def __init__(self, achievements: Iterable[AchievementDefinition]):
        items = tuple(achievements)
        codes = [a.code for a in items]
        duplicates = sorted({c for c in codes if codes.count(c) > 1})
        if duplicates:
            raise InvalidInputError(f"Duplicate achievement codes: {', '.join(duplicates)}")
        self._achievements = items

    def __iter__(self):
        return iter(self._achievements)

    def __len__(self) -> int:
        return len(self._achievements)

    def get(self, code: str) -> AchievementDefinition | None:
        for achievement in self._achievements:
            if achievement.code == code:
                return achievement
        return None

    @classmethod
    def from_yaml(cls, text: str) -> AchievementCatalogue:
        try:
            data = yaml.safe_load(text) or {}
            parsed = CatalogueFile.model_validate(data)
        except (yaml.YAMLError, ValidationError) as e:
            raise InvalidInputError(f"Invalid achievement catalogue: {e}") from e
        return cls(parsed.achievements)

    @classmethod
    def load(cls, path: str | Path | None = None) -> AchievementCatalogue:
        """
        Load a catalogue file.

        Args:
            path: YAML file; defaults to `settings.achievements_file`, then
                  to the catalogue bundled with the package
        """
        path = path or get_settings().achievements_file
        if path:
            text = Path(path).read_text(encoding="utf-8")
            logger.debug(f"Loading achievement catalogue from {path}")
        else:
            text = resources.files("progress_core.gamification").joinpath("achievements.yaml").read_text(encoding="utf-8")
        return cls.from_yaml(text)


@dataclass(frozen=True)
class AchievementStatus:
    """A catalogue entry as seen by one user."""

    achievement: AchievementDefinition
    unlocked: bool
    unlocked_at: datetime | None


class AchievementEngine:
    """Unlocks achievements and grants their bonuses."""

    def __init__(
        self,
        session: Session,
        ledger: XPLedger,
        catalogue: AchievementCatalogue | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.ledger = ledger
        self.catalogue = catalogue if catalogue is not None else AchievementCatalogue.load()
        self.clock = clock or ledger.clock

    def evaluate(
        self,
        user_id: str,
        stats: StatsSnapshot,
        latest_proficiency: ProficiencyResult | None = None,
    ) -> list[AchievementDefinition]:
        """
        Unlock every satisfied achievement the user does not hold yet.

        All conditions are checked on every call, in catalogue order.

        Returns:
            Newly unlocked achievements, in catalogue order
        """
        satisfied = [a for a in self.catalogue if a.condition.is_met(stats, latest_proficiency)]

        unlocked: list[AchievementDefinition] = []
        for achievement in satisfied:
            try:
                inserted = insert_if_absent(
                    self.session,
                    AchievementUnlock,
                    key=["user_id", "achievement_code"],
                    values={
                        "user_id": user_id,
                        "achievement_code": achievement.code,
                        "unlocked_at": self.clock.now(),
                    },
                )
            except SQLAlchemyError as e:
                logger.error(f"Unlock of {achievement.code} failed for {user_id}: {e}")
                raise StorageError(f"Could not unlock {achievement.code} for {user_id}") from e

            if not inserted:
                continue

            logger.info(f"{user_id} unlocked achievement '{achievement.code}' ({achievement.title})")
            if achievement.xp_bonus > 0:
                self.ledger.grant_xp(
                    user_id,
                    achievement.xp_bonus,
                    achievement.title,
                    event_key=f"achievement:{achievement.code}",
                )
            unlocked.append(achievement)

        return unlocked

    def unlocked_codes(self, user_id: str) -> dict[str, datetime]:
        stmt = select(AchievementUnlock.achievement_code, AchievementUnlock.unlocked_at).where(
            AchievementUnlock.user_id == user_id
        )
        return {code: at for code, at in self.session.execute(stmt)}

    def list_for_user(self, user_id: str) -> list[AchievementStatus]:
        """Every catalogue entry with the user's unlock state."""
        held = self.unlocked_codes(user_id)
        return [
            AchievementStatus(achievement=a, unlocked=a.code in held, unlocked_at=held.get(a.code))
            for a in self.catalogue
        ]


class NotificationQueue:
    """
    FIFO of achievements waiting to be shown.

    The UI drains it one notification at a time, first unlocked first.
    """

    def __init__(self, items: Iterable[AchievementDefinition] = ()):
        self._items: deque[AchievementDefinition] = deque(items)

    def push_all(self, items: Sequence[AchievementDefinition]) -> None:
        self._items.extend(items)

    def next(self) -> AchievementDefinition | None:
        """Pop the oldest pending notification, or None when empty."""
        if not self._items:
            return None
        return self._items.popleft()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
