"""
Assessment Service.

Persists proficiency results and enforces the diagnostic cooldown. Scoring
itself stays in the pure estimator; this service only adds storage and the
clock. Results are insert-only: a retake is a new row.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import get_settings
from progress_core.assessment.outcomes import AnswerOutcome, Difficulty
from progress_core.assessment.proficiency import (
    ProficiencyResult,
    ScoringMode,
    ScoringProfile,
    TierStats,
    estimate,
)
from progress_core.core.clock import Clock
from progress_core.core.errors import DiagnosticCooldownError, StorageError
from progress_core.db.models import ProficiencyResultRecord


def result_from_record(record: ProficiencyResultRecord) -> ProficiencyResult:
    """Rebuild the immutable result value from a stored row."""
    breakdown = {
        tier: TierStats(**record.breakdown.get(tier.value, {"total": 0, "correct": 0}))
        for tier in Difficulty
    }
    return ProficiencyResult(
        mode=ScoringMode(record.mode),
        score=record.score,
        classification=record.classification,
        accuracy_pct=record.accuracy_pct,
        answered=sum(t.total for t in breakdown.values()),
        correct=sum(t.correct for t in breakdown.values()),
        per_tier_breakdown=breakdown,
        penalty_applied=record.penalty_applied,
    )


class AssessmentService:
    """Scores, stores and rate-limits assessments."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        cooldown_days: int | None = None,
    ):
        settings = get_settings()
        self.session = session
        self.clock = clock or Clock()
        self.cooldown_days = cooldown_days if cooldown_days is not None else settings.diagnostic_cooldown_days
        self._scoring_config = settings.get_scoring_config()

    def profile_for(self, mode: ScoringMode | str) -> ScoringProfile:
        """Scoring profile for `mode` with configured constants."""
        return ScoringProfile.from_config(mode, self._scoring_config)

    def next_diagnostic_date(self, user_id: str) -> date:
        """First calendar day on which `user_id` may take a diagnostic."""
        last = self.latest_record(user_id, ScoringMode.DIAGNOSTIC)
        if last is None:
            return self.clock.today()
        return last.taken_on + timedelta(days=self.cooldown_days)

    def can_take_diagnostic(self, user_id: str) -> bool:
        return self.clock.today() >= self.next_diagnostic_date(user_id)

    def submit(
        self,
        user_id: str,
        outcomes: Iterable[AnswerOutcome],
        mode: ScoringMode | str,
        session_id: str | None = None,
    ) -> ProficiencyResult:
        """
        Score a submission and store the result.

        Raises:
            DiagnosticCooldownError: a diagnostic inside the cooldown window
            StorageError: the result could not be stored
        """
        mode = ScoringMode.parse(mode)
        if mode is ScoringMode.DIAGNOSTIC:
            available_on = self.next_diagnostic_date(user_id)
            if self.clock.today() < available_on:
                logger.warning(f"Diagnostic for {user_id} refused until {available_on}")
                raise DiagnosticCooldownError(user_id, available_on)

        result = estimate(outcomes, profile=self.profile_for(mode))

        try:
            self.session.add(
                ProficiencyResultRecord(
                    user_id=user_id,
                    mode=mode.value,
                    score=result.score,
                    classification=result.classification,
                    accuracy_pct=result.accuracy_pct,
                    penalty_applied=result.penalty_applied,
                    breakdown=result.breakdown_dict(),
                    session_id=session_id,
                    taken_on=self.clock.today(),
                    created_at=self.clock.now(),
                )
            )
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Storing {mode.value} result failed for {user_id}: {e}")
            raise StorageError(f"Could not store {mode.value} result for {user_id}") from e

        logger.info(
            f"{mode.value} for {user_id}: score {result.score} ({result.classification}), "
            f"accuracy {result.accuracy_pct}%"
        )
        return result

    def latest_record(self, user_id: str, mode: ScoringMode | str | None = None) -> ProficiencyResultRecord | None:
        stmt = select(ProficiencyResultRecord).where(ProficiencyResultRecord.user_id == user_id)
        if mode is not None:
            stmt = stmt.where(ProficiencyResultRecord.mode == ScoringMode.parse(mode).value)
        stmt = stmt.order_by(ProficiencyResultRecord.taken_on.desc(), ProficiencyResultRecord.created_at.desc())
        return self.session.execute(stmt.limit(1)).scalar_one_or_none()

    def latest_result(self, user_id: str, mode: ScoringMode | str | None = None) -> ProficiencyResult | None:
        record = self.latest_record(user_id, mode)
        return result_from_record(record) if record is not None else None

    def history(self, user_id: str, mode: ScoringMode | str | None = None) -> list[ProficiencyResultRecord]:
        """Stored results, newest first."""
        stmt = select(ProficiencyResultRecord).where(ProficiencyResultRecord.user_id == user_id)
        if mode is not None:
            stmt = stmt.where(ProficiencyResultRecord.mode == ScoringMode.parse(mode).value)
        stmt = stmt.order_by(ProficiencyResultRecord.taken_on.desc(), ProficiencyResultRecord.created_at.desc())
        return list(self.session.execute(stmt).scalars())
