"""
Proficiency Estimator (TRI-like score).

Converts a batch of difficulty-tagged answers into one bounded score.
Not a true item response model: the score is a difficulty-weighted
accuracy with a consistency penalty for answer patterns that look like
guessing (much better on hard questions than on easy ones).

One estimator serves both modes; a mode only selects a ScoringProfile:

    score = base
          + accuracy_slope * accuracy_pct
          + sum(tier_weight[tier] * correct[tier])
          - penalty_points   (if penalty rule fires)
    score = clamp(score, min_score, max_score)

Diagnostic: base 400, slope 5, no tier weights, no penalty, [300, 900]
Exam:       base 400, slope 0, weights 15/35/50, penalty -30, [400, 900]
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Any

from progress_core.assessment.outcomes import AnswerOutcome, Difficulty
from progress_core.core.errors import InvalidInputError

# Tuning constants (empirical, kept overridable through ScoringProfile)
DIAGNOSTIC_BASE_SCORE = 400
DIAGNOSTIC_ACCURACY_SLOPE = 5
DIAGNOSTIC_MIN_SCORE = 300
DIAGNOSTIC_MAX_SCORE = 900

EXAM_BASE_SCORE = 400
EXAM_TIER_WEIGHTS = {Difficulty.EASY: 15, Difficulty.MEDIUM: 35, Difficulty.HARD: 50}
EXAM_MIN_SCORE = 400
EXAM_MAX_SCORE = 900

CONSISTENCY_PENALTY_THRESHOLD = 0.30
CONSISTENCY_PENALTY_POINTS = 30


class ScoringMode(str, Enum):
    """Named estimator variants."""

    DIAGNOSTIC = "diagnostic"
    EXAM = "exam"

    @classmethod
    def parse(cls, value: ScoringMode | str) -> ScoringMode:
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidInputError(f"Unknown scoring mode: {value!r}") from e


@dataclass(frozen=True)
class ScoringProfile:
    """
    Weight table and rules for one scoring mode.

    `classification_bands` is a list of (minimum score, label), highest
    first; the first band whose minimum is reached labels the score.
    """

    mode: ScoringMode
    base: int
    min_score: int
    max_score: int
    classification_bands: tuple[tuple[int, str], ...]
    accuracy_slope: int = 0
    tier_weights: Mapping[Difficulty, int] = field(default_factory=dict)
    penalty_threshold: float | None = None  # None disables the consistency penalty
    penalty_points: int = 0

    def __post_init__(self):
        if self.min_score > self.max_score:
            raise InvalidInputError(
                f"min_score {self.min_score} exceeds max_score {self.max_score}"
            )
        minimums = [band[0] for band in self.classification_bands]
        if not minimums or minimums != sorted(minimums, reverse=True):
            raise InvalidInputError("classification_bands must be non-empty and sorted highest first")

    def classify(self, score: int) -> str:
        for minimum, label in self.classification_bands:
            if score >= minimum:
                return label
        return self.classification_bands[-1][1]

    @classmethod
    def diagnostic(
        cls,
        base: int = DIAGNOSTIC_BASE_SCORE,
        accuracy_slope: int = DIAGNOSTIC_ACCURACY_SLOPE,
        min_score: int = DIAGNOSTIC_MIN_SCORE,
        max_score: int = DIAGNOSTIC_MAX_SCORE,
    ) -> ScoringProfile:
        return cls(
            mode=ScoringMode.DIAGNOSTIC,
            base=base,
            accuracy_slope=accuracy_slope,
            min_score=min_score,
            max_score=max_score,
            classification_bands=(
                (750, "Avançado"),
                (600, "Intermediário"),
                (450, "Básico"),
                (min(min_score, 450), "Iniciante"),
            ),
        )

    @classmethod
    def exam(
        cls,
        base: int = EXAM_BASE_SCORE,
        tier_weights: Mapping[Difficulty | str, int] | None = None,
        min_score: int = EXAM_MIN_SCORE,
        max_score: int = EXAM_MAX_SCORE,
        penalty_threshold: float = CONSISTENCY_PENALTY_THRESHOLD,
        penalty_points: int = CONSISTENCY_PENALTY_POINTS,
    ) -> ScoringProfile:
        weights = tier_weights if tier_weights is not None else EXAM_TIER_WEIGHTS
        return cls(
            mode=ScoringMode.EXAM,
            base=base,
            tier_weights={Difficulty.parse(k): v for k, v in weights.items()},
            min_score=min_score,
            max_score=max_score,
            penalty_threshold=penalty_threshold,
            penalty_points=penalty_points,
            classification_bands=(
                (800, "Elite"),
                (700, "Avançado"),
                (600, "Intermediário"),
                (500, "Básico"),
                (min(min_score, 500), "Iniciante"),
            ),
        )

    @classmethod
    def from_config(cls, mode: ScoringMode | str, config: Mapping[str, Any]) -> ScoringProfile:
        """Build a profile from `Settings.get_scoring_config()`."""
        mode = ScoringMode.parse(mode)
        section = config[mode.value]
        if mode is ScoringMode.DIAGNOSTIC:
            return cls.diagnostic(**section)
        return cls.exam(**section)


def default_profile(mode: ScoringMode | str) -> ScoringProfile:
    """Profile with the built-in constants for `mode`."""
    mode = ScoringMode.parse(mode)
    if mode is ScoringMode.DIAGNOSTIC:
        return ScoringProfile.diagnostic()
    return ScoringProfile.exam()


@dataclass(frozen=True)
class TierStats:
    """Answers and hits within one difficulty tier."""

    total: int = 0
    correct: int = 0

    @property
    def accuracy(self) -> Fraction:
        """Exact hit rate; 0 for an empty tier."""
        if self.total == 0:
            return Fraction(0)
        return Fraction(self.correct, self.total)

    @property
    def accuracy_pct(self) -> int:
        return percent(self.correct, self.total)

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "correct": self.correct}


@dataclass(frozen=True)
class ProficiencyResult:
    """Outcome of one diagnostic or exam submission."""

    mode: ScoringMode
    score: int
    classification: str
    accuracy_pct: int
    answered: int
    correct: int
    per_tier_breakdown: Mapping[Difficulty, TierStats]
    penalty_applied: bool = False

    def breakdown_dict(self) -> dict[str, dict[str, int]]:
        """Breakdown keyed by tier name, suitable for JSON storage."""
        return {tier.value: self.per_tier_breakdown[tier].to_dict() for tier in Difficulty}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "mode": self.mode.value,
            "score": self.score,
            "classification": self.classification,
            "accuracy_pct": self.accuracy_pct,
            "answered": self.answered,
            "correct": self.correct,
            "penalty_applied": self.penalty_applied,
            "per_tier_breakdown": self.breakdown_dict(),
        }


def percent(part: int, whole: int) -> int:
    """Integer percentage rounded half up; 0 when `whole` is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def tier_breakdown(outcomes: Sequence[AnswerOutcome]) -> dict[Difficulty, TierStats]:
    """Count answers and hits per tier; every tier is present."""
    totals = {tier: [0, 0] for tier in Difficulty}
    for outcome in outcomes:
        counts = totals[outcome.difficulty]
        counts[0] += 1
        if outcome.correct:
            counts[1] += 1
    return {tier: TierStats(total=t, correct=c) for tier, (t, c) in totals.items()}


def consistency_penalty_applies(
    breakdown: Mapping[Difficulty, TierStats], threshold: float | None
) -> bool:
    """True when hard accuracy exceeds easy accuracy by more than `threshold`."""
    if threshold is None:
        return False
    hard = breakdown[Difficulty.HARD].accuracy
    easy = breakdown[Difficulty.EASY].accuracy
    return hard > easy + Fraction(str(threshold))


def estimate(
    outcomes: Iterable[AnswerOutcome],
    mode: ScoringMode | str = ScoringMode.EXAM,
    profile: ScoringProfile | None = None,
) -> ProficiencyResult:
    """
    Score a batch of answers.

    Pure computation: no persistence, no clock. An empty batch is valid and
    yields accuracy 0 and the lowest classification band.

    Args:
        outcomes: Graded answers of one submission
        mode: Scoring mode (ignored when `profile` is given)
        profile: Explicit weight table, e.g. built from configuration

    Returns:
        ProficiencyResult with the clamped score and per-tier breakdown
    """
    if profile is None:
        profile = default_profile(mode)

    items = list(outcomes)
    for item in items:
        if not isinstance(item, AnswerOutcome):
            raise InvalidInputError(f"Expected AnswerOutcome, got {type(item).__name__}")

    breakdown = tier_breakdown(items)
    answered = len(items)
    correct = sum(1 for item in items if item.correct)
    accuracy_pct = percent(correct, answered)

    raw = profile.base + profile.accuracy_slope * accuracy_pct
    for tier, stats in breakdown.items():
        raw += profile.tier_weights.get(tier, 0) * stats.correct

    penalty_applied = consistency_penalty_applies(breakdown, profile.penalty_threshold)
    if penalty_applied:
        raw -= profile.penalty_points

    score = max(profile.min_score, min(profile.max_score, raw))

    return ProficiencyResult(
        mode=profile.mode,
        score=score,
        classification=profile.classify(score),
        accuracy_pct=accuracy_pct,
        answered=answered,
        correct=correct,
        per_tier_breakdown=breakdown,
        penalty_applied=penalty_applied,
    )
