"""
Unit tests for the proficiency estimator.

Tests both scoring modes:
- Diagnostic: linear in overall accuracy
- Exam: base + per-tier weights, with the consistency penalty

Run: pytest tests/unit/test_proficiency.py -v
"""

import pytest

from progress_core.assessment.outcomes import AnswerOutcome, Difficulty
from progress_core.assessment.proficiency import (
    ScoringMode,
    ScoringProfile,
    TierStats,
    consistency_penalty_applies,
    estimate,
    percent,
)
from progress_core.core.errors import InvalidInputError


def _answers(pairs):
    """Build outcomes from (tier, correct) pairs."""
    return [AnswerOutcome(f"q{i}", tier, correct) for i, (tier, correct) in enumerate(pairs, start=1)]


class TestPercent:
    def test_zero_whole(self):
        assert percent(0, 0) == 0

    def test_rounds_half_up(self):
        assert percent(1, 8) == 13  # 12.5
        assert percent(2, 3) == 67
        assert percent(1, 3) == 33

    def test_exact(self):
        assert percent(12, 15) == 80


class TestDiagnostic:
    """Diagnostic score = clamp(400 + 5 * accuracy, 300, 900)."""

    def test_twelve_of_fifteen(self, diagnostic_outcomes):
        result = estimate(diagnostic_outcomes, ScoringMode.DIAGNOSTIC)
        assert result.accuracy_pct == 80
        assert result.score == 800
        assert result.classification == "Avançado"
        assert result.answered == 15
        assert result.correct == 12

    def test_perfect_score_hits_ceiling(self):
        result = estimate(_answers([("easy", True)] * 4), "diagnostic")
        assert result.accuracy_pct == 100
        assert result.score == 900

    def test_zero_accuracy(self):
        result = estimate(_answers([("hard", False)] * 3), ScoringMode.DIAGNOSTIC)
        assert result.score == 400
        assert result.classification == "Iniciante"

    def test_classification_bands(self):
        profile = ScoringProfile.diagnostic()
        assert profile.classify(750) == "Avançado"
        assert profile.classify(749) == "Intermediário"
        assert profile.classify(600) == "Intermediário"
        assert profile.classify(450) == "Básico"
        assert profile.classify(449) == "Iniciante"

    def test_raised_floor_keeps_bands_valid(self):
        """A minimum score above the lowest named band is a legal profile."""
        profile = ScoringProfile.diagnostic(min_score=500)
        assert profile.classify(500) == "Básico"
        assert profile.classify(760) == "Avançado"

        result = estimate(_answers([("hard", False)] * 3), profile=profile)
        assert result.score == 500
        assert result.classification == "Básico"

    def test_no_penalty_in_diagnostic(self):
        pairs = [("hard", True)] * 3 + [("easy", False)] * 3
        assert estimate(_answers(pairs), ScoringMode.DIAGNOSTIC).penalty_applied is False


class TestExam:
    """Exam score = clamp(400 + 15e + 35m + 50h - penalty, 400, 900)."""

    def test_weighted_score(self, exam_outcomes):
        result = estimate(exam_outcomes, ScoringMode.EXAM)
        # 400 + 3*15 + 1*35
        assert result.score == 480
        assert result.classification == "Iniciante"
        assert result.accuracy_pct == 80
        assert result.penalty_applied is False

    def test_breakdown(self, exam_outcomes):
        result = estimate(exam_outcomes)
        assert result.per_tier_breakdown[Difficulty.EASY] == TierStats(total=3, correct=3)
        assert result.per_tier_breakdown[Difficulty.MEDIUM] == TierStats(total=1, correct=1)
        assert result.per_tier_breakdown[Difficulty.HARD] == TierStats(total=1, correct=0)
        assert result.breakdown_dict()["hard"] == {"total": 1, "correct": 0}

    def test_score_is_clamped_to_ceiling(self):
        result = estimate(_answers([("hard", True)] * 20), ScoringMode.EXAM)
        assert result.score == 900
        assert result.classification == "Elite"

    def test_consistency_penalty(self):
        """All hard right and all easy wrong scores below a perfect set."""
        inconsistent = _answers([("easy", False)] * 3 + [("hard", True)] * 3)
        perfect = _answers([("easy", True)] * 3 + [("hard", True)] * 3)

        penalised = estimate(inconsistent, ScoringMode.EXAM)
        clean = estimate(perfect, ScoringMode.EXAM)

        assert penalised.penalty_applied is True
        # 400 + 3*50 - 30
        assert penalised.score == 520
        assert penalised.score < clean.score

    def test_penalty_threshold_is_strict(self):
        """A gap of exactly 30 points of accuracy does not trigger the penalty."""
        breakdown = {
            Difficulty.EASY: TierStats(total=10, correct=6),
            Difficulty.MEDIUM: TierStats(),
            Difficulty.HARD: TierStats(total=10, correct=9),
        }
        assert consistency_penalty_applies(breakdown, 0.30) is False

        breakdown[Difficulty.HARD] = TierStats(total=10, correct=10)
        assert consistency_penalty_applies(breakdown, 0.30) is True

    def test_penalty_disabled(self):
        breakdown = {tier: TierStats() for tier in Difficulty}
        assert consistency_penalty_applies(breakdown, None) is False

    def test_custom_profile(self):
        profile = ScoringProfile.exam(base=500, tier_weights={"easy": 1, "medium": 1, "hard": 1}, penalty_points=0)
        result = estimate(_answers([("easy", True), ("hard", True)]), profile=profile)
        assert result.score == 502

    def test_raised_floor_keeps_bands_valid(self):
        profile = ScoringProfile.exam(min_score=550)
        assert profile.classify(550) == "Básico"
        assert profile.classify(820) == "Elite"

    def test_from_config(self):
        config = {
            "exam": {
                "base": 450,
                "tier_weights": {"easy": 10, "medium": 20, "hard": 30},
                "min_score": 400,
                "max_score": 900,
                "penalty_threshold": 0.5,
                "penalty_points": 10,
            }
        }
        profile = ScoringProfile.from_config("exam", config)
        assert profile.base == 450
        assert profile.tier_weights[Difficulty.HARD] == 30


class TestEstimateEdgeCases:
    def test_empty_batch(self):
        result = estimate([], ScoringMode.EXAM)
        assert result.accuracy_pct == 0
        assert result.score == 400
        assert result.classification == "Iniciante"

    def test_empty_tier_has_zero_accuracy(self):
        result = estimate(_answers([("medium", True)]))
        assert result.per_tier_breakdown[Difficulty.HARD].accuracy == 0

    def test_rejects_non_outcomes(self):
        with pytest.raises(InvalidInputError):
            estimate([("easy", True)])

    def test_unknown_mode(self):
        with pytest.raises(InvalidInputError):
            estimate([], "olympiad")

    def test_bounds_hold_for_any_mix(self):
        for easy in range(0, 4):
            for hard in range(0, 4):
                pairs = [("easy", i < easy) for i in range(3)] + [("hard", i < hard) for i in range(3)]
                for mode in ScoringMode:
                    result = estimate(_answers(pairs), mode)
                    profile = ScoringProfile.diagnostic() if mode is ScoringMode.DIAGNOSTIC else ScoringProfile.exam()
                    assert profile.min_score <= result.score <= profile.max_score

    def test_to_dict(self, exam_outcomes):
        data = estimate(exam_outcomes).to_dict()
        assert data["mode"] == "exam"
        assert data["score"] == 480
