"""
Unit tests for answer outcomes and difficulty parsing.

Run: pytest tests/unit/test_outcomes.py -v
"""

import pytest

from progress_core.assessment.outcomes import (
    AnswerOutcome,
    Difficulty,
    parse_outcome_token,
    require_outcomes,
)
from progress_core.core.errors import InvalidInputError


class TestDifficulty:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("easy", Difficulty.EASY),
            ("MEDIUM", Difficulty.MEDIUM),
            (" hard ", Difficulty.HARD),
            ("facil", Difficulty.EASY),
            ("médio", Difficulty.MEDIUM),
            ("difícil", Difficulty.HARD),
        ],
    )
    def test_parse(self, name, expected):
        assert Difficulty.parse(name) is expected

    def test_unknown_tier(self):
        with pytest.raises(InvalidInputError):
            Difficulty.parse("legendary")

    def test_non_string(self):
        with pytest.raises(InvalidInputError):
            Difficulty.parse(3)


class TestAnswerOutcome:
    def test_tier_is_normalised(self):
        outcome = AnswerOutcome("q1", "dificil", True)
        assert outcome.difficulty is Difficulty.HARD

    def test_correct_must_be_bool(self):
        with pytest.raises(InvalidInputError):
            AnswerOutcome("q1", "easy", 1)

    def test_question_id_required(self):
        with pytest.raises(InvalidInputError):
            AnswerOutcome("", "easy", True)

    def test_is_immutable(self):
        outcome = AnswerOutcome("q1", "easy", True)
        with pytest.raises(AttributeError):
            outcome.correct = False


class TestRequireOutcomes:
    def test_empty_rejected(self):
        with pytest.raises(InvalidInputError):
            require_outcomes([])

    def test_materialises_iterables(self):
        items = require_outcomes(AnswerOutcome(f"q{i}", "easy", True) for i in range(3))
        assert len(items) == 3


class TestParseOutcomeToken:
    def test_valid_tokens(self):
        assert parse_outcome_token("hard:1", "q1") == AnswerOutcome("q1", Difficulty.HARD, True)
        assert parse_outcome_token("facil:0", "q2").correct is False

    @pytest.mark.parametrize("token", ["hard", "hard:2", "hard:yes", "", ":1"])
    def test_invalid_tokens(self, token):
        with pytest.raises(InvalidInputError):
            parse_outcome_token(token, "q1")
