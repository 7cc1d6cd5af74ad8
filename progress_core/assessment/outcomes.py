"""
Answer outcomes produced by a finished session.

An AnswerOutcome is transient: a session produces the list once and every
consumer (estimator, ledger, notebook) reads it without mutating it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from progress_core.core.errors import InvalidInputError


class Difficulty(str, Enum):
    """Question difficulty tier."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value: Difficulty | str) -> Difficulty:
        """
        Parse a tier name.

        Accepts the canonical names and the Portuguese tier names used by
        the question bank ('facil', 'medio', 'dificil').
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            tier = _ALIASES.get(key)
            if tier is not None:
                return tier
        raise InvalidInputError(f"Unknown difficulty tier: {value!r}")


_ALIASES: dict[str, Difficulty] = {
    "easy": Difficulty.EASY,
    "medium": Difficulty.MEDIUM,
    "hard": Difficulty.HARD,
    "facil": Difficulty.EASY,
    "fácil": Difficulty.EASY,
    "medio": Difficulty.MEDIUM,
    "médio": Difficulty.MEDIUM,
    "dificil": Difficulty.HARD,
    "difícil": Difficulty.HARD,
}


@dataclass(frozen=True)
class AnswerOutcome:
    """A single graded answer."""

    question_id: str
    difficulty: Difficulty
    correct: bool
    user_answer: str | None = None  # Selected option, kept for the error notebook

    def __post_init__(self):
        # Normalise tier names and reject unknown ones at construction
        object.__setattr__(self, "difficulty", Difficulty.parse(self.difficulty))
        if not isinstance(self.correct, bool):
            raise InvalidInputError(f"correct must be a bool, got {self.correct!r}")
        if not self.question_id:
            raise InvalidInputError("question_id must not be empty")


def require_outcomes(outcomes: Iterable[AnswerOutcome]) -> list[AnswerOutcome]:
    """Materialise an outcome list that must not be empty."""
    items = list(outcomes)
    if not items:
        raise InvalidInputError("Outcome list must not be empty")
    for item in items:
        if not isinstance(item, AnswerOutcome):
            raise InvalidInputError(f"Expected AnswerOutcome, got {type(item).__name__}")
    return items


def parse_outcome_token(token: str, question_id: str) -> AnswerOutcome:
    """
    Parse a compact `tier:result` token such as 'hard:1' or 'facil:0'.

    Used by the CLI to feed the estimator without a question bank.
    """
    tier, sep, result = token.partition(":")
    if not sep or result not in {"0", "1"}:
        raise InvalidInputError(f"Outcome token must look like 'easy:1', got {token!r}")
    return AnswerOutcome(question_id=question_id, difficulty=Difficulty.parse(tier), correct=result == "1")
