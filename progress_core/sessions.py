"""
Session finalisation flows.

A finished study session produces a list of AnswerOutcome values. The
recorder fans that list out to every component that consumes it:

    outcomes -> estimator (exam / diagnostic)
             -> XP ledger + streak
             -> error notebook (wrong answers)
             -> achievement engine (post-update stats snapshot)
             -> daily goals

All writes go through the caller's session, so a flow is committed or
rolled back as a whole by `session_scope()`. Every XP grant of a session
carries the event key `session:<session_id>`: finishing the same session
twice raises DuplicateEventError instead of paying out twice.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy.orm import Session

from progress_core.assessment.outcomes import AnswerOutcome, require_outcomes
from progress_core.assessment.proficiency import ProficiencyResult, ScoringMode
from progress_core.assessment.service import AssessmentService
from progress_core.core.clock import Clock
from progress_core.core.errors import InvalidInputError
from progress_core.gamification.achievements import AchievementCatalogue, AchievementDefinition, AchievementEngine
from progress_core.gamification.daily_goals import DailyGoals, DailyStatus
from progress_core.gamification.stats import StatsSnapshot
from progress_core.gamification.xp_ledger import XPGrantResult, XPLedger, XPRates
from progress_core.review.error_notebook import ErrorNotebook


@dataclass
class SessionSummary:
    """What a finished session changed."""

    session_id: str
    kind: str
    answered: int
    correct: int
    xp: XPGrantResult | None
    stats: StatsSnapshot
    proficiency: ProficiencyResult | None = None
    new_achievements: list[AchievementDefinition] = field(default_factory=list)
    notebook_added: list[str] = field(default_factory=list)
    notebook_resolved: list[str] = field(default_factory=list)
    daily: DailyStatus | None = None

    @property
    def xp_gained(self) -> int:
        return self.xp.xp_gained if self.xp is not None else 0

    @property
    def bonus_xp(self) -> int:
        return sum(a.xp_bonus for a in self.new_achievements)


class SessionRecorder:
    """Finalises study sessions and completed exercise lists."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        rates: XPRates | None = None,
        catalogue: AchievementCatalogue | None = None,
    ):
        self.session = session
        self.clock = clock or Clock()
        self.rates = rates or XPRates.from_settings()
        self.ledger = XPLedger(session, self.clock)
        self.achievements = AchievementEngine(session, self.ledger, catalogue, self.clock)
        self.assessment = AssessmentService(session, self.clock)
        self.notebook = ErrorNotebook(session, self.clock)
        self.goals = DailyGoals(session, self.clock)

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def finish_quiz(self, user_id: str, session_id: str, outcomes: Iterable[AnswerOutcome]) -> SessionSummary:
        """Practice quiz: XP per correct answer by difficulty."""
        items = self._begin(session_id, outcomes)
        self.ledger.record_answers(user_id, items)
        xp = self._grant(user_id, session_id, self.rates.for_answers(items), "Quiz")
        added = self._note_misses(user_id, items, origin="quiz")
        return self._finish(user_id, session_id, "quiz", items, xp, added=added)

    def finish_battle(self, user_id: str, session_id: str, outcomes: Iterable[AnswerOutcome]) -> SessionSummary:
        """Quick battle: flat XP per hit plus a bonus for a perfect round."""
        items = self._begin(session_id, outcomes)
        correct = sum(1 for item in items if item.correct)
        self.ledger.record_answers(user_id, items)
        self.ledger.record_battle(user_id, correct, len(items))
        reason = "Batalha perfeita" if correct == len(items) else "Batalha rápida"
        xp = self._grant(user_id, session_id, self.rates.for_battle(correct, len(items)), reason)
        added = self._note_misses(user_id, items, origin="battle")
        return self._finish(user_id, session_id, "battle", items, xp, added=added)

    def finish_exam(self, user_id: str, session_id: str, outcomes: Iterable[AnswerOutcome]) -> SessionSummary:
        """
        Simulated exam.

        XP is the exam points of the correct answers (the tier weights of
        the exam profile) plus a bonus for the final score band.
        """
        items = self._begin(session_id, outcomes)
        result = self.assessment.submit(user_id, items, ScoringMode.EXAM, session_id=session_id)
        self.ledger.record_answers(user_id, items)

        weights = self.assessment.profile_for(ScoringMode.EXAM).tier_weights
        points = sum(weights.get(item.difficulty, 0) for item in items if item.correct)
        amount = points + self.rates.for_exam_score(result.score)
        xp = self._grant(user_id, session_id, amount, f"Simulado ({result.score} pontos)")

        added = self._note_misses(user_id, items, origin="exam")
        return self._finish(user_id, session_id, "exam", items, xp, proficiency=result, added=added)

    def finish_diagnostic(self, user_id: str, session_id: str, outcomes: Iterable[AnswerOutcome]) -> SessionSummary:
        """
        Diagnostic test; refused with DiagnosticCooldownError inside the
        cooldown window. XP follows the score band.
        """
        items = self._begin(session_id, outcomes)
        result = self.assessment.submit(user_id, items, ScoringMode.DIAGNOSTIC, session_id=session_id)
        self.ledger.record_answers(user_id, items)
        xp = self._grant(
            user_id, session_id, self.rates.for_exam_score(result.score), f"Diagnóstico ({result.classification})"
        )
        added = self._note_misses(user_id, items, origin="diagnostic")
        return self._finish(user_id, session_id, "diagnostic", items, xp, proficiency=result, added=added)

    def finish_review(self, user_id: str, session_id: str, outcomes: Iterable[AnswerOutcome]) -> SessionSummary:
        """
        Re-drill of notebook questions.

        A correct re-attempt removes the entry; a miss keeps it (or puts it
        back) in pending with the new answer.
        """
        items = self._begin(session_id, outcomes)
        self.ledger.record_answers(user_id, items)
        xp = self._grant(user_id, session_id, self.rates.for_answers(items), "Revisão do caderno de erros")

        resolved: list[str] = []
        for item in items:
            if item.correct:
                if self.notebook.resolve_reattempt(user_id, item.question_id, True):
                    resolved.append(item.question_id)
        added = self._note_misses(user_id, items, origin="review")
        return self._finish(user_id, session_id, "review", items, xp, added=added, resolved=resolved)

    def finish_exercise(self, user_id: str, exercise_id: str) -> SessionSummary:
        """Completed exercise list: flat XP, paid once per exercise."""
        if not isinstance(exercise_id, str) or not exercise_id.strip():
            raise InvalidInputError("exercise_id must be a non-empty string")
        xp = self.ledger.grant_xp(
            user_id, self.rates.exercise_complete, "Lista de exercícios", event_key=f"exercise:{exercise_id}"
        )
        return self._finish(user_id, exercise_id, "exercise", [], xp)

    # ------------------------------------------------------------------
    # Steps shared by every flow
    # ------------------------------------------------------------------

    @staticmethod
    def _begin(session_id: str, outcomes: Iterable[AnswerOutcome]) -> list[AnswerOutcome]:
        if not isinstance(session_id, str) or not session_id.strip():
            raise InvalidInputError("session_id must be a non-empty string")
        return require_outcomes(outcomes)

    def _grant(self, user_id: str, session_id: str, amount: int, reason: str) -> XPGrantResult | None:
        if amount <= 0:
            logger.debug(f"Session {session_id} of {user_id} earned no XP")
            return None
        return self.ledger.grant_xp(user_id, amount, reason, event_key=f"session:{session_id}")

    def _note_misses(self, user_id: str, items: list[AnswerOutcome], origin: str) -> list[str]:
        missed = [item for item in items if not item.correct]
        for item in missed:
            self.notebook.record_wrong_answer(user_id, item.question_id, item.user_answer, origin=origin)
        return [item.question_id for item in missed]

    def _finish(
        self,
        user_id: str,
        session_id: str,
        kind: str,
        items: list[AnswerOutcome],
        xp: XPGrantResult | None,
        proficiency: ProficiencyResult | None = None,
        added: list[str] | None = None,
        resolved: list[str] | None = None,
    ) -> SessionSummary:
        stats = self.ledger.get_stats(user_id)
        unlocked = self.achievements.evaluate(user_id, stats, proficiency)
        if unlocked:
            stats = self.ledger.get_stats(user_id)

        correct = sum(1 for item in items if item.correct)
        earned = (xp.xp_gained if xp is not None else 0) + sum(a.xp_bonus for a in unlocked)
        daily = self.goals.record(user_id, xp_gained=earned, answered=len(items), correct=correct)

        logger.info(
            f"Finished {kind} {session_id} for {user_id}: {correct}/{len(items)} correct, "
            f"+{earned} XP, {len(unlocked)} achievement(s)"
        )
        return SessionSummary(
            session_id=session_id,
            kind=kind,
            answered=len(items),
            correct=correct,
            xp=xp,
            stats=stats,
            proficiency=proficiency,
            new_achievements=unlocked,
            notebook_added=added or [],
            notebook_resolved=resolved or [],
            daily=daily,
        )
