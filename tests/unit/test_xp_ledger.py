"""
Unit tests for the XP ledger.

Covers grants, the history/total invariant, event-key idempotency, level-up
detection, answer and battle counters, and XP rates.

Run: pytest tests/unit/test_xp_ledger.py -v
"""

import pytest
from sqlalchemy import update

from progress_core.assessment.outcomes import Difficulty
from progress_core.core.errors import DuplicateEventError, InvalidInputError
from progress_core.db.database import count_rows
from progress_core.db.models import UserStats, XPHistoryEntry
from progress_core.gamification.xp_ledger import XPLedger, XPRates


@pytest.fixture
def ledger(session, clock):
    return XPLedger(session, clock)


class TestGrantXP:
    """Test XPLedger.grant_xp."""

    def test_first_grant_creates_stats(self, ledger):
        result = ledger.grant_xp("ana", 80, "Simulado")

        assert result.accepted
        assert result.xp_gained == 80
        assert result.xp_total == 80
        assert result.level_info.level == 1
        assert result.leveled_up is False
        assert result.streak == 1

    def test_total_equals_history_sum(self, ledger, session):
        for amount in (10, 25, 5, 60):
            ledger.grant_xp("ana", amount, "Quiz")

        assert ledger.get_stats("ana").xp_total == 100
        assert ledger.history_total("ana") == 100
        assert count_rows(session, XPHistoryEntry, user_id="ana") == 4
        assert ledger.verify("ana")

    def test_level_up_detected(self, ledger):
        ledger.grant_xp("ana", 90, "Quiz")
        result = ledger.grant_xp("ana", 20, "Quiz")

        assert result.leveled_up is True
        assert result.level_info.level == 2
        assert result.level_info.title == "Aprendiz"

    def test_zero_amount_is_rejected_without_writes(self, ledger, session):
        result = ledger.grant_xp("ana", 0, "Nada")

        assert not result.accepted
        assert result.xp_gained == 0
        assert result.xp_total == 0
        assert count_rows(session, XPHistoryEntry) == 0
        assert count_rows(session, UserStats) == 0

    def test_negative_amount_is_rejected(self, ledger):
        ledger.grant_xp("ana", 50, "Quiz")
        result = ledger.grant_xp("ana", -10, "Penalty")

        assert not result.accepted
        assert result.xp_total == 50
        assert ledger.get_stats("ana").xp_total == 50

    @pytest.mark.parametrize("amount", [1.5, "10", None, True])
    def test_non_integer_amount_raises(self, ledger, amount):
        with pytest.raises(InvalidInputError):
            ledger.grant_xp("ana", amount, "Quiz")

    def test_empty_reason_raises(self, ledger):
        with pytest.raises(InvalidInputError):
            ledger.grant_xp("ana", 10, "  ")

    def test_users_are_isolated(self, ledger):
        ledger.grant_xp("ana", 10, "Quiz")
        ledger.grant_xp("bia", 30, "Quiz")

        assert ledger.get_stats("ana").xp_total == 10
        assert ledger.get_stats("bia").xp_total == 30


class TestEventKeys:
    """Keyed grants are at-most-once per user."""

    def test_duplicate_event_key_raises(self, ledger, session):
        ledger.grant_xp("ana", 40, "Quiz", event_key="session:s1")
        session.commit()

        with pytest.raises(DuplicateEventError) as excinfo:
            ledger.grant_xp("ana", 40, "Quiz", event_key="session:s1")
        assert excinfo.value.event_key == "session:s1"

        session.rollback()
        assert ledger.get_stats("ana").xp_total == 40
        assert ledger.verify("ana")

    def test_same_key_for_different_users(self, ledger):
        ledger.grant_xp("ana", 10, "Quiz", event_key="session:s1")
        ledger.grant_xp("bia", 10, "Quiz", event_key="session:s1")

        assert ledger.get_stats("bia").xp_total == 10

    def test_blank_event_key_raises(self, ledger):
        with pytest.raises(InvalidInputError):
            ledger.grant_xp("ana", 10, "Quiz", event_key="")


class TestHistoryAndRepair:
    def test_history_limit(self, ledger, clock):
        for amount in (1, 2, 3):
            ledger.grant_xp("ana", amount, f"grant {amount}")
            clock.advance(minutes=1)

        history = ledger.history("ana", limit=2)
        assert [entry.amount for entry in history] == [3, 2]

    def test_history_same_instant_keeps_insertion_order(self, ledger):
        """Grants stamped with the same time still come back newest first."""
        for reason in ("first", "second", "third"):
            ledger.grant_xp("ana", 5, reason)

        assert [entry.reason for entry in ledger.history("ana")] == ["third", "second", "first"]
        assert [entry.seq for entry in ledger.history("ana")] == [3, 2, 1]

    def test_recompute_total_repairs_drift(self, ledger, session):
        ledger.grant_xp("ana", 70, "Quiz")
        session.execute(update(UserStats).where(UserStats.user_id == "ana").values(xp_total=5))

        assert not ledger.verify("ana")
        assert ledger.recompute_total("ana") == 70
        assert ledger.verify("ana")


class TestCounters:
    def test_record_answers(self, ledger, exam_outcomes):
        snapshot = ledger.record_answers("ana", exam_outcomes)

        assert snapshot.questions_answered == 5
        assert snapshot.questions_correct == 4
        assert snapshot.accuracy_pct == 80

    def test_counters_accumulate(self, ledger, exam_outcomes):
        ledger.record_answers("ana", exam_outcomes)
        snapshot = ledger.record_answers("ana", exam_outcomes[:2])

        assert snapshot.questions_answered == 7
        assert snapshot.questions_correct == 6
        assert snapshot.accuracy_pct == 86

    def test_accuracy_without_answers(self, ledger):
        assert ledger.get_stats("ana").accuracy_pct == 0

    def test_record_battle(self, ledger):
        ledger.record_battle("ana", 5, 5)
        snapshot = ledger.record_battle("ana", 3, 5)

        assert snapshot.battles_played == 2
        assert snapshot.battles_perfect == 1

    @pytest.mark.parametrize("correct,total", [(6, 5), (-1, 5), (0, 0)])
    def test_invalid_battle(self, ledger, correct, total):
        with pytest.raises(InvalidInputError):
            ledger.record_battle("ana", correct, total)

    def test_counters_do_not_touch_xp(self, ledger, exam_outcomes):
        snapshot = ledger.record_answers("ana", exam_outcomes)
        assert snapshot.xp_total == 0
        assert snapshot.streak_current == 0


class TestXPRates:
    def test_question_rates(self):
        rates = XPRates()
        assert rates.for_question(Difficulty.EASY) == 5
        assert rates.for_question(Difficulty.MEDIUM) == 10
        assert rates.for_question(Difficulty.HARD) == 15

    def test_for_answers_counts_only_correct(self, exam_outcomes):
        # 3 easy + 1 medium correct
        assert XPRates().for_answers(exam_outcomes) == 25

    def test_battle(self):
        rates = XPRates()
        assert rates.for_battle(3, 5) == 60
        assert rates.for_battle(5, 5) == 150
        assert rates.for_battle(0, 5) == 0

    @pytest.mark.parametrize("score,xp", [(900, 150), (700, 150), (699, 100), (600, 100), (500, 75), (499, 50), (300, 50)])
    def test_exam_score_bands(self, score, xp):
        assert XPRates().for_exam_score(score) == xp

    def test_from_settings(self):
        rates = XPRates.from_settings()
        assert rates.battle_perfect_bonus == 50
        assert rates.for_question(Difficulty.HARD) == 15
