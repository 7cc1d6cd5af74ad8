"""
Unit tests for the level table.

Run: pytest tests/unit/test_levels.py -v
"""

import pytest

from progress_core.core.errors import InvalidInputError
from progress_core.core.levels import (
    DEFAULT_TABLE,
    MAX_LEVEL_TITLE,
    LevelDefinition,
    LevelTable,
    level_for,
)


class TestLevelFor:
    """Test level_for against the default table."""

    def test_zero_xp_is_level_one(self):
        info = level_for(0)
        assert info.level == 1
        assert info.title == "Iniciante"
        assert info.progress_pct == 0
        assert info.xp_to_next == 100
        assert info.next_title == "Aprendiz"

    def test_below_first_threshold(self):
        """80 XP has not reached the 100 XP threshold."""
        info = level_for(80)
        assert info.level == 1
        assert info.progress_pct == 80

    def test_exact_threshold_starts_new_level(self):
        info = level_for(100)
        assert info.level == 2
        assert info.progress_pct == 0
        assert info.xp_for_current_level == 100
        assert info.xp_for_next_level == 300

    def test_progress_is_floored(self):
        # (299 - 100) / 200 = 99.5%
        assert level_for(299).progress_pct == 99

    def test_mid_table(self):
        info = level_for(1250)
        assert info.level == 5
        assert info.title == "Aplicado"
        assert info.progress_pct == 50
        assert info.xp_to_next == 250

    def test_max_level(self):
        info = level_for(5500)
        assert info.level == 10
        assert info.is_max_level
        assert info.progress_pct == 100
        assert info.xp_for_next_level is None
        assert info.xp_to_next == 0
        assert info.next_title == MAX_LEVEL_TITLE

    def test_beyond_max_level(self):
        assert level_for(100_000).level == 10

    def test_negative_xp_rejected(self):
        with pytest.raises(InvalidInputError):
            level_for(-1)

    def test_non_integer_rejected(self):
        with pytest.raises(InvalidInputError):
            level_for(10.5)
        with pytest.raises(InvalidInputError):
            level_for(True)

    def test_monotonic_over_range(self):
        """Level never decreases as XP grows; progress stays in 0-100."""
        previous = 0
        for xp in range(0, 6000, 7):
            info = DEFAULT_TABLE.level_for(xp)
            assert info.level >= previous
            assert 0 <= info.progress_pct <= 100
            previous = info.level

    def test_to_dict(self):
        data = level_for(150).to_dict()
        assert data["level"] == 2
        assert data["progress_pct"] == 25


class TestLevelTable:
    """Test table validation and custom tables."""

    def test_custom_table(self):
        table = LevelTable([LevelDefinition(1, "A", 0), LevelDefinition(2, "B", 10)])
        assert table.level_for(9).level == 1
        assert table.level_for(10).level == 2
        assert table.max_level.title == "B"

    def test_single_level_table(self):
        table = LevelTable([LevelDefinition(1, "Only", 0)])
        info = table.level_for(42)
        assert info.is_max_level
        assert info.progress_pct == 100

    def test_empty_table_rejected(self):
        with pytest.raises(InvalidInputError):
            LevelTable([])

    def test_first_threshold_must_be_zero(self):
        with pytest.raises(InvalidInputError):
            LevelTable([LevelDefinition(1, "A", 5), LevelDefinition(2, "B", 10)])

    def test_thresholds_must_increase(self):
        with pytest.raises(InvalidInputError):
            LevelTable([LevelDefinition(1, "A", 0), LevelDefinition(2, "B", 10), LevelDefinition(3, "C", 10)])
