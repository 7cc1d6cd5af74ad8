"""
Level Table.

Static mapping from cumulative XP to a level and title. The level is always
derived from `xp_total` through this table and never stored on its own, so
lookups must stay pure: same input, same output, no I/O.

Default thresholds:
    1 Iniciante 0 | 2 Aprendiz 100 | 3 Estudante 300 | 4 Dedicado 600
    5 Aplicado 1000 | 6 Competente 1500 | 7 Habilidoso 2200
    8 Expert 3000 | 9 Mestre 4000 | 10 Lenda 5500
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from progress_core.core.errors import InvalidInputError

MAX_LEVEL_TITLE = "Máximo"


@dataclass(frozen=True)
class LevelDefinition:
    """One row of the level table."""

    level: int
    title: str
    xp_required: int


@dataclass(frozen=True)
class LevelInfo:
    """Level position derived from a cumulative XP total."""

    level: int
    title: str
    xp_total: int
    xp_for_current_level: int
    xp_for_next_level: int | None  # None at the maximum level
    progress_pct: int  # 0-100
    xp_to_next: int
    next_title: str

    @property
    def is_max_level(self) -> bool:
        return self.xp_for_next_level is None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "level": self.level,
            "title": self.title,
            "xp_total": self.xp_total,
            "xp_for_current_level": self.xp_for_current_level,
            "xp_for_next_level": self.xp_for_next_level,
            "progress_pct": self.progress_pct,
            "xp_to_next": self.xp_to_next,
            "next_title": self.next_title,
        }


DEFAULT_LEVELS: tuple[LevelDefinition, ...] = (
    LevelDefinition(1, "Iniciante", 0),
    LevelDefinition(2, "Aprendiz", 100),
    LevelDefinition(3, "Estudante", 300),
    LevelDefinition(4, "Dedicado", 600),
    LevelDefinition(5, "Aplicado", 1000),
    LevelDefinition(6, "Competente", 1500),
    LevelDefinition(7, "Habilidoso", 2200),
    LevelDefinition(8, "Expert", 3000),
    LevelDefinition(9, "Mestre", 4000),
    LevelDefinition(10, "Lenda", 5500),
)


class LevelTable:
    """
    Immutable, ordered level table.

    Validates on construction that thresholds start at 0 and are strictly
    increasing, so every non-negative total maps to exactly one level.
    """

    def __init__(self, levels: Iterable[LevelDefinition] = DEFAULT_LEVELS):
        rows = tuple(levels)
        if not rows:
            raise InvalidInputError("Level table must not be empty")
        if rows[0].xp_required != 0:
            raise InvalidInputError("First level must require 0 XP")
        for prev, cur in zip(rows, rows[1:]):
            if cur.xp_required <= prev.xp_required:
                raise InvalidInputError(
                    f"Level thresholds must be strictly increasing "
                    f"(level {cur.level} requires {cur.xp_required} <= {prev.xp_required})"
                )
        self._levels = rows
        self._thresholds = [row.xp_required for row in rows]

    @property
    def levels(self) -> Sequence[LevelDefinition]:
        return self._levels

    @property
    def max_level(self) -> LevelDefinition:
        return self._levels[-1]

    def level_for(self, xp_total: int) -> LevelInfo:
        """
        Resolve the level for a cumulative XP total.

        Args:
            xp_total: Cumulative XP (>= 0)

        Returns:
            LevelInfo with the highest level whose threshold is reached and
            the floored percentage progress towards the next one
        """
        if isinstance(xp_total, bool) or not isinstance(xp_total, int):
            raise InvalidInputError(f"xp_total must be an integer, got {xp_total!r}")
        if xp_total < 0:
            raise InvalidInputError(f"xp_total must be >= 0, got {xp_total}")

        index = bisect_right(self._thresholds, xp_total) - 1
        current = self._levels[index]

        if index + 1 >= len(self._levels):
            return LevelInfo(
                level=current.level,
                title=current.title,
                xp_total=xp_total,
                xp_for_current_level=current.xp_required,
                xp_for_next_level=None,
                progress_pct=100,
                xp_to_next=0,
                next_title=MAX_LEVEL_TITLE,
            )

        nxt = self._levels[index + 1]
        span = nxt.xp_required - current.xp_required
        progress = (100 * (xp_total - current.xp_required)) // span

        return LevelInfo(
            level=current.level,
            title=current.title,
            xp_total=xp_total,
            xp_for_current_level=current.xp_required,
            xp_for_next_level=nxt.xp_required,
            progress_pct=min(progress, 100),
            xp_to_next=nxt.xp_required - xp_total,
            next_title=nxt.title,
        )


DEFAULT_TABLE = LevelTable()


def level_for(xp_total: int, table: LevelTable = DEFAULT_TABLE) -> LevelInfo:
    """Resolve `xp_total` against the default (or a given) level table."""
    return table.level_for(xp_total)
