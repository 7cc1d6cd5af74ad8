"""
Core building blocks shared by every component.

- Clock: single "today" under one time zone policy
- Errors: typed failure hierarchy
- Level Table: pure XP -> level lookup
"""

from progress_core.core.clock import Clock, FixedClock
from progress_core.core.errors import (
    DiagnosticCooldownError,
    DuplicateEventError,
    InvalidInputError,
    NotFoundError,
    ProgressCoreError,
    StorageError,
)
from progress_core.core.levels import (
    DEFAULT_LEVELS,
    LevelDefinition,
    LevelInfo,
    LevelTable,
    level_for,
)

__all__ = [
    "Clock",
    "FixedClock",
    "ProgressCoreError",
    "InvalidInputError",
    "DiagnosticCooldownError",
    "NotFoundError",
    "StorageError",
    "DuplicateEventError",
    "DEFAULT_LEVELS",
    "LevelDefinition",
    "LevelInfo",
    "LevelTable",
    "level_for",
]
