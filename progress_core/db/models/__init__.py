# SQLAlchemy models
from .assessment import (
    ErrorNotebookEntry,
    ProficiencyResultRecord,
)
from .base import Base
from .gamification import (
    AchievementUnlock,
    DailyProgress,
    UserGoal,
    UserStats,
    XPHistoryEntry,
)

__all__ = [
    "Base",
    "UserStats",
    "XPHistoryEntry",
    "AchievementUnlock",
    "UserGoal",
    "DailyProgress",
    "ProficiencyResultRecord",
    "ErrorNotebookEntry",
]
