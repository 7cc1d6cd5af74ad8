"""
Gamification Module.

Provides:
- XP ledger and level lookups
- Consecutive-day streaks
- Achievement catalogue and engine
- Daily goals
"""

from progress_core.gamification.achievements import (
    AchievementCatalogue,
    AchievementDefinition,
    AchievementEngine,
    NotificationQueue,
)
from progress_core.gamification.daily_goals import DailyGoals, DailyStatus
from progress_core.gamification.stats import StatsSnapshot
from progress_core.gamification.streak import StreakResult, StreakTracker
from progress_core.gamification.xp_ledger import XPGrantResult, XPLedger, XPRates

__all__ = [
    "AchievementCatalogue",
    "AchievementDefinition",
    "AchievementEngine",
    "NotificationQueue",
    "DailyGoals",
    "DailyStatus",
    "StatsSnapshot",
    "StreakResult",
    "StreakTracker",
    "XPGrantResult",
    "XPLedger",
    "XPRates",
]
