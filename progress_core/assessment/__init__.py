"""
Assessment Module.

Provides:
- Answer outcomes and difficulty tiers
- The TRI-like proficiency estimator (diagnostic and exam modes)
- Result persistence and the diagnostic cooldown
"""

from progress_core.assessment.outcomes import AnswerOutcome, Difficulty
from progress_core.assessment.proficiency import (
    ProficiencyResult,
    ScoringMode,
    ScoringProfile,
    TierStats,
    estimate,
)
from progress_core.assessment.service import AssessmentService

__all__ = [
    "AnswerOutcome",
    "Difficulty",
    "ProficiencyResult",
    "ScoringMode",
    "ScoringProfile",
    "TierStats",
    "estimate",
    "AssessmentService",
]
