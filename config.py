"""
Configuration settings for the progress-core library.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///progress_core.db",
        description="SQLAlchemy connection string (SQLite or PostgreSQL)",
    )

    # ========================================
    # Clock
    # ========================================
    timezone: str = Field(
        default="America/Sao_Paulo",
        description="IANA zone that defines calendar days for streaks, goals and cooldowns",
    )

    # ========================================
    # Achievements
    # ========================================
    achievements_file: str | None = Field(
        default=None,
        description="Path to an achievement catalogue YAML (None uses the bundled catalogue)",
    )

    # ========================================
    # Diagnostic Scoring
    # ========================================
    diagnostic_cooldown_days: int = Field(
        default=30,
        description="Minimum calendar days between two diagnostic submissions",
    )
    diagnostic_base_score: int = Field(
        default=400,
        description="Diagnostic score at 0% accuracy before clamping",
    )
    diagnostic_accuracy_slope: int = Field(
        default=5,
        description="Diagnostic points per accuracy percentage point",
    )
    diagnostic_min_score: int = Field(default=300, description="Diagnostic score floor")
    diagnostic_max_score: int = Field(default=900, description="Diagnostic score ceiling")

    # ========================================
    # Exam Scoring (simulated tests)
    # ========================================
    exam_base_score: int = Field(default=400, description="Exam score before any correct answer")
    exam_easy_weight: int = Field(default=15, description="Exam points per correct easy question")
    exam_medium_weight: int = Field(default=35, description="Exam points per correct medium question")
    exam_hard_weight: int = Field(default=50, description="Exam points per correct hard question")
    exam_min_score: int = Field(default=400, description="Exam score floor")
    exam_max_score: int = Field(default=900, description="Exam score ceiling")
    consistency_penalty_threshold: float = Field(
        default=0.30,
        description="Penalty applies when hard accuracy exceeds easy accuracy by more than this",
    )
    consistency_penalty_points: int = Field(
        default=30,
        description="Points removed by the consistency penalty",
    )

    # ========================================
    # XP Rewards
    # ========================================
    xp_question_easy: int = Field(default=5, description="XP for a correct easy question")
    xp_question_medium: int = Field(default=10, description="XP for a correct medium question")
    xp_question_hard: int = Field(default=15, description="XP for a correct hard question")
    xp_battle_hit: int = Field(default=20, description="XP per correct answer in a battle")
    xp_battle_perfect_bonus: int = Field(default=50, description="Bonus XP for a perfect battle")
    xp_exercise_complete: int = Field(default=30, description="XP for completing an exercise list")

    # ========================================
    # Daily Goals
    # ========================================
    goal_daily_xp: int = Field(default=50, description="Default daily XP target")
    goal_daily_questions: int = Field(default=10, description="Default daily question target")

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def get_scoring_config(self) -> dict[str, Any]:
        """Get estimator constants grouped by mode."""
        return {
            "diagnostic": {
                "base": self.diagnostic_base_score,
                "accuracy_slope": self.diagnostic_accuracy_slope,
                "min_score": self.diagnostic_min_score,
                "max_score": self.diagnostic_max_score,
            },
            "exam": {
                "base": self.exam_base_score,
                "tier_weights": {
                    "easy": self.exam_easy_weight,
                    "medium": self.exam_medium_weight,
                    "hard": self.exam_hard_weight,
                },
                "min_score": self.exam_min_score,
                "max_score": self.exam_max_score,
                "penalty_threshold": self.consistency_penalty_threshold,
                "penalty_points": self.consistency_penalty_points,
            },
        }

    def get_xp_rates(self) -> dict[str, int]:
        """Get XP reward amounts per activity."""
        return {
            "question_easy": self.xp_question_easy,
            "question_medium": self.xp_question_medium,
            "question_hard": self.xp_question_hard,
            "battle_hit": self.xp_battle_hit,
            "battle_perfect_bonus": self.xp_battle_perfect_bonus,
            "exercise_complete": self.xp_exercise_complete,
        }

    def get_goal_defaults(self) -> dict[str, int]:
        """Get default daily goal targets for new users."""
        return {
            "daily_xp": self.goal_daily_xp,
            "daily_questions": self.goal_daily_questions,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
