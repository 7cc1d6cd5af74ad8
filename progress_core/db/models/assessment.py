"""
Assessment and Review Models.

SQLAlchemy models for:
- Persisted proficiency results (diagnostic and simulated exams)
- Error notebook entries (missed questions awaiting review)
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, Date, DateTime, Index, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ProficiencyResultRecord(Base):
    """
    One scored submission. Immutable once written.

    A retake inserts a new row; `taken_on` is the calendar day of the
    submission under the clock's time zone and drives the diagnostic
    cooldown.
    """

    __tablename__ = "proficiency_results"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    mode: Mapped[str] = mapped_column(Text, nullable=False)  # 'diagnostic', 'exam'
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    classification: Mapped[str] = mapped_column(Text, nullable=False)
    accuracy_pct: Mapped[int] = mapped_column(Integer, nullable=False)
    penalty_applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    breakdown: Mapped[dict] = mapped_column(JSON, nullable=False)
    session_id: Mapped[str | None] = mapped_column(Text)
    taken_on: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_proficiency_user_mode", "user_id", "mode", "taken_on"),
    )

    def __repr__(self) -> str:
        return f"<ProficiencyResultRecord user={self.user_id} mode={self.mode} score={self.score}>"


class ErrorNotebookEntry(Base):
    """
    A missed question kept for review.

    Unique per (user, question): a later miss updates the row in place.
    `reviewed` is the only status flag (False = pending).
    """

    __tablename__ = "error_notebook"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    question_id: Mapped[str] = mapped_column(Text, nullable=False)
    user_answer: Mapped[str | None] = mapped_column(Text)
    reviewed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    origin: Mapped[str | None] = mapped_column(Text)  # 'quiz', 'battle', 'exam', 'diagnostic', 'review'
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="uq_error_notebook_user_question"),
        Index("idx_error_notebook_user_reviewed", "user_id", "reviewed"),
    )

    def __repr__(self) -> str:
        status = "reviewed" if self.reviewed else "pending"
        return f"<ErrorNotebookEntry user={self.user_id} question={self.question_id} {status}>"
