"""
Error Notebook.

Keeps the questions a user got wrong so they can be drilled again. There is
at most one entry per (user, question), enforced by a unique constraint and
written with a keyed upsert: a new miss on a known question updates the
stored answer and puts the entry back to pending.

Lifecycle:
    absent -> pending            (record_wrong_answer)
    pending <-> reviewed         (mark_reviewed / mark_pending / toggle_reviewed)
    pending|reviewed -> absent   (remove, or a correct re-attempt)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import uuid4

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from progress_core.core.clock import Clock
from progress_core.core.errors import InvalidInputError, NotFoundError, StorageError
from progress_core.db.database import upsert
from progress_core.db.models import ErrorNotebookEntry


class NotebookFilter(str, Enum):
    """Entry filters accepted by `list_entries`."""

    ALL = "all"
    PENDING = "pending"
    REVIEWED = "reviewed"

    @classmethod
    def parse(cls, value: NotebookFilter | str) -> NotebookFilter:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(f.value for f in cls)
            raise InvalidInputError(f"Unknown notebook filter '{value}' (expected one of: {valid})") from None


@dataclass(frozen=True)
class NotebookSummary:
    total: int
    pending: int
    reviewed: int


class ErrorNotebook:
    """Per-user collection of missed questions."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or Clock()

    def record_wrong_answer(
        self,
        user_id: str,
        question_id: str,
        user_answer: str | None,
        origin: str | None = None,
    ) -> ErrorNotebookEntry:
        """
        Add a missed question, or refresh the existing entry.

        An existing entry keeps its id and `created_at`, takes the latest
        answer and goes back to pending.

        Args:
            user_id: Learner identifier
            question_id: Question that was missed
            user_answer: The answer given (None when the user skipped)
            origin: Activity where the miss happened ('quiz', 'exam', ...)
        """
        if not question_id:
            raise InvalidInputError("question_id must be non-empty")

        now = self.clock.now()
        update = {"user_answer": user_answer, "reviewed": False, "updated_at": now}
        if origin is not None:
            update["origin"] = origin

        try:
            upsert(
                self.session,
                ErrorNotebookEntry,
                key=["user_id", "question_id"],
                values={
                    "id": uuid4(),
                    "user_id": user_id,
                    "question_id": question_id,
                    "user_answer": user_answer,
                    "reviewed": False,
                    "origin": origin,
                    "created_at": now,
                    "updated_at": now,
                },
                update=update,
            )
            entry = self._get(user_id, question_id)
        except SQLAlchemyError as e:
            logger.error(f"Notebook write failed for {user_id}/{question_id}: {e}")
            raise StorageError(f"Could not record wrong answer for {user_id}/{question_id}") from e

        logger.debug(f"Notebook entry {question_id} for {user_id} is pending")
        return entry

    def mark_reviewed(self, user_id: str, question_id: str) -> ErrorNotebookEntry:
        return self._set_reviewed(user_id, question_id, True)

    def mark_pending(self, user_id: str, question_id: str) -> ErrorNotebookEntry:
        return self._set_reviewed(user_id, question_id, False)

    def toggle_reviewed(self, user_id: str, question_id: str) -> ErrorNotebookEntry:
        entry = self.get_entry(user_id, question_id)
        return self._set_reviewed(user_id, question_id, not entry.reviewed)

    def remove(self, user_id: str, question_id: str) -> None:
        """Delete an entry; NotFoundError when there is none."""
        try:
            result = self.session.execute(
                delete(ErrorNotebookEntry).where(
                    ErrorNotebookEntry.user_id == user_id,
                    ErrorNotebookEntry.question_id == question_id,
                )
            )
        except SQLAlchemyError as e:
            raise StorageError(f"Could not remove notebook entry {user_id}/{question_id}") from e
        if result.rowcount == 0:
            raise NotFoundError(f"No notebook entry for question {question_id} of {user_id}")
        logger.info(f"Removed notebook entry {question_id} for {user_id}")

    def resolve_reattempt(self, user_id: str, question_id: str, correct: bool) -> bool:
        """
        Apply a re-attempt made while reviewing the notebook.

        A correct answer removes the entry; a wrong one leaves it pending.

        Returns:
            True when the entry was removed
        """
        if not correct:
            if self._get(user_id, question_id) is not None:
                self.mark_pending(user_id, question_id)
            return False
        try:
            self.remove(user_id, question_id)
        except NotFoundError:
            logger.debug(f"Re-attempt of {question_id} by {user_id} had no notebook entry")
            return False
        return True

    def get_entry(self, user_id: str, question_id: str) -> ErrorNotebookEntry:
        entry = self._get(user_id, question_id)
        if entry is None:
            raise NotFoundError(f"No notebook entry for question {question_id} of {user_id}")
        return entry

    def list_entries(self, user_id: str, status: NotebookFilter | str = NotebookFilter.ALL) -> list[ErrorNotebookEntry]:
        """Entries for `user_id`, newest first."""
        status = NotebookFilter.parse(status)
        stmt = select(ErrorNotebookEntry).where(ErrorNotebookEntry.user_id == user_id)
        if status is NotebookFilter.PENDING:
            stmt = stmt.where(ErrorNotebookEntry.reviewed.is_(False))
        elif status is NotebookFilter.REVIEWED:
            stmt = stmt.where(ErrorNotebookEntry.reviewed.is_(True))
        stmt = stmt.order_by(
            ErrorNotebookEntry.created_at.desc(), ErrorNotebookEntry.question_id
        ).execution_options(populate_existing=True)
        return list(self.session.execute(stmt).scalars())

    def summary(self, user_id: str) -> NotebookSummary:
        stmt = (
            select(ErrorNotebookEntry.reviewed, func.count())
            .where(ErrorNotebookEntry.user_id == user_id)
            .group_by(ErrorNotebookEntry.reviewed)
        )
        counts = {bool(reviewed): n for reviewed, n in self.session.execute(stmt)}
        pending = counts.get(False, 0)
        reviewed = counts.get(True, 0)
        return NotebookSummary(total=pending + reviewed, pending=pending, reviewed=reviewed)

    def _set_reviewed(self, user_id: str, question_id: str, reviewed: bool) -> ErrorNotebookEntry:
        entry = self.get_entry(user_id, question_id)
        try:
            entry.reviewed = reviewed
            entry.updated_at = self.clock.now()
            self.session.flush()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not update notebook entry {user_id}/{question_id}") from e
        logger.debug(f"Notebook entry {question_id} for {user_id} -> {'reviewed' if reviewed else 'pending'}")
        return entry

    def _get(self, user_id: str, question_id: str) -> ErrorNotebookEntry | None:
        stmt = (
            select(ErrorNotebookEntry)
            .where(ErrorNotebookEntry.user_id == user_id, ErrorNotebookEntry.question_id == question_id)
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()
