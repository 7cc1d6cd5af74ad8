"""
Typed failures raised by the progress core.

Callers distinguish validation problems (bad input, nothing was written)
from storage problems (the transaction was rolled back) by class.
"""

from __future__ import annotations

from datetime import date


class ProgressCoreError(Exception):
    """Base class for every error raised by progress_core."""


class InvalidInputError(ProgressCoreError):
    """Raised when an argument is rejected before any write happens."""


class DiagnosticCooldownError(InvalidInputError):
    """Raised when a diagnostic is submitted before the cooldown elapsed."""

    def __init__(self, user_id: str, available_on: date):
        self.user_id = user_id
        self.available_on = available_on
        super().__init__(
            f"Diagnostic for user {user_id} is only available again on {available_on.isoformat()}"
        )


class NotFoundError(ProgressCoreError):
    """Raised when a referenced record does not exist."""


class StorageError(ProgressCoreError):
    """Raised when the record store fails during an operation."""


class DuplicateEventError(StorageError):
    """Raised when a keyed XP event was already recorded for the user."""

    def __init__(self, user_id: str, event_key: str):
        self.user_id = user_id
        self.event_key = event_key
        super().__init__(f"XP event '{event_key}' was already granted to user {user_id}")
