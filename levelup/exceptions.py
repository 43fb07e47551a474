"""
levelup.exceptions — Progression Error Hierarchy
=================================================

Every failure the progression engine can surface derives from
:class:`ProgressionError`.  Each error carries the user and operation it
happened in, plus a short ``user_message`` the game UI can show as-is.

Taxonomy:

* :class:`ProgressNotFound` — no progress row for the user; fatal, not retried.
* :class:`StoreWriteFailure` — a persistence error aborted the call.
* :class:`InvariantViolation` — a bounded loop hit its hard cap.
* :class:`InvalidEventPayload` — payload fields of the wrong shape.

A duplicate achievement/title insert is *not* an error and has no class
here; the unlock ledger swallows it.
"""

from __future__ import annotations

DEFAULT_USER_MESSAGE = "Couldn't save progress, try again."


class ProgressionError(Exception):
    """Base class for all progression engine errors."""

    def __init__(
        self,
        message: str,
        *,
        user_id: str | None = None,
        operation: str | None = None,
        user_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.operation = operation
        self.user_message = user_message or DEFAULT_USER_MESSAGE

    def __str__(self) -> str:
        return self.message


class ProgressNotFound(ProgressionError):
    """No UserProgress row exists for the requested user."""

    def __init__(self, user_id: str, *, operation: str | None = None) -> None:
        super().__init__(
            f"Progress not found for user {user_id}",
            user_id=user_id,
            operation=operation,
            user_message="Player profile not found.",
        )


class StoreWriteFailure(ProgressionError):
    """A database read/write failed; the whole call was rolled back."""


class InvariantViolation(ProgressionError):
    """An internal loop bound was exceeded.  Should never happen."""


class InvalidEventPayload(ProgressionError):
    """The payload for a known event type has fields of the wrong type."""
