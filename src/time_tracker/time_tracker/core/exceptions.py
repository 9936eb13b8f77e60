from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class TimeTrackingError(DomainError):
    """A time-tracking command issued out of sequence.

    Each subclass carries a stable ``code`` and the HTTP status the API layer
    answers with. These are expected user errors, not system failures.
    """

    code = "time_tracking_error"
    status_code = 400
    default_message = "Time tracking operation not allowed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class AlreadyOpen(TimeTrackingError):
    code = "already_open"
    default_message = "Already clocked in"


class NotClockedIn(TimeTrackingError):
    code = "not_clocked_in"
    default_message = "You need to clock in first"


class AlreadyOnBreak(TimeTrackingError):
    code = "already_on_break"
    default_message = "You are already on break"


class NoBreakOpen(TimeTrackingError):
    code = "no_break_open"
    default_message = "You need to start a break first"


class OnLunch(TimeTrackingError):
    code = "on_lunch"
    default_message = "You are currently on lunch. End lunch before starting break."


class NoLunchOpen(TimeTrackingError):
    code = "no_lunch_open"
    default_message = "You need to start lunch first"


class LunchAlreadyEnded(TimeTrackingError):
    code = "lunch_already_ended"
    default_message = "Lunch already ended"


class InvalidTask(TimeTrackingError):
    code = "invalid_task"
    status_code = 422
    default_message = "Invalid task"


class NoRunningTask(TimeTrackingError):
    code = "no_running_task"
    default_message = "No running task"


class TransientStorageError(Exception):
    """Raised by repositories on constraint violations, deadlocks and lock timeouts.

    The transaction it interrupted has been rolled back and may be retried.
    """


class PersistenceError(Exception):
    """Storage kept failing after the retry budget was spent."""
