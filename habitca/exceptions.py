"""
Error taxonomy for the habitca progression engine

Every error carries the operation it interrupted, a context dict and a message
that can be shown to the end user. Errors log themselves when created, so
callers only need to decide whether to propagate them.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class HabitcaError(Exception):
    """
    Base class of all habitca errors

    Subclasses override `default_user_message` for the text shown to the user
    and `log_level` when the error is the caller's fault rather than ours.

    Example:
        raise HabitcaError(
            message="Failed to save completion",
            operation="upsert_completion_record",
            context={"habit_id": 3, "date": "2026-10-19"}
        )
    """

    default_user_message = "Something went wrong. Please try again."
    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.context = dict(context or {})
        self.cause = cause
        self.user_message = user_message or self.default_user_message
        self.request_id = request_id or uuid4().hex
        self.timestamp = datetime.now(timezone.utc)

        self._log()

    def _log(self) -> None:
        # 'message' and 'context' would clash with LogRecord attributes
        extra = {
            "error_type": type(self).__name__,
            "error_message": self.message,
            "error_context": self.context,
            "operation": self.operation,
            "request_id": self.request_id,
        }
        if self.cause is not None:
            extra["cause"] = repr(self.cause)

        logger.log(
            self.log_level,
            f"{type(self).__name__}: {self.message}",
            extra=extra,
            exc_info=self.cause,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for callers that report errors as data"""
        data = {
            "error": type(self).__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.operation:
            data["operation"] = self.operation
        return data


# ==========================================
# Caller Input
# ==========================================

class ValidationError(HabitcaError):
    """
    Caller input was rejected before anything was written

    Covers empty titles, malformed HH:MM times, unknown activity granularities,
    non-positive lookbacks and session intensities outside 1..5.
    """

    log_level = logging.WARNING

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, **kwargs):
        self.field = field
        self.value = value
        kwargs.setdefault("user_message", f"Invalid {field}: {message}" if field else message)
        super().__init__(message, context={"field": field, "value": value}, **kwargs)


# ==========================================
# Storage
# ==========================================

class StorageError(HabitcaError):
    """
    A failure the storage collaborator detected itself.

    Driver exceptions are not wrapped in this; they reach the caller as raised.
    """

    default_user_message = "Your habit data could not be read or saved. Please try again."


class ConnectionError(StorageError):
    """No usable database connection"""

    default_user_message = "We're having trouble reaching your habit data. Please try again in a moment."

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(message, **kwargs)


class QueryError(StorageError):
    """A statement ran but did not produce the row it must produce"""

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        self.query = query
        context = kwargs.pop("context", {})
        context["query"] = query
        super().__init__(message, context=context, **kwargs)


class RecordNotFoundError(StorageError):
    """An operation needs a record that does not exist"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Any = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        kwargs.setdefault("user_message", f"{record_type or 'Record'} not found.")
        super().__init__(
            message,
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class InvariantViolationError(StorageError):
    """
    Stored data is in a state single-writer use never produces,
    such as two ledger rows for the same (habit, date).
    """

    default_user_message = "Your habit history is in an unexpected state."

    def __init__(self, message: str, invariant: Optional[str] = None, **kwargs):
        self.invariant = invariant
        context = kwargs.pop("context", {})
        context["invariant"] = invariant
        super().__init__(message, context=context, **kwargs)


# ==========================================
# Completion Ledger
# ==========================================

class AlreadyCompletedError(HabitcaError):
    """complete() on a (habit, date) that is already completed"""

    default_user_message = "This habit is already checked off for that day."
    log_level = logging.WARNING

    def __init__(self, habit_id: int, day: Any, **kwargs):
        self.habit_id = habit_id
        self.day = day
        kwargs.setdefault("operation", "complete")
        super().__init__(
            f"Habit {habit_id} is already completed for {day}",
            context={"habit_id": habit_id, "date": str(day)},
            **kwargs
        )


# ==========================================
# Time Tracking
# ==========================================

class SessionError(HabitcaError):
    """A timer session cannot be started or stopped"""

    default_user_message = "That timer session can't be updated."
    log_level = logging.WARNING

    def __init__(self, message: str, session_id: Optional[int] = None, **kwargs):
        self.session_id = session_id
        super().__init__(message, context={"session_id": session_id}, **kwargs)
