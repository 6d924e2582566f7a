"""
Standardized exception hierarchy for habitquest
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

import psycopg
import psycopg.errors

logger = logging.getLogger(__name__)


class HabitQuestError(Exception):
    """
    Base exception for all habitquest errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise HabitQuestError(
            message="Failed to record completion",
            user_id="user-1",
            operation="complete_habit",
            context={"habit_id": "abc-123"}
        )
    """

    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(
                self.log_level,
                f"{self.__class__.__name__}: {self.message}",
                extra=log_data,
                exc_info=self.cause,
            )
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(HabitQuestError):
    """
    Raised when user input fails validation

    Examples:
    - Empty habit name
    - Negative XP award

    Example:
        raise ValidationError(
            message="Habit name must not be empty",
            field="name",
            value="",
            user_id="user-1"
        )
    """

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        kwargs.setdefault("user_message", f"Invalid {field}: {message}" if field else message)
        super().__init__(
            message=message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(HabitQuestError):
    """
    Base class for database-related errors
    """
    pass


class ConnectionError(DatabaseError):
    """Database connection failed"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble connecting to the database. Please try again in a moment.",
            **kwargs
        )


class QueryError(DatabaseError):
    """Database query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        kwargs.setdefault("context", {"query": query})
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """Requested record does not exist or does not belong to the caller"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


# ==========================================
# Completion Errors
# ==========================================

class DuplicateCompletionError(HabitQuestError):
    """Habit was already completed on this calendar day"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str = "Habit already completed today",
        habit_id: Optional[str] = None,
        day: Optional[Any] = None,
        **kwargs
    ):
        self.habit_id = habit_id
        self.day = day
        kwargs.setdefault("context", {"habit_id": habit_id, "day": str(day) if day else None})
        super().__init__(
            message=message,
            user_message="You've already completed this habit today.",
            **kwargs
        )


class ConstraintViolationError(DuplicateCompletionError):
    """
    A storage uniqueness constraint rejected the write

    Raised when a concurrent request won the race between the duplicate
    check and the insert. Callers treat it exactly like DuplicateCompletionError.
    """

    def __init__(self, message: str = "Uniqueness constraint violated", constraint: Optional[str] = None, **kwargs):
        self.constraint = constraint
        kwargs.setdefault("context", {"constraint": constraint})
        super().__init__(message=message, **kwargs)


# ==========================================
# Challenge Errors
# ==========================================

class ChallengeError(HabitQuestError):
    """Base class for challenge membership errors"""

    log_level = logging.WARNING

    def __init__(self, message: str, challenge_id: Optional[str] = None, user_message: Optional[str] = None, **kwargs):
        self.challenge_id = challenge_id
        kwargs.setdefault("context", {"challenge_id": challenge_id})
        super().__init__(message=message, user_message=user_message or message, **kwargs)


class ChallengeAlreadyJoinedError(ChallengeError):
    """User has already joined this challenge"""

    def __init__(self, message: str = "Already joined this challenge", **kwargs):
        super().__init__(message=message, user_message="You've already joined this challenge.", **kwargs)


class ChallengeAlreadyCompletedError(ChallengeError):
    """Completed challenges are terminal and cannot be abandoned"""

    def __init__(self, message: str = "Cannot abandon completed challenge", **kwargs):
        super().__init__(message=message, user_message="This challenge is already completed.", **kwargs)


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(HabitQuestError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_database_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> HabitQuestError:
    """
    Wrap psycopg exceptions into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate HabitQuestError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_database_exception(
                e,
                operation="create_completion",
                user_id="user-1",
            )
    """
    if isinstance(error, psycopg.errors.UniqueViolation):
        constraint = getattr(getattr(error, "diag", None), "constraint_name", None)
        return ConstraintViolationError(
            message=f"{operation} rejected by uniqueness constraint",
            constraint=constraint,
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    return HabitQuestError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
