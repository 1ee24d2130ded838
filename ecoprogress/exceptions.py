"""
Standardized exception hierarchy for ecoprogress
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class EcoProgressError(Exception):
    """
    Base exception for all ecoprogress errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise EcoProgressError(
            message="Failed to save goal progress",
            user_id="64b7f0c2",
            operation="update_goal_progress",
            context={"goal_id": "abc-123"}
        )
    """

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
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

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
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(EcoProgressError):
    """
    Raised when caller input fails validation. Nothing has been mutated.

    Examples:
    - Non-numeric goal progress value
    - Achievement criteria missing metric or threshold
    - Empty question for a custom analysis

    Example:
        raise ValidationError(
            message="Progress value must be a number",
            field="value",
            value="ten",
            user_id="64b7f0c2"
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": repr(value), **(kwargs.pop("context", None) or {})},
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(EcoProgressError):
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
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context={"query": query, **(kwargs.pop("context", None) or {})},
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """Requested record does not exist or belongs to another user"""

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
            context={"record_type": record_type, "record_id": record_id, **(kwargs.pop("context", None) or {})},
            **kwargs
        )


# ==========================================
# Progress Engine Errors
# ==========================================

class EvaluationError(EcoProgressError):
    """A single achievement could not be evaluated during a progress check"""

    def __init__(
        self,
        message: str,
        achievement_id: Optional[str] = None,
        metric: Optional[str] = None,
        **kwargs
    ):
        self.achievement_id = achievement_id
        self.metric = metric
        super().__init__(
            message=message,
            user_message="Some achievements could not be updated right now.",
            context={"achievement_id": achievement_id, "metric": metric, **(kwargs.pop("context", None) or {})},
            **kwargs
        )


# ==========================================
# External API Errors
# ==========================================

class ExternalAPIError(EcoProgressError):
    """
    Base class for external API failures
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        kwargs.setdefault(
            "user_message",
            f"We're having trouble connecting to {service or 'an external service'}. Please try again later."
        )
        super().__init__(
            message=message,
            context={"service": service, "status_code": status_code, **(kwargs.pop("context", None) or {})},
            **kwargs
        )


class AdvisorAPIError(ExternalAPIError):
    """Advisory text generator (LLM) error"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            service="Advisory text generator",
            user_message="Personalised advice is unavailable right now. General tips are shown instead.",
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(EcoProgressError):
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
            context={"config_key": config_key, **(kwargs.pop("context", None) or {})},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> EcoProgressError:
    """
    Wrap external exceptions (psycopg, httpx, openai) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate EcoProgressError subclass

    Example:
        try:
            await cur.execute(query, params)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation="save_goal_progress",
                user_id="64b7f0c2",
                context={"goal_id": goal_id}
            )
    """
    # Import here to keep exceptions importable without the driver stack loaded
    import httpx
    import openai
    import psycopg

    if isinstance(error, EcoProgressError):
        return error

    # Database errors
    if isinstance(error, psycopg.OperationalError):
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

    # Advisory generator errors
    elif isinstance(error, openai.APIStatusError):
        return AdvisorAPIError(
            message=f"Advisor API returned error: {error.status_code}",
            status_code=error.status_code,
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, openai.OpenAIError):
        return AdvisorAPIError(
            message=f"Advisor API call failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # HTTP errors
    elif isinstance(error, httpx.TimeoutException):
        return ExternalAPIError(
            message=f"API request timed out: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.HTTPStatusError):
        return ExternalAPIError(
            message=f"API returned error: {error.response.status_code}",
            status_code=error.response.status_code,
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Generic fallback
    else:
        return EcoProgressError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
