"""
Exception Hierarchy

Structured errors with codes, categories and context, shared by the
engine, the repositories, the broker adapter and the API layer.
"""

from typing import Any, Dict, Optional, List
from enum import Enum
from datetime import datetime, timezone
import traceback

class ErrorCategory(str, Enum):
    """High-level error categories for monitoring."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    EXTERNAL_SERVICE = "external_service"
    DATABASE = "database"
    BUSINESS_LOGIC = "business_logic"
    SYSTEM = "system"

class ErrorSeverity(str, Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

# ======================== BASE EXCEPTION ========================

class PriceWatchError(Exception):
    """
    Base exception for all PriceWatch errors.

    Carries an error code, category and severity for log aggregation,
    plus a user-facing message for API responses.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "GENERIC_ERROR",
        category: ErrorCategory = ErrorCategory.SYSTEM,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.category = category
        self.severity = severity
        self.context = context or {}
        self.user_message = user_message or message
        self.suggestions = suggestions or []
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)
        self.traceback_str = traceback.format_exc() if cause else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "user_message": self.user_message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.timestamp.isoformat(),
                "context": self.context,
                "suggestions": self.suggestions,
                "cause": str(self.cause) if self.cause else None
            }
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"category='{self.category.value}', "
            f"severity='{self.severity.value}'"
            f")"
        )

# ======================== VALIDATION / RESOURCES ========================

class ValidationError(PriceWatchError):
    """Data validation errors."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if field:
            context['field'] = field
        if value is not None:
            context['invalid_value'] = str(value)

        super().__init__(
            message=message,
            error_code=kwargs.pop('error_code', 'VALIDATION_ERROR'),
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            context=context,
            user_message=kwargs.pop('user_message', f"Invalid input: {message}"),
            **kwargs
        )

class ResourceNotFoundError(PriceWatchError):
    """Resource not found errors."""

    def __init__(self, resource_type: str, identifier: Any, **kwargs):
        super().__init__(
            message=f"{resource_type} not found: {identifier}",
            error_code=kwargs.pop('error_code', 'RESOURCE_NOT_FOUND'),
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.LOW,
            context={"resource_type": resource_type, "identifier": str(identifier)},
            user_message=f"The requested {resource_type.lower()} was not found.",
            suggestions=[f"Check that the {resource_type.lower()} ID is correct"],
            **kwargs
        )

# ======================== EXTERNAL SERVICE EXCEPTIONS ========================

class ExternalServiceError(PriceWatchError):
    """External collaborator errors."""

    def __init__(
        self,
        service_name: str,
        operation: str,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        context.update({
            "service": service_name,
            "operation": operation,
        })

        super().__init__(
            message=kwargs.pop('message', f"{service_name} service error during {operation}"),
            error_code=kwargs.pop('error_code', 'EXTERNAL_SERVICE_ERROR'),
            category=ErrorCategory.EXTERNAL_SERVICE,
            severity=kwargs.pop('severity', ErrorSeverity.HIGH),
            context=context,
            user_message=kwargs.pop('user_message', "External service is temporarily unavailable."),
            suggestions=kwargs.pop('suggestions', ["Please try again later"]),
            **kwargs
        )

class BrokerPublishError(ExternalServiceError):
    """Publishing a change event to the message broker failed."""

    def __init__(self, queue_name: str, item_id: Any = None, **kwargs):
        super().__init__(
            service_name="Message Broker",
            operation=f"publish to {queue_name}",
            error_code="BROKER_PUBLISH_FAILED",
            context={**kwargs.pop('context', {}), "queue_name": queue_name, "item_id": item_id},
            **kwargs
        )

class WorkerUnavailableError(ExternalServiceError):
    """The monitoring worker did not answer a control request in time."""

    def __init__(self, operation: str, **kwargs):
        super().__init__(
            service_name="Monitoring Worker",
            operation=operation,
            error_code="WORKER_UNAVAILABLE",
            user_message="The monitoring worker is not responding.",
            suggestions=["Check that the monitoring worker is running"],
            **kwargs
        )

# ======================== DATABASE EXCEPTIONS ========================

class DatabaseError(PriceWatchError):
    """Database operation errors."""

    def __init__(self, operation: str, **kwargs):
        super().__init__(
            message=kwargs.pop('message', f"Database error during {operation}"),
            error_code=kwargs.pop('error_code', 'DATABASE_ERROR'),
            category=ErrorCategory.DATABASE,
            severity=ErrorSeverity.HIGH,
            context={**kwargs.pop('context', {}), "operation": operation},
            user_message="A database error occurred. Please try again.",
            suggestions=["Contact support if the issue persists"],
            **kwargs
        )

class CatalogQueryError(DatabaseError):
    """Catalog store could not answer a query."""

    def __init__(self, query: str, **kwargs):
        super().__init__(
            operation=query,
            message=f"Catalog query failed: {query}",
            error_code="CATALOG_QUERY_FAILED",
            **kwargs
        )

# ======================== ENGINE EXCEPTIONS ========================

class ItemProcessingError(PriceWatchError):
    """A single catalog item could not be diffed."""

    def __init__(self, item_id: Any, reason: str, **kwargs):
        super().__init__(
            message=f"Failed to process item {item_id}: {reason}",
            error_code="ITEM_PROCESSING_FAILED",
            category=ErrorCategory.BUSINESS_LOGIC,
            severity=ErrorSeverity.LOW,
            context={"item_id": str(item_id)},
            **kwargs
        )

class ConfigurationError(PriceWatchError):
    """Configuration errors."""

    def __init__(self, setting: str, **kwargs):
        super().__init__(
            message=f"Configuration error: {setting}",
            error_code="CONFIGURATION_ERROR",
            category=ErrorCategory.SYSTEM,
            severity=ErrorSeverity.CRITICAL,
            context={"setting": setting},
            user_message="System configuration error.",
            suggestions=["Check environment variables and configuration files"],
            **kwargs
        )

# ======================== UTILITY FUNCTIONS ========================

def handle_exception(
    exc: Exception,
    logger,
    default_error_code: str = "UNEXPECTED_ERROR",
    context: Optional[Dict[str, Any]] = None
) -> PriceWatchError:
    """
    Convert any exception to a PriceWatchError with proper logging.

    Args:
        exc: The original exception
        logger: Logger instance
        default_error_code: Error code if not a PriceWatchError
        context: Additional context

    Returns:
        PriceWatchError instance
    """
    if isinstance(exc, PriceWatchError):
        logger.error(
            exc.message,
            extra={
                "error_code": exc.error_code,
                "category": exc.category.value,
                "severity": exc.severity.value,
                "context": {**exc.context, **(context or {})}
            },
            exc_info=True
        )
        return exc

    wrapped = PriceWatchError(
        message=f"Unexpected error: {exc}",
        error_code=default_error_code,
        context=context,
        cause=exc
    )
    logger.error(
        wrapped.message,
        extra={
            "error_code": wrapped.error_code,
            "exception_type": type(exc).__name__,
            "context": context or {}
        },
        exc_info=True
    )
    return wrapped

def create_error_response(error: PriceWatchError) -> Dict[str, Any]:
    """Create standardized error response for APIs."""
    return {
        "success": False,
        "error": {
            "code": error.error_code,
            "message": error.user_message,
            "category": error.category.value,
            "timestamp": error.timestamp.isoformat(),
            "suggestions": error.suggestions
        }
    }

__all__ = [
    'PriceWatchError',
    'ErrorCategory',
    'ErrorSeverity',
    'ValidationError',
    'ResourceNotFoundError',
    'ExternalServiceError',
    'BrokerPublishError',
    'WorkerUnavailableError',
    'DatabaseError',
    'CatalogQueryError',
    'ItemProcessingError',
    'ConfigurationError',
    'handle_exception',
    'create_error_response'
]
