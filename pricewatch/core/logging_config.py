"""
Logging Configuration

Features:
- Structured JSON logging for production
- Scan cycle correlation via context variables
- Performance logging helpers
"""

import logging
import sys
import uuid
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from contextvars import ContextVar
import json
import traceback

from pricewatch.core.config import settings

# Context variables for correlation
CYCLE_ID_VAR: ContextVar[Optional[str]] = ContextVar('cycle_id', default=None)
REQUEST_ID_VAR: ContextVar[Optional[str]] = ContextVar('request_id', default=None)

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'message', 'exc_info', 'exc_text',
    'stack_info', 'taskName', 'cycle_id', 'request_id', 'service_name',
    'service_version', 'environment'
}

class ContextualFilter(logging.Filter):
    """Add contextual information to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.cycle_id = CYCLE_ID_VAR.get()
        record.request_id = REQUEST_ID_VAR.get()

        record.service_name = settings.project_name
        record.service_version = settings.version
        record.environment = settings.environment.value

        return True

class JSONFormatter(logging.Formatter):
    """Production JSON formatter with structured output."""

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line_number": record.lineno,
            "thread_id": record.thread,
        }

        if hasattr(record, 'service_name'):
            log_entry["service"] = {
                "name": record.service_name,
                "version": record.service_version,
                "environment": record.environment
            }

        if getattr(record, 'cycle_id', None):
            log_entry["cycle_id"] = record.cycle_id

        if getattr(record, 'request_id', None):
            log_entry["request_id"] = record.request_id

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        if self.include_extra:
            extra_fields = {}
            for key, value in record.__dict__.items():
                if key in _RESERVED_ATTRS:
                    continue
                try:
                    json.dumps(value)
                    extra_fields[key] = value
                except (TypeError, ValueError):
                    extra_fields[key] = str(value)

            if extra_fields:
                log_entry["extra"] = extra_fields

        return json.dumps(log_entry, ensure_ascii=False)

class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if getattr(record, 'cycle_id', None):
            formatted = f"[cycle {record.cycle_id}] {formatted}"
        elif getattr(record, 'request_id', None):
            formatted = f"[{record.request_id}] {formatted}"

        return formatted

def setup_logging() -> None:
    """Configure the logging system."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stdout)

    if settings.observability.log_format == "json" or settings.is_production:
        formatter = JSONFormatter(include_extra=True)
    else:
        formatter = DevelopmentFormatter()

    console_handler.setFormatter(formatter)
    console_handler.addFilter(ContextualFilter())
    console_handler.setLevel(getattr(logging, settings.observability.log_level.value))

    root_logger.addHandler(console_handler)

    configure_third_party_loggers()

    logger = logging.getLogger(__name__)
    logger.info(
        "Logging system initialized",
        extra={
            "log_level": settings.observability.log_level.value,
            "log_format": settings.observability.log_format,
            "environment": settings.environment.value
        }
    )

def configure_third_party_loggers() -> None:
    """Configure third-party library loggers."""
    if settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
    else:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)

    logging.getLogger("kombu").setLevel(logging.WARNING)
    logging.getLogger("amqp").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if not settings.debug:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

def get_logger(name: str) -> logging.Logger:
    """Get configured logger instance."""
    return logging.getLogger(name)

class LoggingContext:
    """Context manager binding a correlation id to every log line."""

    def __init__(self, cycle_id: Optional[str] = None, request_id: Optional[str] = None):
        self.cycle_id = cycle_id or uuid.uuid4().hex[:12]
        self.request_id = request_id
        self._cycle_token = None
        self._request_token = None

    def __enter__(self) -> 'LoggingContext':
        self._cycle_token = CYCLE_ID_VAR.set(self.cycle_id)
        if self.request_id:
            self._request_token = REQUEST_ID_VAR.set(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._cycle_token:
            CYCLE_ID_VAR.reset(self._cycle_token)
        if self._request_token:
            REQUEST_ID_VAR.reset(self._request_token)

def log_exception(logger: logging.Logger, exc: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log exception with full context."""
    extra_context = dict(context or {})
    extra_context.update({
        "exception_type": type(exc).__name__,
        "exception_message": str(exc),
        "traceback": traceback.format_exc()
    })

    logger.error(
        f"Exception occurred: {type(exc).__name__}: {exc}",
        extra=extra_context,
        exc_info=True
    )

def log_performance(
    logger: logging.Logger,
    operation: str,
    duration_ms: float,
    success: bool = True,
    **context
) -> None:
    """Log performance metrics."""
    level = logging.INFO if success else logging.WARNING

    logger.log(
        level,
        f"Performance: {operation}",
        extra={
            "operation": operation,
            "duration_ms": duration_ms,
            "success": success,
            "performance_metric": True,
            **context
        }
    )

__all__ = [
    'setup_logging',
    'get_logger',
    'LoggingContext',
    'log_exception',
    'log_performance',
    'CYCLE_ID_VAR',
    'REQUEST_ID_VAR'
]
