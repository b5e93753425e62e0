"""
Structured Logging Utilities

Configures the service's log handlers and provides helpers for adding
request-scoped context (user, operation) to log messages.
"""

import inspect
import logging
import sys
from contextvars import ContextVar
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE_NAME = 'buildmarket.log'
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5

# Context variable for request-scoped logging context
_logging_context: ContextVar[Dict[str, Any]] = ContextVar('logging_context', default={})

# Keyword arguments picked up by log_operation as context
CONTEXT_KEYS = ("user_id", "requirement_id", "quote_id", "inquiry_id", "conversation_id", "company_id")


def configure_logging(log_dir: Path, level: str = "INFO") -> Optional[Path]:
    """
    Configure root logging with a rotating file handler and stdout.

    Falls back to stdout only when the log directory cannot be created.

    Returns:
        Path of the log file, or None when logging to stdout only
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file = None
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / LOG_FILE_NAME
        handlers.append(RotatingFileHandler(log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT))
    except OSError as e:
        print(f"Log directory {log_dir} unavailable ({e}); logging to stdout only", file=sys.stderr)
        log_file = None

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    return log_file


class StructuredLogger:
    """
    Wrapper around standard logger that adds structured context.

    Usage:
        logger = StructuredLogger(__name__)
        logger.info("Quote accepted", extra={"quote_id": quote.id})
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _add_context(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Merge the ContextVar context with per-call extras"""
        context = _logging_context.get().copy()
        if extra:
            context.update(extra)
        return context

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.logger.debug(message, extra=self._add_context(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.logger.info(message, extra=self._add_context(extra))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.logger.warning(message, extra=self._add_context(extra))

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        self.logger.error(message, extra=self._add_context(extra), exc_info=exc_info)


def set_logging_context(**kwargs):
    """
    Set logging context for the current request/operation.

    This context will be automatically included in all log messages
    emitted through StructuredLogger within the current context.

    Example:
        set_logging_context(user_id=user.id, operation="login")
    """
    context = _logging_context.get().copy()
    context.update(kwargs)
    _logging_context.set(context)


def _operation_context(operation_name: str, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    context = {"operation": operation_name}
    for key in CONTEXT_KEYS:
        if key in kwargs:
            context[key] = kwargs[key]
    return context


def log_operation(operation_name: str):
    """
    Decorator to log operation start/end with structured context.

    Identifiers passed as keyword arguments (user_id, quote_id, ...) are
    added to the log record.

    Example:
        @log_operation("select_quote")
        def select_quote(self, requirement_id: str, quote_id: str, user_id: str):
            ...
    """
    def decorator(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            logger = StructuredLogger(func.__module__)
            context = _operation_context(operation_name, kwargs)
            logger.debug(f"Starting {operation_name}", extra=context)
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                context["error"] = str(e)
                context["error_type"] = type(e).__name__
                logger.warning(f"Failed {operation_name}: {e}", extra=context)
                raise
            logger.info(f"Completed {operation_name}", extra=context)
            return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            logger = StructuredLogger(func.__module__)
            context = _operation_context(operation_name, kwargs)
            logger.debug(f"Starting {operation_name}", extra=context)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                context["error"] = str(e)
                context["error_type"] = type(e).__name__
                logger.warning(f"Failed {operation_name}: {e}", extra=context)
                raise
            logger.info(f"Completed {operation_name}", extra=context)
            return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
