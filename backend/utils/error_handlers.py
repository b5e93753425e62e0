"""
Error handling decorators and utilities for API endpoints.

Application exceptions raised by services are converted to HTTPException in
one place so every router answers with the same status codes and messages.
"""

from functools import wraps
from typing import Callable
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
import inspect
import logging

from constants import HTTPStatus
from exceptions import (
    ValidationError,
    AuthenticationError,
    PermissionDeniedError,
    NotFoundError,
    ConflictError,
    UploadError,
    ConfigurationError,
    DatabaseError,
    ApplicationError
)

logger = logging.getLogger(__name__)

# Client errors: logged as warnings, message passed through unchanged
CLIENT_ERROR_STATUS = (
    (ValidationError, HTTPStatus.BAD_REQUEST),
    (AuthenticationError, HTTPStatus.UNAUTHORIZED),
    (PermissionDeniedError, HTTPStatus.FORBIDDEN),
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (ConflictError, HTTPStatus.CONFLICT),
)


def status_for(error: ApplicationError) -> int:
    """Get the HTTP status code an application error maps to"""
    if isinstance(error, UploadError):
        return HTTPStatus.REQUEST_ENTITY_TOO_LARGE if error.too_large else HTTPStatus.BAD_REQUEST
    for error_type, status_code in CLIENT_ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return HTTPStatus.INTERNAL_SERVER_ERROR


def to_http_exception(operation_name: str, error: Exception) -> HTTPException:
    """
    Convert an exception raised inside an endpoint to an HTTPException.

    Client errors keep their own message. Server errors are logged with a
    traceback and answered with a message naming the failed operation.
    """
    if isinstance(error, SQLAlchemyError):
        wrapped = DatabaseError(operation_name, type(error).__name__)
        wrapped.__cause__ = error
        error = wrapped

    if isinstance(error, ApplicationError):
        status_code = status_for(error)
        if status_code < HTTPStatus.INTERNAL_SERVER_ERROR:
            logger.warning(f"{operation_name} - {type(error).__name__}: {error.message}")
            return HTTPException(status_code=status_code, detail=error.message)

        if isinstance(error, ConfigurationError):
            detail = f"Server misconfigured: {error.message}"
        elif isinstance(error, DatabaseError):
            detail = f"Database operation failed: {error.message}"
        else:
            detail = f"{operation_name} failed: {error.message}"
        logger.error(f"{operation_name} - {type(error).__name__}: {error.message}", exc_info=error)
        return HTTPException(status_code=status_code, detail=detail)

    logger.error(f"{operation_name} - Unexpected error: {error}", exc_info=error)
    return HTTPException(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        detail=f"{operation_name} failed. Please check server logs or contact support."
    )


def handle_api_errors(operation_name: str):
    """
    Decorator to handle common API errors consistently across endpoints.

    This decorator catches application exceptions and converts them
    to appropriate HTTPException responses with consistent error messages.

    Args:
        operation_name: Human-readable name of the operation (e.g., "Quote submission")

    Returns:
        Decorated function that handles errors uniformly

    Example:
        @router.post("")
        @handle_api_errors("Quote submission")
        def submit_quote(...):
            return service.submit(...)
    """
    def decorator(func: Callable):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                # Re-raise HTTPException as-is to preserve status code and detail
                raise
            except Exception as e:
                raise to_http_exception(operation_name, e) from e

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as e:
                raise to_http_exception(operation_name, e) from e

        # Return appropriate wrapper based on whether the function is async
        if inspect.iscoroutinefunction(func):
            return async_wrapper
        else:
            return sync_wrapper

    return decorator
