"""
Custom exception classes for the application.

This module defines domain-specific exceptions that provide better error handling
and clearer error messages throughout the application.
"""


class ApplicationError(Exception):
    """Base exception for all application errors"""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ApplicationError):
    """Raised when there's a configuration issue"""

    def __init__(self, message: str, missing_keys: list[str] | None = None):
        details = {"missing_keys": missing_keys} if missing_keys else {}
        super().__init__(message, details)


class ValidationError(ApplicationError):
    """Raised when validation fails"""

    def __init__(self, message: str, invalid_fields: dict | None = None):
        details = {"invalid_fields": invalid_fields} if invalid_fields else {}
        super().__init__(message, details)


class AuthenticationError(ApplicationError):
    """Raised when a request carries no valid credentials"""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class PermissionDeniedError(ApplicationError):
    """Raised when the authenticated user may not perform an action"""

    def __init__(self, message: str = "Access denied", required_roles: list[str] | None = None):
        details = {"required_roles": required_roles} if required_roles else {}
        super().__init__(message, details)


class NotFoundError(ApplicationError):
    """Raised when a requested resource does not exist"""

    def __init__(self, resource: str, resource_id: str | None = None, message: str | None = None):
        details = {"resource": resource}
        if resource_id:
            details["id"] = resource_id
        super().__init__(message or f"{resource} not found", details)


class ConflictError(ApplicationError):
    """Raised when an action clashes with existing state (duplicates, closed records)"""

    def __init__(self, message: str, resource: str | None = None):
        details = {"resource": resource} if resource else {}
        super().__init__(message, details)


class UploadError(ApplicationError):
    """Raised when an uploaded file is rejected"""

    def __init__(self, filename: str | None, message: str, too_large: bool = False):
        details = {"filename": filename, "too_large": too_large}
        self.too_large = too_large
        super().__init__(message, details)



class DatabaseError(ApplicationError):
    """Raised when a database operation fails"""

    def __init__(self, operation: str, message: str):
        details = {"operation": operation}
        super().__init__(message, details)
