"""
Utility functions and decorators.
"""

from .error_handlers import handle_api_errors
from .ids import generate_uuid

__all__ = ["handle_api_errors", "generate_uuid"]
