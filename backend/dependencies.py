"""
Dependency injection providers for FastAPI.

Resolves the authenticated user from the bearer token and guards routes by
role. Application errors raised here are turned into 401/403 responses by
the exception handlers registered in main.py.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from constants import UserRole
from database import get_db
from exceptions import AuthenticationError, PermissionDeniedError
from models import User
from services.auth_service import AuthService
from services.event_broadcaster import EventBroadcaster
from utils.logging_utils import set_logging_context

bearer_scheme = HTTPBearer(auto_error=False)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Get the user behind the bearer token, or None when no token was sent."""
    if credentials is None or not credentials.credentials:
        return None
    user = AuthService(db).authenticate_token(credentials.credentials)
    set_logging_context(user_id=user.id)
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """
    Require an authenticated user.

    Raises:
        AuthenticationError: No token, or the token is invalid/expired
    """
    if user is None:
        raise AuthenticationError("No token, authorization denied")
    return user


def require_roles(*roles: UserRole):
    """
    Build a dependency that admits only users holding one of the roles.

    Example:
        @router.get("/overview")
        def overview(admin: User = Depends(require_roles(UserRole.ADMIN))):
            ...
    """
    allowed = {role.value if isinstance(role, UserRole) else role for role in roles}

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise PermissionDeniedError("Access denied", required_roles=sorted(allowed))
        return user

    return dependency


require_admin = require_roles(UserRole.ADMIN)
require_homeowner = require_roles(UserRole.HOMEOWNER)
require_company_admin = require_roles(UserRole.COMPANY_ADMIN)
require_professional = require_roles(UserRole.PROFESSIONAL)
require_provider = require_roles(*UserRole.providers())


def get_event_broadcaster() -> EventBroadcaster:
    """Per-request realtime event buffer, flushed by the route after commit."""
    return EventBroadcaster()
