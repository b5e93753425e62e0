"""
Authentication Service

Handles account registration, login, password hashing (Argon2id) and
JWT issuance/verification (HS256).
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
import logging

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import app_config
from constants import UserRole, ProfessionalType
from exceptions import AuthenticationError, ConflictError, ValidationError
from models import User
from repositories import UserRepository
from utils.logging_utils import log_operation

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    """Check a password against its Argon2 hash; malformed hashes never verify."""
    try:
        return _hasher.verify(password_hash, password)
    except (VerifyMismatchError, InvalidHashError, VerificationError):
        return False


def create_access_token(user: User, expires_minutes: Optional[int] = None) -> str:
    """
    Issue a signed access token for a user.

    Claims: sub (user id), role, iat, exp.
    """
    now = datetime.now(timezone.utc)
    minutes = app_config.JWT_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    payload = {
        "sub": user.id,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, app_config.JWT_SECRET_KEY, algorithm=app_config.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Validate a token and return the user id it was issued for.

    Raises:
        AuthenticationError: If the token is expired, malformed or has no subject
    """
    try:
        payload = jwt.decode(
            token,
            app_config.JWT_SECRET_KEY,
            algorithms=[app_config.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected token: {e}")
        raise AuthenticationError("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token")
    return user_id


def resolve_role(requested: str) -> Tuple[str, Optional[str]]:
    """
    Map the role chosen at sign-up to (role, professional_type).

    A professional type ('architect', 'contractor', ...) registers a
    professional account of that type. Admin accounts cannot self-register.
    """
    requested = (requested or UserRole.HOMEOWNER.value).strip().lower()
    professional_types = {t.value for t in ProfessionalType}

    if requested == UserRole.ADMIN.value:
        raise ValidationError("Admin accounts cannot be registered", {"role": requested})
    if requested in professional_types:
        return UserRole.PROFESSIONAL.value, requested
    if requested in (UserRole.HOMEOWNER.value, UserRole.COMPANY_ADMIN.value, UserRole.PROFESSIONAL.value):
        return requested, None
    raise ValidationError(f"Unknown role: {requested}", {"role": requested})


class AuthService:
    """Registration and login against the user table."""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)

    @log_operation("register")
    def register(self, name: str, email: str, password: str, role: str,
                 phone: Optional[str] = None, location: Optional[str] = None) -> Tuple[User, str]:
        """
        Create an account and issue its first token.

        Raises:
            ValidationError: Unknown or admin role
            ConflictError: Email already registered
        """
        role, professional_type = resolve_role(role)
        email = email.strip().lower()

        if self.users.email_taken(email):
            raise ConflictError("User already exists with this email", resource="user")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            role=role,
            professional_type=professional_type,
            phone=phone,
            location=location,
        )
        try:
            self.users.create(user)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User already exists with this email", resource="user")

        logger.info(f"👤 Registered {role} account {user.id}")
        return user, create_access_token(user)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Verify credentials and issue a token.

        Unknown email, wrong password and deactivated accounts all answer
        with the same message.
        """
        user = self.users.get_by_email(email)
        if user is None or not verify_password(user.password_hash, password):
            logger.info("Login rejected: bad credentials")
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not user.is_active:
            logger.info(f"Login rejected: account {user.id} is deactivated")
            raise AuthenticationError(INVALID_CREDENTIALS)

        return user, create_access_token(user)

    def authenticate_token(self, token: str) -> User:
        """
        Resolve a bearer token to an active user.

        Raises:
            AuthenticationError: Invalid token, or the user was deleted or deactivated
        """
        user_id = decode_access_token(token)
        user = self.users.get_by_id(user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("User no longer exists")
        return user

    def update_profile(self, user: User, **changes) -> User:
        self.users.update(user, **changes)
        self.db.commit()
        self.db.refresh(user)
        return user

    def ensure_admin(self, email: str, password: str) -> User:
        """Create the seed admin account if it does not exist yet."""
        existing = self.users.get_by_email(email)
        if existing is not None:
            if existing.role != UserRole.ADMIN.value:
                logger.warning(f"⚠️  Seed admin email {email} belongs to a {existing.role} account; leaving it unchanged")
            return existing

        admin = User(
            name="Administrator",
            email=email.strip().lower(),
            password_hash=hash_password(password),
            role=UserRole.ADMIN.value,
            is_verified=True,
        )
        self.users.create(admin)
        self.db.commit()
        logger.info(f"🔑 Seeded admin account {admin.email}")
        return admin
