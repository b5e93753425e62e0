"""
Runtime Configuration

Reads the service configuration from environment variables once at import time.

Includes:
- Database, auth, upload and logging locations
- CORS and bind address
- Optional admin seed credentials
- Startup validation for production deployments
"""
import os
import logging
from pathlib import Path

from exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEV_JWT_SECRET = "dev-secret-change-me"

DATA_DIR = Path(os.environ.get("BUILDMARKET_HOME", str(Path.home() / ".buildmarket"))).expanduser()


def _env_int(key: str, default: int) -> int:
    """
    Read an integer environment variable.

    Falls back to the default (with a warning) when the value is not a number.
    """
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {key}={raw!r}, using default {default}")
        return default


def _env_list(key: str, default: str) -> list[str]:
    """Read a comma separated environment variable into a list of non-empty items."""
    raw = os.environ.get(key, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


APP_ENV = os.environ.get("APP_ENV", "development").lower()

DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{DATA_DIR / 'marketplace.db'}")

JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", DEV_JWT_SECRET)
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = _env_int("JWT_EXPIRE_MINUTES", 7 * 24 * 60)

UPLOAD_DIR = Path(os.environ.get("UPLOAD_DIR", str(DATA_DIR / "uploads"))).expanduser()
MAX_UPLOAD_MB = _env_int("MAX_UPLOAD_MB", 10)

LOG_DIR = Path(os.environ.get("LOG_DIR", str(DATA_DIR / "logs"))).expanduser()
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = _env_list("CORS_ORIGINS", "*")

ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD")

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = _env_int("PORT", 5000)


def is_production() -> bool:
    """Check whether the service runs with APP_ENV=production."""
    return APP_ENV == "production"


def validate() -> None:
    """
    Validate configuration before the service starts accepting requests.

    Raises:
        ConfigurationError: If production is configured with development defaults
    """
    missing = []
    if is_production() and JWT_SECRET_KEY == DEV_JWT_SECRET:
        missing.append("JWT_SECRET_KEY")
    if bool(ADMIN_EMAIL) != bool(ADMIN_PASSWORD):
        missing.append("ADMIN_PASSWORD" if ADMIN_EMAIL else "ADMIN_EMAIL")

    if missing:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}",
            missing_keys=missing,
        )

    if JWT_SECRET_KEY == DEV_JWT_SECRET:
        logger.warning("⚠️  Using development JWT secret - set JWT_SECRET_KEY before deploying")
