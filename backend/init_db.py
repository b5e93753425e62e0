from database import engine, Base, SessionLocal
from config import app_config
import models  # noqa: F401  registers every table on Base.metadata
import logging

logger = logging.getLogger(__name__)


def _seed_admin():
    """Create the admin account named by ADMIN_EMAIL / ADMIN_PASSWORD, if configured."""
    if not (app_config.ADMIN_EMAIL and app_config.ADMIN_PASSWORD):
        logger.debug("No admin seed credentials configured")
        return

    from services.auth_service import AuthService

    db = SessionLocal()
    try:
        AuthService(db).ensure_admin(app_config.ADMIN_EMAIL, app_config.ADMIN_PASSWORD)
    finally:
        db.close()


def init_database():
    """Create all tables and the seed admin account"""
    Base.metadata.create_all(bind=engine)
    _seed_admin()
    logger.info("✅ Database initialized successfully")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_database()
