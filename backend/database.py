from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, declarative_base
from pathlib import Path

from config.app_config import DATABASE_URL

_url = make_url(DATABASE_URL)
IS_SQLITE = _url.get_backend_name() == "sqlite"

if IS_SQLITE and _url.database and _url.database != ":memory:":
    Path(_url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

# Create engine; SQLite needs cross-thread access for the threadpool FastAPI runs sync routes in
engine_kwargs = {
    'echo': False,
    'pool_pre_ping': True,  # Verify connections are alive before using
}
if IS_SQLITE:
    engine_kwargs['connect_args'] = {'check_same_thread': False}
else:
    engine_kwargs.update(pool_size=20, max_overflow=30, pool_recycle=3600)

engine = create_engine(DATABASE_URL, **engine_kwargs)


def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=5000")  # Wait up to 5s for locks instead of failing immediately
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if IS_SQLITE:
    event.listen(engine, "connect", set_sqlite_pragma)

SessionLocal = sessionmaker(bind=engine)
Base = declarative_base()


def get_db():
    """Dependency for FastAPI routes"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Dependency for long-lived handlers (WebSocket) that open a session per event"""
    return SessionLocal
