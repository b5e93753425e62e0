import os
import sys
import tempfile
from pathlib import Path

# Add backend directory to Python path FIRST
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Configuration is read at import time; point it away from the user's home
_scratch = Path(tempfile.mkdtemp(prefix="buildmarket-tests-"))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-12345")
os.environ.setdefault("UPLOAD_DIR", str(_scratch / "uploads"))
os.environ.setdefault("LOG_DIR", str(_scratch / "logs"))

# Now import after path is set
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import app_config
from database import get_db, get_session_factory
from models import Base, User
from services.auth_service import create_access_token, hash_password
from services.websocket import manager, TypingTracker

TEST_PASSWORD = "password123"


def _enable_foreign_keys(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def engine():
    """In-memory database shared by the test and the app (one connection)"""
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create in-memory database for testing"""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(app_config, "UPLOAD_DIR", path)
    return path


@pytest.fixture
def app(session_factory, upload_dir):
    from main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    manager.typing = TypingTracker()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """HTTP client against the app; lifespan (logging, real database) is not started"""
    return TestClient(app)


@pytest.fixture
def make_user(db_session):
    """Factory creating users directly in the database"""
    counter = {"n": 0}

    def _make_user(role: str = "homeowner", name: str = None, email: str = None,
                   professional_type: str = None, **fields) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"{role.replace('_', ' ').title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            password_hash=hash_password(TEST_PASSWORD),
            role=role,
            professional_type=professional_type,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def auth():
    """Build bearer headers for a user: auth(user)"""
    return auth_headers


@pytest.fixture
def homeowner(make_user):
    return make_user("homeowner", name="Asha Homeowner")


@pytest.fixture
def company_admin(make_user):
    return make_user("company_admin", name="Ravi Builder")


@pytest.fixture
def professional(make_user):
    return make_user("professional", name="Meera Architect", professional_type="architect")


@pytest.fixture
def admin(make_user):
    return make_user("admin", name="Site Admin")


@pytest.fixture
def company(client, company_admin):
    """A company owned by company_admin, created through the API"""
    response = client.post(
        "/api/companies",
        json={"name": "Sharma Constructions", "description": "Villas and apartments", "services": ["construction"]},
        headers=auth_headers(company_admin),
    )
    assert response.status_code == 201, response.text
    return response.json()
