# Test Configuration
import os
import sys
from pathlib import Path

from cryptography.fernet import Fernet

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Settings are read at import time, so the environment is prepared first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ["AI_ENABLED"] = "false"
os.environ.pop("BOOTSTRAP_ADMIN_USERNAME", None)
os.environ.pop("BOOTSTRAP_ADMIN_PASSWORD", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, text  # noqa: E402

from querypilot.database import Base, AppSessionLocal, app_engine  # noqa: E402
from querypilot.main import app  # noqa: E402
from querypilot.connections import connection_manager  # noqa: E402
from querypilot.core.auth import create_access_token, ensure_admin_user, register_user  # noqa: E402
from querypilot.models import DatabaseType  # noqa: E402
from querypilot.schemas import ConnectionCreate  # noqa: E402
from querypilot.services.ai_service import get_sql_generator  # noqa: E402
from querypilot.services.connection_service import connection_service  # noqa: E402

API = "/api/v1"


class FakeSqlGenerator:
    """Stands in for the model: returns canned SQL and records what it was asked."""

    def __init__(self, sql="SELECT id, name FROM customers ORDER BY id"):
        self.sql = sql
        self.error = None
        self.calls = []

    async def generate_sql(self, question, connection):
        self.calls.append((question, connection.id))
        if self.error is not None:
            raise self.error
        return self.sql


@pytest.fixture(autouse=True)
def app_database():
    """Fresh application tables for every test."""
    Base.metadata.drop_all(bind=app_engine)
    Base.metadata.create_all(bind=app_engine)
    yield
    connection_manager.close_all()
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = AppSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_user(db):
    return ensure_admin_user(db, "admin", "admin-password")


@pytest.fixture
def analyst_user(db):
    return register_user(db, "alice", "alice-password")


@pytest.fixture
def other_analyst(db):
    return register_user(db, "bob", "bob-password")


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def analyst_headers(analyst_user):
    return auth_headers(analyst_user)


@pytest.fixture
def target_db_url(tmp_path):
    """A small SQLite database standing in for a registered target."""
    path = tmp_path / "shop.db"
    url = f"sqlite:///{path}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE customers ("
            "id INTEGER PRIMARY KEY, name VARCHAR(100) NOT NULL, balance NUMERIC(10, 2), active BOOLEAN)"
        ))
        conn.execute(text(
            "INSERT INTO customers (id, name, balance, active) VALUES "
            "(1, 'Ada', 10.50, 1), (2, 'Grace', NULL, 0), (3, 'Linus', 3.25, 1)"
        ))
    engine.dispose()
    return url


@pytest.fixture
def target_connection(db, admin_user, target_db_url):
    return connection_service.add_connection(
        db,
        ConnectionCreate(name="shop", type=DatabaseType.SQLITE, url=target_db_url),
        admin_user
    )


@pytest.fixture
def fake_generator():
    generator = FakeSqlGenerator()
    app.dependency_overrides[get_sql_generator] = lambda: generator
    return generator
