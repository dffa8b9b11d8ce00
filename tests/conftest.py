import os
import shutil
import tempfile

# Settings are read once at import time, so configure them first
UPLOAD_DIR = tempfile.mkdtemp(prefix="marketplace-test-uploads-")
ADMIN_CODE = "test-admin-code"

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_REGISTRATION_CODE"] = ADMIN_CODE
os.environ["UPLOAD_DIR"] = UPLOAD_DIR

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace.main import app
from marketplace.database import Base, get_db
from marketplace.utils.cache import cache_service


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


class InMemoryRedis:
    """Minimal stand-in for the Redis commands the cache uses."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += self.store.pop(key, None) is not None
        return removed


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Keep the product cache in memory so tests never need a Redis server."""
    client = InMemoryRedis()
    monkeypatch.setattr(cache_service, "client", client)
    return client


@pytest.fixture(scope="session", autouse=True)
def upload_dir():
    yield UPLOAD_DIR
    shutil.rmtree(UPLOAD_DIR, ignore_errors=True)


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    # Create tables
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, email, password="secret123", full_name="Test User"):
    return client.post(
        "/api/auth/register",
        json={"fullName": full_name, "email": email, "password": password}
    )


def register_admin(client, email="admin@x.com", password="adminpass", full_name="Admin"):
    return client.post(
        "/api/auth/admin/register",
        json={"fullName": full_name, "email": email, "password": password, "adminCode": ADMIN_CODE}
    )


def create_product(client, token, **overrides):
    fields = {
        "name": "Desk Lamp",
        "description": "Adjustable LED lamp",
        "price": "10",
        "category": "Home & Garden",
        "stock": "5",
    }
    fields.update(overrides)
    return client.post("/api/products", data=fields, headers=auth_headers(token))


@pytest.fixture
def user_token(client):
    """Token of a regular user registered as a@x.com."""
    return register(client, "a@x.com").json()["data"]["token"]


@pytest.fixture
def other_token(client):
    """Token of a second regular user registered as b@x.com."""
    return register(client, "b@x.com").json()["data"]["token"]


@pytest.fixture
def admin_token(client):
    return register_admin(client).json()["data"]["token"]
