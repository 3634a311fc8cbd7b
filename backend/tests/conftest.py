"""
Shared pytest fixtures.

The API runs against a throwaway in-memory SQLite database and a
temporary upload directory.
"""

import os

# Configure before any taxfiler import reads settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taxfiler.core.database import Base, get_db, enable_sqlite_foreign_keys
from taxfiler.main import app
from taxfiler.modules.accounts import services as account_services
from taxfiler.modules.documents.storage import DocumentStore, get_document_store


DEFAULT_PASSWORD = "s3cret-pass"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def document_store(tmp_path):
    store = DocumentStore(tmp_path / "uploads")
    store.ensure_directories()
    return store


@pytest.fixture
def client(session_factory, document_store):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_store] = lambda: document_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Create a user directly through the account service."""
    def _make_user(email="filer@example.com", password=DEFAULT_PASSWORD, first_name="Jane", last_name="Filer"):
        return account_services.register(db_session, email, password, first_name, last_name)
    return _make_user


def login(client, email="filer@example.com", password=DEFAULT_PASSWORD):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client, make_user):
    """Headers for a signed-in default user."""
    make_user()
    return bearer(login(client))
