import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from notekeeper.api.auth import Identity
from notekeeper.api.database import get_db
from notekeeper.api.main import app
from notekeeper.api.models import Base
from notekeeper.api.users import CredentialStore


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory database shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return CredentialStore(db)


@pytest.fixture
def ann(store):
    return Identity.from_user(store.create("Ann", "ann@x.com", "secret1"))


@pytest.fixture
def bob(store):
    return Identity.from_user(store.create("Bob", "bob@x.com", "secret2"))


# =============================================================================
# HTTP client
# =============================================================================


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user through the API and return its bearer headers."""
    def _register(name="Ann", email="ann@x.com", password="secret1"):
        response = client.post(
            "/auth/register", json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['data']['token']}"}

    return _register
