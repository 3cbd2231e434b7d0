# ruff: noqa: E402
# File: /tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from inline_db.crud.snapshots import snapshot_cache
from inline_db.db.base_class import Base
from inline_db.main import app
from inline_db.security import create_access_token

TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _fresh_cache():
    snapshot_cache.clear()
    yield
    snapshot_cache.clear()


@pytest.fixture()
def db_session():
    connection = engine.connect()
    trans = connection.begin()
    try:
        session = TestingSessionLocal(bind=connection)
        yield session
    finally:
        session.close()
        trans.rollback()
        connection.close()


@pytest.fixture()
def client(db_session):
    from inline_db.db.session import get_db  # late import to avoid circulars

    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_headers(role: str = "Member", org: str = "org-1", user: str = "user-1") -> dict:
    token = create_access_token(user_id=user, organization_id=org, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers():
    return make_headers()


@pytest.fixture()
def auth():
    """Factory: auth(role="Admin", org="org-2") -> headers."""
    return make_headers


@pytest.fixture()
def make_database(client, headers):
    """Factory: make_database(columns=None, name="Tracker", **extra) -> created database JSON."""

    def _make(columns=None, name="Tracker", headers=headers, **extra):
        payload = {"name": name, **extra}
        if columns is not None:
            payload["columns"] = columns
        r = client.post("/databases", json=payload, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture()
def make_entry(client, headers):
    def _make(database_id, properties, headers=headers):
        r = client.post(f"/databases/{database_id}/entries", json={"properties": properties}, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _make
