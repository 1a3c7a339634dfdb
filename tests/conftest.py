# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from taskmanager.config import Settings
from taskmanager.database import Database
from taskmanager.main import create_app
from taskmanager.repositories import SqlAlchemyTaskRepository, SqlAlchemyUserRepository
from taskmanager.services import AuthService, TaskService
from taskmanager.tokens import TokenManager

TEST_SECRET = "test-secret"


@pytest.fixture()
def settings():
    # In-memory SQLite shared across threads (Database switches to StaticPool)
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite+pysqlite:///:memory:",
        JWT_SECRET=TEST_SECRET,
    )


@pytest.fixture()
def database(settings):
    db = Database(settings.database_url)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def token_manager():
    return TokenManager(TEST_SECRET)


# ---------- Service-level fixtures ----------

@pytest.fixture()
def session(database):
    with database.session() as db:
        yield db


@pytest.fixture()
def auth_service(session, token_manager):
    return AuthService(SqlAlchemyUserRepository(session), token_manager)


@pytest.fixture()
def task_service(session):
    return TaskService(SqlAlchemyTaskRepository(session))


@pytest.fixture()
def alice(auth_service):
    return auth_service.register("alice@example.com", "Alice", "secret123")


@pytest.fixture()
def bob(auth_service):
    return auth_service.register("bob@example.com", "Bob", "hunter22")


# ---------- HTTP fixtures ----------

@pytest.fixture()
def app(settings, database):
    return create_app(settings, database=database)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def create_user_and_token(client):
    def _make(email: str, password: str = "StrongPass1", name: str = "Test User"):
        r = client.post("/api/auth/register", json={
            "email": email,
            "name": name,
            "password": password,
        })
        assert r.status_code == 201, r.text

        r = client.post("/api/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        token = r.json()["access_token"]
        return {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture()
def owner_headers(create_user_and_token):
    return create_user_and_token("owner@example.com")


@pytest.fixture()
def other_headers(create_user_and_token):
    return create_user_and_token("other@example.com")


@pytest.fixture()
def create_task(client, owner_headers):
    def _make(title="Buy milk", desc="2L milk", priority=0, headers=None):
        h = headers or owner_headers
        r = client.post("/api/tasks", json={
            "title": title,
            "description": desc,
            "priority": priority,
        }, headers=h)
        assert r.status_code == 201, r.text
        return r.json()
    return _make
