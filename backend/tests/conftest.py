import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from mealplan import main
from mealplan.config import settings
from mealplan.storage import db as db_module
from mealplan.storage.models import UserProfile

TEST_TOKEN = "test-token"


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="patched_db")
def patched_db_fixture(monkeypatch, engine):
    """Route every db.get_session() to the in-memory engine; one reader thread for SQLite."""

    def _get_session_override():
        return Session(engine)

    monkeypatch.setattr(db_module, "engine", engine)
    monkeypatch.setattr(db_module, "get_session", _get_session_override)
    monkeypatch.setattr(settings, "constraint_fetch_max_workers", 1)
    monkeypatch.setattr(settings, "enable_image_generation", False)
    return engine


@pytest.fixture(name="user")
def user_fixture(session):
    user = UserProfile(api_token=TEST_TOKEN, display_name="Test", people_count=2)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(user):
    return {"Authorization": f"Bearer {TEST_TOKEN}"}


@pytest.fixture(name="client")
def client_fixture(monkeypatch, patched_db):
    monkeypatch.setattr(main, "configure_dspy", lambda: None)
    monkeypatch.setattr(main, "create_db_and_tables", lambda: None)

    client = TestClient(main.app)
    return client
