"""Shared test fixtures for backend tests."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from catalyst.core.database import enforce_foreign_keys, get_session
from catalyst.core.errors import UpstreamFailure
from catalyst.services.llm.base import BaseLLMProvider

# In-memory SQLite with StaticPool so all connections (including threads) share one DB
test_engine = enforce_foreign_keys(create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
))


def get_test_session():
    with Session(test_engine) as session:
        yield session


class FakeProvider(BaseLLMProvider):
    """Records prompts and answers with a canned reply or a failure."""

    name = "fake"

    def __init__(self, reply: str = "Hello from assistant"):
        self.reply = reply
        self.error: Exception | None = None
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

    def fail_with_status(self, status: int) -> None:
        self.error = UpstreamFailure(f"Upstream returned HTTP {status}")


@pytest.fixture(autouse=True)
def setup_test_db():
    """Create all tables before each test, drop after."""
    import catalyst.models  # noqa: F401 - register models
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def db():
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def fake_llm():
    return FakeProvider()


@pytest.fixture
def client(fake_llm):
    """FastAPI TestClient with the database and LLM provider patched."""
    with (
        patch("catalyst.core.database.engine", test_engine),
        patch("catalyst.main.get_llm_provider", return_value=fake_llm),
    ):
        from catalyst.main import app

        app.dependency_overrides[get_session] = get_test_session
        app.state.rate_limits.reset()

        with TestClient(app) as c:
            yield c

        app.dependency_overrides.clear()
        app.state.rate_limits.reset()


def register(client, username="alice", email=None, password="secret1"):
    return client.post(
        "/api/register",
        json={"username": username, "email": email or f"{username}@x.com", "password": password},
    )


@pytest.fixture
def make_client(client):
    """Factory for extra clients with their own cookie jars (other users)."""
    clients = []

    def _make():
        from catalyst.main import app
        c = TestClient(app)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()


@pytest.fixture
def alice(client):
    """The default client, registered and logged in as alice."""
    assert register(client).status_code == 200
    return client
