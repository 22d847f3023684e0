"""Pytest configuration and fixtures."""

import os

# Settings are read once at import time, so the environment must be ready first
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ["ENVIRONMENT"] = "development"

from collections import deque
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_llm_client
from app.db.base import Base
from app.db.session import create_engine_for, get_db, make_session_factory
from app.main import app
from app.services.llm_client import LLMReply
from app.services.s3 import StoredFile, get_attachment_storage

TEST_PASSWORD = "correct horse battery staple"


class FakeLLM:
    """
    Stand-in for the AI collaborator.

    Queue replies with `generate_replies` / `completions`; an Exception in a
    queue is raised instead of returned. Every call is recorded.
    """

    def __init__(self):
        self.generate_replies: deque = deque()
        self.completions: deque = deque()
        self.generate_calls: list[dict] = []
        self.complete_calls: list[str] = []

    async def generate(
        self,
        system_prompt,
        history,
        message,
        attachments=None,
        *,
        web_search=False,
        extended_reasoning=False,
    ):
        self.generate_calls.append({
            "system_prompt": system_prompt,
            "history": list(history),
            "message": message,
            "attachments": list(attachments or []),
            "web_search": web_search,
            "extended_reasoning": extended_reasoning,
        })
        reply = self.generate_replies.popleft() if self.generate_replies else LLMReply(text="Happy to help!")
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def complete(self, prompt, *, max_tokens=None):
        self.complete_calls.append(prompt)
        # "NULL" is the no-change answer to a profile update check
        reply = self.completions.popleft() if self.completions else "NULL"
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeStorage:
    """In-memory attachment storage."""

    def __init__(self):
        self.files: dict[str, StoredFile] = {}

    async def put_file(self, name: str, data: bytes, content_type: str) -> None:
        self.files[name] = StoredFile(data=data, content_type=content_type)

    async def get_file(self, name: str) -> StoredFile | None:
        return self.files.get(name)


@pytest.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine_for("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for calling services directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def make_client(session_factory, fake_llm, fake_storage):
    """Factory for HTTP clients sharing one app and database but keeping separate cookies."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    app.dependency_overrides[get_attachment_storage] = lambda: fake_storage

    def _make() -> AsyncClient:
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
async def client(make_client) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    async with make_client() as ac:
        yield ac


async def register(client: AsyncClient, username: str, password: str = TEST_PASSWORD, **extra) -> dict:
    response = await client.post("/api/register", json={"username": username, "password": password, **extra})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def auth_client(make_client) -> AsyncGenerator[AsyncClient, None]:
    """Client logged in as "alice"."""
    async with make_client() as ac:
        await register(ac, "alice")
        yield ac


@pytest.fixture
async def other_client(make_client) -> AsyncGenerator[AsyncClient, None]:
    """Client logged in as "mallory", a second user."""
    async with make_client() as ac:
        await register(ac, "mallory")
        yield ac
