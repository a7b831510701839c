"""Shared fixtures: in-memory database, fake identity provider, API client."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from quizform.auth import get_identity_provider
from quizform.db import enable_sqlite_foreign_keys, get_db
from quizform.exceptions import UnauthorizedError
from quizform.main import app
from quizform.models.base import Base
from quizform.models.form import Form
from quizform.repositories.form import FormRepository
from quizform.services.identity import Identity

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ALICE = Identity(subject_id="user-alice", email="alice@example.com")
BOB = Identity(subject_id="user-bob", email="bob@example.com")
CAROL = Identity(subject_id="user-carol", email="carol@example.com")

TOKENS = {
    "alice-token": ALICE,
    "bob-token": BOB,
    "carol-token": CAROL,
}

CLOZE_QUESTION: dict[str, Any] = {
    "type": "cloze",
    "id": "q-cloze",
    "title": "Capitals",
    "text": "[b1] is the capital of [b2].",
    "blanks": [
        {"id": "b1", "correct_answer": "Paris"},
        {"id": "b2", "correct_answer": "France"},
    ],
    "options": ["Paris", "France", "Spain", "Rome"],
}

COMPREHENSION_QUESTION: dict[str, Any] = {
    "type": "comprehension",
    "id": "q-comp",
    "title": "Reading",
    "passage": "The Seine flows through Paris.",
    "sub_questions": [
        {
            "id": "s1",
            "question": "Which river flows through Paris?",
            "options": ["Thames", "Danube", "Seine"],
            "correct_option_index": 2,
        },
    ],
}

CATEGORIZE_QUESTION: dict[str, Any] = {
    "type": "categorize",
    "id": "q-cat",
    "title": "Sort these",
    "items": ["cat", "oak"],
    "categories": ["animal", "plant"],
}


def auth(token: str) -> dict[str, str]:
    """Build an Authorization header for a test token."""
    return {"Authorization": f"Bearer {token}"}


class StaticIdentityProvider:
    """Identity provider backed by a fixed token table."""

    def __init__(self, tokens: dict[str, Identity]) -> None:
        self.tokens = tokens

    async def verify(self, token: str) -> Identity:
        identity = self.tokens.get(token)
        if identity is None:
            raise UnauthorizedError("Invalid or expired token")
        return identity


@pytest.fixture
async def test_engine():
    """Create an async SQLite engine for testing."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    enable_sqlite_foreign_keys(engine.sync_engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(test_engine):
    """Create the session factory."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def api_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with test database and identities."""

    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_identity_provider] = lambda: StaticIdentityProvider(
        TOKENS
    )
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


async def create_form(
    session_factory,
    questions: list[dict[str, Any]],
    is_published: bool = True,
    owner_id: str | None = ALICE.subject_id,
) -> Form:
    """Persist a form in its own committed transaction."""
    async with session_factory() as session:
        form = await FormRepository.create(
            session=session,
            title="Geography quiz",
            questions=questions,
            owner_id=owner_id,
            is_published=is_published,
        )
        await session.commit()
        return form


@pytest.fixture
async def published_form(session_factory) -> Form:
    """A published form with one cloze and one categorize question."""
    return await create_form(session_factory, [CLOZE_QUESTION, CATEGORIZE_QUESTION])


@pytest.fixture
async def draft_form(session_factory) -> Form:
    """A form that has not been published yet."""
    return await create_form(
        session_factory, [CLOZE_QUESTION], is_published=False
    )
