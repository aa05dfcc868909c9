"""
Conduit Articles Backend — Test Configuration (conftest.py)
============================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test that touches the database gets a fresh in-memory SQLite
       database (aiosqlite + StaticPool), so tests never share state.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for pure error-path tests
    ├── db_engine → session_factory → db_session
    ├── users: alice, bob and carol committed to the test database
    ├── create_article: factory that commits an article for a given author
    ├── auth_headers: factory building an Authorization header for a user
    └── test_client: HTTPX AsyncClient wired to the app with the test database
"""

import os

# Settings are read at import time, so the environment must be in place
# before anything from conduit is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import conduit.models  # noqa: F401
from conduit.database import Base, get_db_session
from conduit.models import Article, ArticleTag, Favorite, Follow, User
from conduit.security import create_access_token


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session (no real DB needed).

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = None
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Seed Data
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def users(session_factory) -> Dict[str, User]:
    """alice, bob and carol; alice follows bob."""
    seeded = {
        "alice": User(username="alice", email="alice@example.com", bio="Writes about Python"),
        "bob": User(username="bob", email="bob@example.com", image="https://example.com/bob.png"),
        "carol": User(username="carol", email="carol@example.com"),
    }
    async with session_factory() as session:
        session.add_all(seeded.values())
        await session.flush()
        session.add(Follow(follower_id=seeded["alice"].id, followee_id=seeded["bob"].id))
        await session.commit()
    return seeded


@pytest.fixture
def create_article(session_factory):
    """
    Factory fixture committing an article.

    Usage:
        article = await create_article(users["alice"], "My Slug", tags=["python"])
    """
    counter = {"n": 0}

    async def _create(
        author: User,
        title: str,
        tags: Iterable[str] = (),
        slug: Optional[str] = None,
        favorited_by: Iterable[User] = (),
    ) -> Article:
        counter["n"] += 1
        created = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=counter["n"])
        article = Article(
            slug=slug or title.lower().replace(" ", "-"),
            title=title,
            description=f"About {title}",
            body=f"Body of {title}",
            author_id=author.id,
            created_at=created,
            updated_at=created,
            tags=[ArticleTag(name=name) for name in tags],
        )
        async with session_factory() as session:
            session.add(article)
            await session.flush()
            for user in favorited_by:
                session.add(Favorite(user_id=user.id, article_id=article.id))
            await session.commit()
        return article

    return _create


@pytest.fixture
def auth_headers():
    """Builds an `Authorization: Token <jwt>` header for a user."""

    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token(user.id, user.username)
        return {"Authorization": f"Token {token}"}

    return _headers


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport,
    with get_db_session pointed at the per-test database.
    """
    from conduit.main import app

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
