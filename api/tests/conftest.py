"""
Shared test fixtures for Campus Feed API tests.

Provides database lifecycle, a test client whose requests each get their own
session, directory users with signed tokens, and row seeding helpers.
"""

from collections.abc import AsyncGenerator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from campus_feed.auth.jwt import create_access_token
from campus_feed.config import settings
from campus_feed.database import Base, get_db
from campus_feed.main import app
from campus_feed.middleware.rate_limit import reset_limiter

# Import models so they're registered with Base.metadata before table creation
from campus_feed.models import AlumniVerificationApplication, Post, User

# Test database URL (file-backed SQLite unless overridden)
TEST_DATABASE_URL = settings.test_database_url

# Create test engine with NullPool to avoid connection issues
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,
    echo=False,
)

TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


# --- Rate Limiter Reset Fixture ---


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Reset rate limiter before each test to ensure test isolation."""
    reset_limiter()
    yield


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create tables before each test function, drop after.

    The yielded session is for seeding and assertions; requests made through
    ``async_client`` use sessions of their own.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory(db_session: AsyncSession) -> async_sessionmaker:
    """Session factory bound to the test database, for service-level tests."""
    return TestSessionLocal


@pytest.fixture
def count_statements(db_session: AsyncSession):
    """
    Context manager counting SQL statements sent to the test database.

    Usage:
        with count_statements() as counter:
            await async_client.get("/api/v1/feed")
        counter["statements"]
    """

    @contextmanager
    def _count_statements():
        counter = {"statements": 0}

        def _on_execute(conn, cursor, statement, parameters, context, executemany):
            counter["statements"] += 1

        event.listen(test_engine.sync_engine, "before_cursor_execute", _on_execute)
        try:
            yield counter
        finally:
            event.remove(test_engine.sync_engine, "before_cursor_execute", _on_execute)

    return _count_statements


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client configured for testing.

    Each request gets a fresh session, committed on success and rolled back
    on error, the same as ``get_db`` in production.
    """

    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=True,
    ) as client:
        yield client

    app.dependency_overrides.clear()


# --- Authentication Helper Fixtures ---


@pytest.fixture
def auth_headers():
    """Factory fixture for creating bearer Authorization headers."""

    def _auth_headers(user: dict[str, Any]) -> dict[str, str]:
        return {"Authorization": f"Bearer {user['token']}"}

    return _auth_headers


# --- User Fixtures ---


async def _create_user(role: str, full_name: str, email: str) -> dict[str, Any]:
    """Insert a directory user and mint a token carrying its role."""
    async with TestSessionLocal() as session:
        user = User(
            id=uuid4(),
            university_id=f"U-{uuid4().hex[:8]}",
            full_name=full_name,
            session="2019-2023",
            email=email,
            role=role,
        )
        session.add(user)
        await session.commit()

    return {
        "user_id": str(user.id),
        "id": user.id,
        "role": role,
        "full_name": full_name,
        "email": email,
        "token": create_access_token(str(user.id), role),
    }


@pytest_asyncio.fixture
async def student(db_session: AsyncSession) -> dict[str, Any]:
    """A student; may author the open post types only."""
    return await _create_user("student", "Sam Student", "student@example.edu")


@pytest_asyncio.fixture
async def second_student(db_session: AsyncSession) -> dict[str, Any]:
    """A second student for ownership scenarios."""
    return await _create_user("student", "Sasha Student", "student2@example.edu")


@pytest_asyncio.fixture
async def alumni(db_session: AsyncSession) -> dict[str, Any]:
    """An alumni account with no verification history."""
    return await _create_user("alumni", "Alex Alumni", "alumni@example.edu")


@pytest_asyncio.fixture
async def faculty(db_session: AsyncSession) -> dict[str, Any]:
    """A faculty moderator."""
    return await _create_user("faculty", "Fran Faculty", "faculty@example.edu")


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> dict[str, Any]:
    """An admin moderator."""
    return await _create_user("admin", "Ada Admin", "admin@example.edu")


# --- Seeding Fixtures ---


@pytest.fixture
def seed_post(db_session: AsyncSession):
    """
    Insert a post row directly, bypassing the authoring policy.

    ``age_minutes`` sets ``created_at`` that far in the past so ordering is
    deterministic.
    """

    async def _seed_post(
        author_id: UUID | None = None,
        post_type: str = "EVENT",
        status: str = "published",
        pinned: bool = False,
        title: str | None = None,
        summary: str = "Seeded post",
        expires_at: datetime | None = None,
        age_minutes: int = 0,
    ) -> Post:
        created = datetime.now(timezone.utc) - timedelta(minutes=age_minutes)
        async with TestSessionLocal() as session:
            post = Post(
                type=post_type,
                title=title,
                summary=summary,
                author_id=author_id,
                status=status,
                pinned=pinned,
                expires_at=expires_at,
                created_at=created,
                updated_at=created,
            )
            session.add(post)
            await session.commit()
        return post

    return _seed_post


@pytest.fixture
def seed_application(db_session: AsyncSession):
    """Insert a verification application row directly, in any status."""

    async def _seed_application(
        applicant_id: UUID,
        status: str = "pending",
        age_minutes: int = 0,
    ) -> AlumniVerificationApplication:
        created = datetime.now(timezone.utc) - timedelta(minutes=age_minutes)
        async with TestSessionLocal() as session:
            application = AlumniVerificationApplication(
                applicant_id=applicant_id,
                student_id="S-1001",
                id_card_image_data_url="data:image/png;base64,AAAA",
                current_job_info="Engineer at Example Corp",
                status=status,
                created_at=created,
                updated_at=created,
            )
            session.add(application)
            await session.commit()
        return application

    return _seed_application


@pytest.fixture
def id_card() -> str:
    """A small, well-formed image data URL."""
    return "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/5+hHgAHggJ/PchI7wAAAABJRU5ErkJggg=="


@pytest.fixture
def frozen_time():
    """
    Fixture for time-based testing using freezegun.

    Usage:
        with frozen_time("2026-02-01 12:00:00"):
            # time is frozen
    """
    from freezegun import freeze_time

    return freeze_time
