"""
Pytest fixtures for test database, client, and authentication.

Each test gets its own database: a SQLite file under tmp_path by default,
or TEST_DATABASE_URL (e.g. a PostgreSQL test database) when set. Tables are
created before and dropped after every test.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./seatsync.db")
os.environ.setdefault("ALLOCATION_RETRY_BACKOFF_MS", "5")

from datetime import date, time, timedelta
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from seatsync.main import app
from seatsync.db.base import Base
from seatsync.db.session import create_engine, create_session_factory, get_db, get_session_factory
from seatsync.core.security import create_access_token
from seatsync.models.event import Event, EventStatus
from seatsync.models.registration import Registration
from seatsync.models.waitlist import WaitlistEntry
from seatsync.services.allocation_service import AllocationCoordinator

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")

EVENT_DAY = date.today() + timedelta(days=30)


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'seatsync_test.db'}"
    test_engine = create_engine(url)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def coordinator(session_factory) -> AllocationCoordinator:
    return AllocationCoordinator(session_factory)


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_event(session_factory):
    """Insert an event directly, bypassing the admin API."""

    async def _make_event(
        title: str = "Intro to Python",
        total_seats: int = 10,
        available_seats: Optional[int] = None,
        event_date: date = EVENT_DAY,
        start_time: Optional[time] = time(10, 0),
        end_time: Optional[time] = time(11, 0),
        status: EventStatus = EventStatus.UPCOMING,
        is_mandatory: bool = False,
        target_branches: Optional[list[str]] = None,
        kind: str = "Workshop",
    ) -> Event:
        event = Event(
            title=title,
            kind=kind,
            date=event_date,
            start_time=start_time,
            end_time=end_time,
            total_seats=total_seats,
            available_seats=total_seats if available_seats is None else available_seats,
            status=status.value,
            is_mandatory=is_mandatory,
            target_branches=target_branches or [],
        )
        async with session_factory() as session:
            session.add(event)
            await session.commit()
            await session.refresh(event)
        return event

    return _make_event


@pytest.fixture
def event_state(session_factory):
    """Fresh read of an event's counters."""

    async def _event_state(event_id: int) -> Event:
        async with session_factory() as session:
            return await session.get(Event, event_id)

    return _event_state


def make_headers(user_id: str, department: str = "CSE", role: str = "student") -> dict:
    token = create_access_token({"sub": user_id, "department": department, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers() -> dict:
    return make_headers("student-1", "CSE")


@pytest.fixture
def admin_headers() -> dict:
    return make_headers("admin-1", "ADMIN", role="admin")


@pytest.fixture
def headers_for():
    return make_headers


@pytest.fixture
def ledger_snapshot(session_factory):
    """(available_seats, total_seats, confirmed count, waitlist positions) for an event."""

    async def _snapshot(event_id: int):
        async with session_factory() as session:
            event = await session.get(Event, event_id)
            confirmed = await session.scalar(
                select(func.count(Registration.id)).where(Registration.event_id == event_id)
            )
            positions = (
                await session.execute(
                    select(WaitlistEntry.position)
                    .where(WaitlistEntry.event_id == event_id)
                    .order_by(WaitlistEntry.id.asc())
                )
            ).scalars().all()
            return event.available_seats, event.total_seats, confirmed, list(positions)

    return _snapshot
