"""
Fixtures for storage integration tests.

The SQL stores run against a file-backed SQLite database through aiosqlite,
with the schema created from the ORM metadata.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import datetime
from pathlib import Path

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from teamup_core.status_enums import EventStatus

from services.moderator_service.models_db import Base, Event, ModeratorSession

SeedEvent = Callable[..., Awaitable[None]]
SeedSession = Callable[..., Awaitable[None]]


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'moderation.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def seed_event(session_factory: async_sessionmaker[AsyncSession]) -> SeedEvent:
    async def _seed(
        event_id: int,
        created_at: datetime,
        status: EventStatus = EventStatus.PENDING_REVIEW,
    ) -> None:
        async with session_factory() as session, session.begin():
            session.add(
                Event(id=event_id, title=f"event {event_id}", status=status, created_at=created_at)
            )

    return _seed


@pytest_asyncio.fixture
async def seed_session(session_factory: async_sessionmaker[AsyncSession]) -> SeedSession:
    async def _seed(moderator_id: int, started_at: datetime) -> None:
        async with session_factory() as session, session.begin():
            session.add(ModeratorSession(moderator_id=moderator_id, started_at=started_at))

    return _seed
