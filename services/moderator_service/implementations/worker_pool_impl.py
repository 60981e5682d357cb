"""SQL implementation of the moderator pool.

A moderator is free when it has an open session and no event currently in
ASSIGNED status bound to it. The scheduler never writes these tables; a
moderator becomes busy as a side effect of the assignment it was given.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import and_, exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from teamup_core.status_enums import EventStatus
from teamup_service_libs.error_handling import raise_worker_pool_error
from teamup_service_libs.logging_utils import create_service_logger

from services.moderator_service.models_db import AssignedEvent, Event, ModeratorSession
from services.moderator_service.protocols import WorkerPoolProtocol

logger = create_service_logger("moderator_service.worker_pool")


class PostgreSQLWorkerPool(WorkerPoolProtocol):
    """First-free selection: earliest session start wins, ties broken by id."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        service_name: str = "moderator_service",
    ) -> None:
        self.session_factory = session_factory
        self.service_name = service_name

    async def pick_free(self, correlation_id: UUID | None = None) -> int | None:
        busy = exists().where(
            and_(
                AssignedEvent.moderator_id == ModeratorSession.moderator_id,
                AssignedEvent.event_id == Event.id,
                Event.status == EventStatus.ASSIGNED,
            )
        )
        stmt = (
            select(ModeratorSession.moderator_id)
            .where(~busy)
            .order_by(ModeratorSession.started_at, ModeratorSession.moderator_id)
            .limit(1)
        )

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                moderator_id = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise_worker_pool_error(
                service=self.service_name,
                operation="pick_free",
                message=f"Database error querying free moderators: {e}",
                correlation_id=correlation_id or uuid4(),
                error_type=type(e).__name__,
            )

        if moderator_id is None:
            logger.debug("No free moderator available")
        return moderator_id
