"""SQL implementation of the work item store.

Reads the moderation backlog: events in PENDING_REVIEW with no row in
assigned_events. Works against PostgreSQL in production and SQLite in tests.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import ColumnElement, and_, exists, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from teamup_core.status_enums import EventStatus
from teamup_service_libs.error_handling import raise_backlog_read_error
from teamup_service_libs.logging_utils import create_service_logger

from services.moderator_service.models_db import AssignedEvent, Event
from services.moderator_service.protocols import WorkItemStoreProtocol

logger = create_service_logger("moderator_service.work_item_store")


def _unassigned_pending() -> ColumnElement[bool]:
    return and_(
        Event.status == EventStatus.PENDING_REVIEW,
        ~exists().where(AssignedEvent.event_id == Event.id),
    )


class PostgreSQLWorkItemStore(WorkItemStoreProtocol):
    """Backlog discovery over the events and assigned_events tables."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        service_name: str = "moderator_service",
    ) -> None:
        self.session_factory = session_factory
        self.service_name = service_name

    async def list_unassigned_pending_ids(
        self, limit: int | None = None, correlation_id: UUID | None = None
    ) -> list[int]:
        stmt = select(Event.id).where(_unassigned_pending()).order_by(Event.created_at, Event.id)
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                event_ids = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise_backlog_read_error(
                service=self.service_name,
                operation="list_unassigned_pending_ids",
                message=f"Database error reading moderation backlog: {e}",
                correlation_id=correlation_id or uuid4(),
                error_type=type(e).__name__,
            )

        logger.debug(f"Found {len(event_ids)} unassigned events in pending review")
        return event_ids

    async def oldest_unassigned_created_at(self) -> datetime | None:
        stmt = select(func.min(Event.created_at)).where(_unassigned_pending())

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise_backlog_read_error(
                service=self.service_name,
                operation="oldest_unassigned_created_at",
                message=f"Database error reading oldest pending event: {e}",
                correlation_id=uuid4(),
                error_type=type(e).__name__,
            )
