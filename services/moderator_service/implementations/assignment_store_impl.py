"""SQL implementation of the assignment store.

Each create() is its own transaction: the event's PENDING_REVIEW -> ASSIGNED
transition and the assigned_events insert commit together or not at all.
The unique constraint on assigned_events.event_id resolves races between
scheduler replicas; the loser observes ASSIGNMENT_CONFLICT.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from teamup_core.status_enums import EventStatus
from teamup_service_libs.error_handling import (
    raise_assignment_conflict,
    raise_assignment_storage_error,
)
from teamup_service_libs.logging_utils import create_service_logger

from services.moderator_service.models_db import AssignedEvent, Event
from services.moderator_service.protocols import Assignment, AssignmentStoreProtocol

logger = create_service_logger("moderator_service.assignment_store")


class PostgreSQLAssignmentStore(AssignmentStoreProtocol):
    """Persists event to moderator bindings in assigned_events."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        service_name: str = "moderator_service",
    ) -> None:
        self.session_factory = session_factory
        self.service_name = service_name

    async def create(self, event_id: int, moderator_id: int, correlation_id: UUID) -> Assignment:
        # Use timezone-naive datetime to match database schema (TIMESTAMP WITHOUT TIME ZONE)
        assigned_at = datetime.now(UTC).replace(tzinfo=None)

        async with self.session_factory() as session:
            try:
                async with session.begin():
                    # Row lock on the event serializes concurrent binds of the same id
                    result = await session.execute(
                        update(Event)
                        .where(
                            Event.id == event_id,
                            Event.status == EventStatus.PENDING_REVIEW,
                        )
                        .values(status=EventStatus.ASSIGNED)
                    )
                    if result.rowcount == 0:
                        raise_assignment_conflict(
                            service=self.service_name,
                            operation="create_assignment",
                            event_id=event_id,
                            message=f"Event {event_id} is no longer pending review",
                            correlation_id=correlation_id,
                            moderator_id=moderator_id,
                            reason="not_pending_review",
                        )

                    session.add(
                        AssignedEvent(
                            event_id=event_id,
                            moderator_id=moderator_id,
                            assigned_at=assigned_at,
                        )
                    )
                    await session.flush()
            except IntegrityError as e:
                raise_assignment_conflict(
                    service=self.service_name,
                    operation="create_assignment",
                    event_id=event_id,
                    message=f"Event {event_id} is already assigned",
                    correlation_id=correlation_id,
                    moderator_id=moderator_id,
                    reason="unique_violation",
                    sql_error=str(e.orig),
                )
            except SQLAlchemyError as e:
                raise_assignment_storage_error(
                    service=self.service_name,
                    operation="create_assignment",
                    message=f"Database error assigning event {event_id}: {e}",
                    correlation_id=correlation_id,
                    event_id=event_id,
                    moderator_id=moderator_id,
                    error_type=type(e).__name__,
                )

        logger.debug(
            f"Persisted assignment of event {event_id} to moderator {moderator_id}",
            correlation_id=str(correlation_id),
        )
        return Assignment(event_id=event_id, moderator_id=moderator_id, assigned_at=assigned_at)

    async def get_by_event_id(self, event_id: int) -> Assignment | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(AssignedEvent).where(AssignedEvent.event_id == event_id)
            )
            row = result.scalar_one_or_none()

        if row is None:
            return None
        return Assignment(
            event_id=row.event_id,
            moderator_id=row.moderator_id,
            assigned_at=row.assigned_at,
        )
