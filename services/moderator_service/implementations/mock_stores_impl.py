"""In-memory store implementations for testing and local development.

The three stores share one InMemoryModerationState so that a bind made
through the assignment store is immediately visible to backlog discovery
and to the moderator pool, exactly like the SQL tables.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from teamup_core.status_enums import EventStatus
from teamup_service_libs.error_handling import raise_assignment_conflict
from teamup_service_libs.logging_utils import create_service_logger

from services.moderator_service.protocols import (
    Assignment,
    AssignmentStoreProtocol,
    WorkerPoolProtocol,
    WorkItemStoreProtocol,
)

logger = create_service_logger("moderator_service.mock_stores")


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


@dataclass
class _EventRecord:
    status: EventStatus
    created_at: datetime


@dataclass
class InMemoryModerationState:
    """Shared backing state for the in-memory stores."""

    events: dict[int, _EventRecord] = field(default_factory=dict)
    assignments: dict[int, Assignment] = field(default_factory=dict)
    sessions: dict[int, datetime] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def add_event(
        self,
        event_id: int,
        status: EventStatus = EventStatus.PENDING_REVIEW,
        created_at: datetime | None = None,
    ) -> None:
        self.events[event_id] = _EventRecord(status=status, created_at=created_at or _utcnow())

    def open_session(self, moderator_id: int, started_at: datetime | None = None) -> None:
        self.sessions[moderator_id] = started_at or _utcnow()

    def close_session(self, moderator_id: int) -> None:
        self.sessions.pop(moderator_id, None)

    def set_status(self, event_id: int, status: EventStatus) -> None:
        self.events[event_id].status = status

    def is_busy(self, moderator_id: int) -> bool:
        return any(
            a.moderator_id == moderator_id
            and self.events[a.event_id].status == EventStatus.ASSIGNED
            for a in self.assignments.values()
        )


class InMemoryWorkItemStore(WorkItemStoreProtocol):
    def __init__(self, state: InMemoryModerationState) -> None:
        self.state = state

    def _unassigned(self) -> list[tuple[datetime, int]]:
        return sorted(
            (record.created_at, event_id)
            for event_id, record in self.state.events.items()
            if record.status == EventStatus.PENDING_REVIEW
            and event_id not in self.state.assignments
        )

    async def list_unassigned_pending_ids(
        self, limit: int | None = None, correlation_id: UUID | None = None
    ) -> list[int]:
        event_ids = [event_id for _, event_id in self._unassigned()]
        return event_ids[:limit] if limit is not None else event_ids

    async def oldest_unassigned_created_at(self) -> datetime | None:
        pending = self._unassigned()
        return pending[0][0] if pending else None


class InMemoryAssignmentStore(AssignmentStoreProtocol):
    """Emulates the unique constraint with a lock around check-and-insert."""

    def __init__(
        self, state: InMemoryModerationState, service_name: str = "moderator_service"
    ) -> None:
        self.state = state
        self.service_name = service_name

    async def create(self, event_id: int, moderator_id: int, correlation_id: UUID) -> Assignment:
        async with self.state.lock:
            if event_id in self.state.assignments:
                raise_assignment_conflict(
                    service=self.service_name,
                    operation="create_assignment",
                    event_id=event_id,
                    message=f"Event {event_id} is already assigned",
                    correlation_id=correlation_id,
                    moderator_id=moderator_id,
                    reason="unique_violation",
                )
            record = self.state.events.get(event_id)
            if record is None or record.status != EventStatus.PENDING_REVIEW:
                raise_assignment_conflict(
                    service=self.service_name,
                    operation="create_assignment",
                    event_id=event_id,
                    message=f"Event {event_id} is no longer pending review",
                    correlation_id=correlation_id,
                    moderator_id=moderator_id,
                    reason="not_pending_review",
                )

            assignment = Assignment(
                event_id=event_id, moderator_id=moderator_id, assigned_at=_utcnow()
            )
            self.state.assignments[event_id] = assignment
            record.status = EventStatus.ASSIGNED

        logger.debug(f"Mock: assigned event {event_id} to moderator {moderator_id}")
        return assignment

    async def get_by_event_id(self, event_id: int) -> Assignment | None:
        return self.state.assignments.get(event_id)


class InMemoryWorkerPool(WorkerPoolProtocol):
    def __init__(self, state: InMemoryModerationState) -> None:
        self.state = state

    async def pick_free(self, correlation_id: UUID | None = None) -> int | None:
        for _started_at, moderator_id in sorted(
            (started_at, moderator_id) for moderator_id, started_at in self.state.sessions.items()
        ):
            if not self.state.is_busy(moderator_id):
                return moderator_id
        return None
