"""Protocol definitions for Moderator Service dependency injection.

The assignment scheduler depends only on these contracts. Each storage
technology (PostgreSQL, in-memory) provides its own implementation.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Protocol
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from teamup_core.events.moderation_events import NewAssignmentV1


class Assignment(BaseModel):
    """Durable binding between one event and one moderator."""

    model_config = ConfigDict(frozen=True)

    event_id: int
    moderator_id: int
    assigned_at: datetime


class PassStatus(str, Enum):
    """How a scheduling pass ended."""

    EMPTY_BACKLOG = "empty_backlog"
    NO_FREE_WORKER = "no_free_worker"
    COMPLETED = "completed"
    ABORTED = "aborted"


class PassOutcome(BaseModel):
    """Summary of one scheduling pass, used for logging, metrics and health."""

    status: PassStatus
    correlation_id: UUID
    backlog_size: int = 0
    assigned: int = 0
    conflicts: int = 0
    storage_failures: int = 0
    notification_failures: int = 0
    deferred: int = 0
    duration_seconds: float = 0.0
    finished_at: datetime | None = None
    assigned_event_ids: list[int] = Field(default_factory=list)


# Core Protocols


class WorkItemStoreProtocol(Protocol):
    """Protocol for discovering events that await a moderator."""

    async def list_unassigned_pending_ids(
        self, limit: int | None = None, correlation_id: UUID | None = None
    ) -> list[int]:
        """List ids of events in pending review with no assignment.

        Args:
            limit: Optional upper bound on the number of ids returned
            correlation_id: Correlation ID for error reporting

        Returns:
            Event ids ordered by creation time, then id

        Raises:
            TeamUpError: BACKLOG_READ_ERROR when storage cannot be read
        """
        ...

    async def oldest_unassigned_created_at(self) -> datetime | None:
        """Return creation time of the oldest unassigned pending event, if any."""
        ...


class AssignmentStoreProtocol(Protocol):
    """Protocol for persisting event to moderator bindings."""

    async def create(self, event_id: int, moderator_id: int, correlation_id: UUID) -> Assignment:
        """Bind an event to a moderator atomically.

        The binding and the event's transition to ASSIGNED commit together.

        Args:
            event_id: Event awaiting moderation
            moderator_id: Moderator picked from the pool
            correlation_id: Correlation ID of the scheduling pass

        Returns:
            The persisted Assignment

        Raises:
            TeamUpError: ASSIGNMENT_CONFLICT if the event is already bound or no
                longer pending review, ASSIGNMENT_STORAGE_ERROR on other failures
        """
        ...

    async def get_by_event_id(self, event_id: int) -> Assignment | None:
        """Return the assignment for an event, if it exists."""
        ...


class WorkerPoolProtocol(Protocol):
    """Protocol for picking a free moderator."""

    async def pick_free(self, correlation_id: UUID | None = None) -> int | None:
        """Return the id of a currently free moderator, or None if all are busy.

        Raises:
            TeamUpError: WORKER_POOL_ERROR when the pool cannot be queried
        """
        ...


class NotificationPublisherProtocol(Protocol):
    """Protocol for announcing new assignments to downstream consumers."""

    async def publish(self, notification: NewAssignmentV1, correlation_id: UUID) -> None:
        """Publish a NEW_ASSIGNMENT notification.

        Args:
            notification: Assignment notification payload
            correlation_id: Correlation ID of the scheduling pass

        Raises:
            TeamUpError: KAFKA_PUBLISH_ERROR when the send is not acknowledged
        """
        ...


class AssignmentSchedulerProtocol(Protocol):
    """Protocol for the periodic assignment scheduler."""

    @property
    def last_outcome(self) -> PassOutcome | None:
        """Outcome of the most recently finished pass."""
        ...

    @property
    def is_running(self) -> bool:
        """Whether the timer loop is active."""
        ...

    async def run_pass(self) -> PassOutcome:
        """Run one scheduling pass. Never raises for storage or transport failures."""
        ...

    async def start(self) -> None:
        """Start the timer loop as a background task."""
        ...

    async def stop(self) -> None:
        """Stop the timer loop, waiting briefly for an in-flight pass."""
        ...
