"""
Assignment scheduler binding events awaiting moderation to free moderators.

On a fixed delay between pass completions it reads the unassigned backlog,
binds each event to the first free moderator, persists the binding and
announces it on Kafka. Every failure is contained within the pass; the timer
loop keeps firing regardless.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from teamup_core.error_enums import ErrorCode, ModerationErrorCode
from teamup_core.events.moderation_events import NewAssignmentV1
from teamup_service_libs.error_handling import TeamUpError, create_error_detail_with_context
from teamup_service_libs.logging_utils import bind_correlation_context, create_service_logger

from services.moderator_service.metrics import record_pass_outcome
from services.moderator_service.protocols import (
    Assignment,
    AssignmentSchedulerProtocol,
    AssignmentStoreProtocol,
    NotificationPublisherProtocol,
    PassOutcome,
    PassStatus,
    WorkerPoolProtocol,
    WorkItemStoreProtocol,
)

if TYPE_CHECKING:
    from services.moderator_service.config import Settings

logger = create_service_logger("moderator_service.assignment_scheduler")


@dataclass
class _PassProgress:
    """Counters accumulated while a pass runs, kept if the pass aborts."""

    correlation_id: UUID
    backlog_size: int = 0
    assigned: int = 0
    conflicts: int = 0
    storage_failures: int = 0
    notification_failures: int = 0
    deferred: int = 0
    assigned_event_ids: list[int] = field(default_factory=list)

    def unprocessed(self) -> int:
        """Backlog items not yet assigned, skipped as conflicts or failed."""
        return max(self.backlog_size - self.assigned - self.conflicts - self.storage_failures, 0)

    def to_outcome(self, status: PassStatus, started: float) -> PassOutcome:
        return PassOutcome(
            status=status,
            correlation_id=self.correlation_id,
            backlog_size=self.backlog_size,
            assigned=self.assigned,
            conflicts=self.conflicts,
            storage_failures=self.storage_failures,
            notification_failures=self.notification_failures,
            deferred=self.deferred,
            duration_seconds=time.monotonic() - started,
            finished_at=datetime.now(UTC),
            assigned_event_ids=list(self.assigned_event_ids),
        )


class _PassAborted(Exception):
    """Too many consecutive storage failures while binding."""


class AssignmentScheduler(AssignmentSchedulerProtocol):
    """
    Periodically assigns unclaimed events to free moderators.

    Overlapping passes within one process cannot happen: the next pass is
    scheduled only after the previous one has finished. Across replicas the
    unique binding per event is enforced by the assignment store.
    """

    def __init__(
        self,
        work_item_store: WorkItemStoreProtocol,
        assignment_store: AssignmentStoreProtocol,
        worker_pool: WorkerPoolProtocol,
        notification_publisher: NotificationPublisherProtocol,
        settings: Settings,
        metrics: dict[str, Any] | None = None,
    ) -> None:
        self.work_item_store = work_item_store
        self.assignment_store = assignment_store
        self.worker_pool = worker_pool
        self.notification_publisher = notification_publisher
        self.settings = settings
        self.metrics = metrics
        self._running = False
        self._stop_event = asyncio.Event()
        self._scheduler_task: asyncio.Task[None] | None = None
        self._last_outcome: PassOutcome | None = None

    @property
    def last_outcome(self) -> PassOutcome | None:
        return self._last_outcome

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduler background task."""
        if self._running:
            logger.warning("Assignment scheduler already running")
            return

        self._running = True
        self._stop_event.clear()
        logger.info(
            "Starting assignment scheduler",
            scan_delay_ms=self.settings.SCAN_DELAY_MS,
            backlog_batch_size=self.settings.BACKLOG_BATCH_SIZE,
        )
        self._scheduler_task = asyncio.create_task(self._scheduler_loop())

    async def stop(self) -> None:
        """Stop the scheduler, giving an in-flight pass a bounded time to finish."""
        logger.info("Stopping assignment scheduler")
        self._running = False
        self._stop_event.set()

        if self._scheduler_task and not self._scheduler_task.done():
            try:
                await asyncio.wait_for(
                    self._scheduler_task, timeout=self.settings.SHUTDOWN_TIMEOUT_SECONDS
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Scheduling pass did not complete within "
                    f"{self.settings.SHUTDOWN_TIMEOUT_SECONDS} seconds, cancelling"
                )
                self._scheduler_task.cancel()
                try:
                    await self._scheduler_task
                except asyncio.CancelledError:
                    pass

    async def _sleep(self, seconds: float) -> None:
        """Sleep, waking early when stop() is called."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def _scheduler_loop(self) -> None:
        """Main loop: one pass, then a fixed delay, until stopped."""
        if self.settings.initial_delay_seconds > 0:
            await self._sleep(self.settings.initial_delay_seconds)

        while self._running:
            try:
                await self.run_pass()
            except Exception as e:
                # run_pass contains its own failures; this only guards the timer
                logger.error(f"Unexpected error escaped scheduling pass: {e}", exc_info=True)

            await self._sleep(self.settings.scan_delay_seconds)

    async def run_pass(self) -> PassOutcome:
        """Run one scheduling pass and return its outcome. Never raises."""
        correlation_id = uuid4()
        bind_correlation_context(correlation_id, operation="assign_events")
        started = time.monotonic()
        progress = _PassProgress(correlation_id=correlation_id)

        try:
            status = await self._assign_backlog(progress)
        except _PassAborted:
            status = PassStatus.ABORTED
        except TeamUpError as e:
            logger.error(
                f"Scheduling pass aborted: {e.error_detail.message}",
                error_code=e.error_code,
                operation=e.operation,
            )
            status = PassStatus.ABORTED
        except (SQLAlchemyError, ConnectionError, OSError) as e:
            logger.error(
                f"Infrastructure error in scheduling pass: {e}",
                exc_info=True,
                error_type=type(e).__name__,
            )
            status = PassStatus.ABORTED
        except Exception as e:
            error_detail = create_error_detail_with_context(
                error_code=ErrorCode.PROCESSING_ERROR,
                message=f"Unexpected error in scheduling pass: {e}",
                service=self.settings.SERVICE_NAME,
                operation="run_pass",
                correlation_id=correlation_id,
            )
            logger.error(
                error_detail.message,
                exc_info=True,
                error_code=error_detail.error_code.value,
            )
            status = PassStatus.ABORTED

        if status == PassStatus.ABORTED:
            progress.deferred = progress.unprocessed()

        outcome = progress.to_outcome(status, started)
        self._last_outcome = outcome

        if outcome.deferred or outcome.status == PassStatus.ABORTED:
            await self._report_oldest_pending()
        elif outcome.status == PassStatus.EMPTY_BACKLOG and self.metrics:
            self.metrics["oldest_pending_age_seconds"].set(0)

        if self.metrics:
            record_pass_outcome(self.metrics, outcome)

        log = logger.debug if outcome.status == PassStatus.EMPTY_BACKLOG else logger.info
        log(
            f"Scheduling pass finished: {outcome.status.value}",
            backlog_size=outcome.backlog_size,
            assigned=outcome.assigned,
            conflicts=outcome.conflicts,
            storage_failures=outcome.storage_failures,
            notification_failures=outcome.notification_failures,
            deferred=outcome.deferred,
            duration_seconds=round(outcome.duration_seconds, 4),
        )
        return outcome

    async def _assign_backlog(self, progress: _PassProgress) -> PassStatus:
        correlation_id = progress.correlation_id

        logger.debug("Fetching backlog of unassigned events")
        backlog = await self.work_item_store.list_unassigned_pending_ids(
            limit=self.settings.BACKLOG_BATCH_SIZE, correlation_id=correlation_id
        )
        progress.backlog_size = len(backlog)

        if not backlog:
            logger.debug("Backlog of unassigned events is empty")
            return PassStatus.EMPTY_BACKLOG

        if await self.worker_pool.pick_free(correlation_id) is None:
            progress.deferred = len(backlog)
            logger.info(
                f"No free moderators; deferring {len(backlog)} events to the next pass",
                deferred=len(backlog),
            )
            return PassStatus.NO_FREE_WORKER

        consecutive_storage_failures = 0
        for index, event_id in enumerate(backlog):
            moderator_id = await self.worker_pool.pick_free(correlation_id)
            if moderator_id is None:
                progress.deferred = len(backlog) - index
                logger.info(
                    f"Moderator pool exhausted; deferring {progress.deferred} events",
                    deferred=progress.deferred,
                )
                break

            try:
                assignment = await self.assignment_store.create(
                    event_id, moderator_id, correlation_id
                )
            except TeamUpError as e:
                if e.error_code == ModerationErrorCode.ASSIGNMENT_CONFLICT.value:
                    progress.conflicts += 1
                    consecutive_storage_failures = 0
                    logger.info(
                        f"Skipping event {event_id}: {e.error_detail.message}",
                        event_id=event_id,
                        moderator_id=moderator_id,
                        error_code=e.error_code,
                    )
                    continue
                consecutive_storage_failures += 1
                progress.storage_failures += 1
                logger.error(
                    f"Storage error assigning event {event_id}: {e.error_detail.message}",
                    event_id=event_id,
                    moderator_id=moderator_id,
                    error_code=e.error_code,
                )
            except (SQLAlchemyError, ConnectionError, OSError) as e:
                consecutive_storage_failures += 1
                progress.storage_failures += 1
                logger.error(
                    f"Storage error assigning event {event_id}: {e}",
                    event_id=event_id,
                    moderator_id=moderator_id,
                    error_type=type(e).__name__,
                )
            else:
                consecutive_storage_failures = 0
                progress.assigned += 1
                progress.assigned_event_ids.append(event_id)
                logger.info(
                    f"Event {event_id} assigned to moderator {moderator_id}",
                    event_id=event_id,
                    moderator_id=moderator_id,
                )
                await self._announce(assignment, progress)
                continue

            if consecutive_storage_failures >= self.settings.MAX_CONSECUTIVE_STORAGE_FAILURES:
                progress.deferred = progress.unprocessed()
                logger.error(
                    f"Aborting pass after {consecutive_storage_failures} consecutive "
                    f"storage failures; {progress.deferred} events left for the next pass",
                    deferred=progress.deferred,
                )
                raise _PassAborted()

        return PassStatus.COMPLETED

    async def _announce(self, assignment: Assignment, progress: _PassProgress) -> None:
        """Publish the notification; a failure here never undoes the assignment."""
        assigned_at = assignment.assigned_at
        if assigned_at.tzinfo is None:
            assigned_at = assigned_at.replace(tzinfo=UTC)

        notification = NewAssignmentV1(
            event_id=assignment.event_id,
            moderator_id=assignment.moderator_id,
            assigned_at=assigned_at,
        )
        try:
            await self.notification_publisher.publish(notification, progress.correlation_id)
        except TeamUpError as e:
            progress.notification_failures += 1
            logger.warning(
                f"Assignment of event {assignment.event_id} committed but not announced: "
                f"{e.error_detail.message}",
                event_id=assignment.event_id,
                moderator_id=assignment.moderator_id,
                error_code=e.error_code,
            )
        except Exception as e:
            progress.notification_failures += 1
            logger.error(
                f"Unexpected error announcing assignment of event {assignment.event_id}: {e}",
                exc_info=True,
                event_id=assignment.event_id,
                moderator_id=assignment.moderator_id,
            )

    async def _report_oldest_pending(self) -> None:
        """Warn when deferred events have waited longer than the starvation threshold."""
        try:
            oldest = await self.work_item_store.oldest_unassigned_created_at()
        except (TeamUpError, SQLAlchemyError, ConnectionError, OSError) as e:
            logger.warning(f"Could not read oldest pending event: {e}")
            return

        if oldest is None:
            age_seconds = 0.0
        else:
            if oldest.tzinfo is None:
                oldest = oldest.replace(tzinfo=UTC)
            age_seconds = max((datetime.now(UTC) - oldest).total_seconds(), 0.0)

        if self.metrics:
            self.metrics["oldest_pending_age_seconds"].set(age_seconds)

        if age_seconds > self.settings.STARVATION_WARNING_SECONDS:
            logger.warning(
                f"Oldest unassigned event has waited {int(age_seconds)}s for a moderator",
                oldest_pending_age_seconds=int(age_seconds),
                threshold_seconds=self.settings.STARVATION_WARNING_SECONDS,
            )
