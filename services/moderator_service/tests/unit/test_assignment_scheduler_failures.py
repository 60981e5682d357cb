"""Failure containment tests for AssignmentScheduler using protocol mocks."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from prometheus_client import CollectorRegistry
from sqlalchemy.exc import OperationalError
from teamup_core.error_enums import ModerationErrorCode
from teamup_service_libs.error_handling import TeamUpError, create_error_detail_with_context

from services.moderator_service.config import Settings
from services.moderator_service.implementations.assignment_scheduler import AssignmentScheduler
from services.moderator_service.protocols import (
    Assignment,
    AssignmentStoreProtocol,
    NotificationPublisherProtocol,
    PassStatus,
    WorkerPoolProtocol,
    WorkItemStoreProtocol,
)


def _error(code: ModerationErrorCode) -> TeamUpError:
    return TeamUpError(
        create_error_detail_with_context(
            error_code=code,
            message=f"simulated {code.value.lower()}",
            service="moderator_service",
            operation="test",
            correlation_id=uuid4(),
            capture_stack=False,
        )
    )


def _assignment(event_id: int, moderator_id: int = 9) -> Assignment:
    return Assignment(
        event_id=event_id, moderator_id=moderator_id, assigned_at=datetime.now(UTC)
    )


@pytest.fixture
def work_item_store() -> AsyncMock:
    store = AsyncMock(spec=WorkItemStoreProtocol)
    store.oldest_unassigned_created_at.return_value = None
    return store


@pytest.fixture
def assignment_store() -> AsyncMock:
    return AsyncMock(spec=AssignmentStoreProtocol)


@pytest.fixture
def worker_pool() -> AsyncMock:
    pool = AsyncMock(spec=WorkerPoolProtocol)
    pool.pick_free.return_value = 9
    return pool


@pytest.fixture
def mocked_scheduler(
    work_item_store: AsyncMock,
    assignment_store: AsyncMock,
    worker_pool: AsyncMock,
    settings: Settings,
) -> AssignmentScheduler:
    return AssignmentScheduler(
        work_item_store=work_item_store,
        assignment_store=assignment_store,
        worker_pool=worker_pool,
        notification_publisher=AsyncMock(spec=NotificationPublisherProtocol),
        settings=settings,
    )


class TestPerItemFailures:
    @pytest.mark.asyncio
    async def test_conflict_skips_item_and_continues(
        self,
        mocked_scheduler: AssignmentScheduler,
        work_item_store: AsyncMock,
        assignment_store: AsyncMock,
    ) -> None:
        work_item_store.list_unassigned_pending_ids.return_value = [1, 2]
        assignment_store.create.side_effect = [
            _error(ModerationErrorCode.ASSIGNMENT_CONFLICT),
            _assignment(2),
        ]

        outcome = await mocked_scheduler.run_pass()

        assert outcome.status == PassStatus.COMPLETED
        assert outcome.conflicts == 1
        assert outcome.assigned == 1
        assert outcome.assigned_event_ids == [2]
        mocked_scheduler.notification_publisher.publish.assert_awaited_once()  # type: ignore[attr-defined]

    @pytest.mark.asyncio
    async def test_isolated_storage_failures_do_not_abort(
        self,
        mocked_scheduler: AssignmentScheduler,
        work_item_store: AsyncMock,
        assignment_store: AsyncMock,
    ) -> None:
        work_item_store.list_unassigned_pending_ids.return_value = [1, 2, 3, 4, 5]
        assignment_store.create.side_effect = [
            _error(ModerationErrorCode.ASSIGNMENT_STORAGE_ERROR),
            _assignment(2),
            OperationalError("INSERT", {}, Exception("disk I/O error")),
            _assignment(4),
            _error(ModerationErrorCode.ASSIGNMENT_STORAGE_ERROR),
        ]

        outcome = await mocked_scheduler.run_pass()

        assert outcome.status == PassStatus.COMPLETED
        assert outcome.storage_failures == 3
        assert outcome.assigned == 2
        assert outcome.deferred == 0

    @pytest.mark.asyncio
    async def test_consecutive_storage_failures_abort_pass(
        self,
        mocked_scheduler: AssignmentScheduler,
        work_item_store: AsyncMock,
        assignment_store: AsyncMock,
        settings: Settings,
    ) -> None:
        assert settings.MAX_CONSECUTIVE_STORAGE_FAILURES == 3
        work_item_store.list_unassigned_pending_ids.return_value = [1, 2, 3, 4, 5, 6]
        assignment_store.create.side_effect = [
            _assignment(1),
            _error(ModerationErrorCode.ASSIGNMENT_STORAGE_ERROR),
            _error(ModerationErrorCode.ASSIGNMENT_STORAGE_ERROR),
            _error(ModerationErrorCode.ASSIGNMENT_STORAGE_ERROR),
        ]

        outcome = await mocked_scheduler.run_pass()

        assert outcome.status == PassStatus.ABORTED
        assert outcome.assigned == 1
        assert outcome.storage_failures == 3
        assert outcome.deferred == 2
        assert assignment_store.create.await_count == 4
        work_item_store.oldest_unassigned_created_at.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pool_exhausted_mid_pass_defers_remaining(
        self,
        mocked_scheduler: AssignmentScheduler,
        work_item_store: AsyncMock,
        assignment_store: AsyncMock,
        worker_pool: AsyncMock,
    ) -> None:
        work_item_store.list_unassigned_pending_ids.return_value = [1, 2, 3]
        # Initial availability check, then one pick per item
        worker_pool.pick_free.side_effect = [7, 7, None]
        assignment_store.create.return_value = _assignment(1, moderator_id=7)

        outcome = await mocked_scheduler.run_pass()

        assert outcome.status == PassStatus.COMPLETED
        assert outcome.assigned == 1
        assert outcome.deferred == 2
        assignment_store.create.assert_awaited_once_with(1, 7, outcome.correlation_id)


class TestPassLevelFailures:
    @pytest.mark.asyncio
    async def test_backlog_read_error_aborts(
        self,
        mocked_scheduler: AssignmentScheduler,
        work_item_store: AsyncMock,
        worker_pool: AsyncMock,
    ) -> None:
        work_item_store.list_unassigned_pending_ids.side_effect = _error(
            ModerationErrorCode.BACKLOG_READ_ERROR
        )

        outcome = await mocked_scheduler.run_pass()

        assert outcome.status == PassStatus.ABORTED
        worker_pool.pick_free.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_worker_pool_error_aborts(
        self,
        mocked_scheduler: AssignmentScheduler,
        work_item_store: AsyncMock,
        worker_pool: AsyncMock,
        assignment_store: AsyncMock,
    ) -> None:
        work_item_store.list_unassigned_pending_ids.return_value = [1]
        worker_pool.pick_free.side_effect = _error(ModerationErrorCode.WORKER_POOL_ERROR)

        outcome = await mocked_scheduler.run_pass()

        assert outcome.status == PassStatus.ABORTED
        assert outcome.deferred == 1
        assignment_store.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_worker_pool_error_mid_pass_defers_remaining(
        self,
        mocked_scheduler: AssignmentScheduler,
        work_item_store: AsyncMock,
        worker_pool: AsyncMock,
        assignment_store: AsyncMock,
        registry: CollectorRegistry,
        metrics: dict[str, Any],
    ) -> None:
        mocked_scheduler.metrics = metrics
        work_item_store.list_unassigned_pending_ids.return_value = [1, 2, 3]
        # Initial availability check, the pick for event 1, then the pool fails
        worker_pool.pick_free.side_effect = [9, 9, _error(ModerationErrorCode.WORKER_POOL_ERROR)]
        assignment_store.create.return_value = _assignment(1)

        outcome = await mocked_scheduler.run_pass()

        assert outcome.status == PassStatus.ABORTED
        assert outcome.assigned == 1
        assert outcome.deferred == 2
        assert registry.get_sample_value("moderator_service_deferred_events_total") == 2.0
        work_item_store.oldest_unassigned_created_at.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connection_error_aborts(
        self, mocked_scheduler: AssignmentScheduler, work_item_store: AsyncMock
    ) -> None:
        work_item_store.list_unassigned_pending_ids.side_effect = ConnectionRefusedError()

        outcome = await mocked_scheduler.run_pass()

        assert outcome.status == PassStatus.ABORTED

    @pytest.mark.asyncio
    async def test_unexpected_error_aborts(
        self, mocked_scheduler: AssignmentScheduler, work_item_store: AsyncMock
    ) -> None:
        work_item_store.list_unassigned_pending_ids.side_effect = ValueError("bad row")

        outcome = await mocked_scheduler.run_pass()

        assert outcome.status == PassStatus.ABORTED
        assert mocked_scheduler.last_outcome is outcome

    @pytest.mark.asyncio
    async def test_oldest_pending_read_failure_is_tolerated(
        self, mocked_scheduler: AssignmentScheduler, work_item_store: AsyncMock, worker_pool: AsyncMock
    ) -> None:
        work_item_store.list_unassigned_pending_ids.return_value = [1]
        work_item_store.oldest_unassigned_created_at.side_effect = _error(
            ModerationErrorCode.BACKLOG_READ_ERROR
        )
        worker_pool.pick_free.return_value = None

        outcome = await mocked_scheduler.run_pass()

        assert outcome.status == PassStatus.NO_FREE_WORKER
        assert outcome.deferred == 1

    @pytest.mark.asyncio
    async def test_each_pass_gets_fresh_correlation_id(
        self, mocked_scheduler: AssignmentScheduler, work_item_store: AsyncMock
    ) -> None:
        work_item_store.list_unassigned_pending_ids.return_value = []

        first = await mocked_scheduler.run_pass()
        second = await mocked_scheduler.run_pass()

        assert isinstance(first.correlation_id, UUID)
        assert first.correlation_id != second.correlation_id
