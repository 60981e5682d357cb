"""Shared fixtures for Moderator Service tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest
from prometheus_client import CollectorRegistry

from services.moderator_service.config import Settings
from services.moderator_service.implementations.assignment_scheduler import AssignmentScheduler
from services.moderator_service.implementations.mock_stores_impl import (
    InMemoryAssignmentStore,
    InMemoryModerationState,
    InMemoryWorkerPool,
    InMemoryWorkItemStore,
)
from services.moderator_service.metrics import get_metrics
from services.moderator_service.protocols import NotificationPublisherProtocol


@pytest.fixture
def settings() -> Settings:
    return Settings(
        USE_MOCK_REPOSITORY=True,
        SCAN_DELAY_MS=10,
        INITIAL_DELAY_MS=0,
        SHUTDOWN_TIMEOUT_SECONDS=1.0,
        KAFKA_BOOTSTRAP_SERVERS="localhost:9092",
    )


@pytest.fixture
def state() -> InMemoryModerationState:
    return InMemoryModerationState()


@pytest.fixture
def publisher() -> AsyncMock:
    return AsyncMock(spec=NotificationPublisherProtocol)


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> dict[str, Any]:
    return get_metrics(registry)


@pytest.fixture
def scheduler(
    state: InMemoryModerationState,
    publisher: AsyncMock,
    settings: Settings,
    metrics: dict[str, Any],
) -> AssignmentScheduler:
    return AssignmentScheduler(
        work_item_store=InMemoryWorkItemStore(state),
        assignment_store=InMemoryAssignmentStore(state),
        worker_pool=InMemoryWorkerPool(state),
        notification_publisher=publisher,
        settings=settings,
        metrics=metrics,
    )
