"""Dependency injection providers for Moderator Service.

The scheduler is a long-lived background component, so every provider here
lives in APP scope.
"""

from __future__ import annotations

from dishka import Provider, Scope, provide
from prometheus_client import REGISTRY, CollectorRegistry
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from teamup_service_libs.kafka_client import KafkaBus
from teamup_service_libs.protocols import KafkaPublisherProtocol

from services.moderator_service.config import Settings
from services.moderator_service.implementations.mock_stores_impl import InMemoryModerationState
from services.moderator_service.protocols import (
    AssignmentSchedulerProtocol,
    AssignmentStoreProtocol,
    NotificationPublisherProtocol,
    WorkerPoolProtocol,
    WorkItemStoreProtocol,
)


class CoreProvider(Provider):
    """Core infrastructure providers."""

    scope = Scope.APP

    @provide
    def provide_metrics_registry(self) -> CollectorRegistry:
        """Provide Prometheus metrics registry."""
        return REGISTRY

    @provide
    def provide_kafka_publisher(self, settings: Settings) -> KafkaPublisherProtocol:
        """Provide Kafka publisher; started during service startup."""
        return KafkaBus(
            client_id=settings.PRODUCER_CLIENT_ID,
            bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
        )

    @provide
    def provide_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        """Provide database session factory."""
        return async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @provide
    def provide_in_memory_state(self) -> InMemoryModerationState:
        """Provide shared state for the in-memory stores."""
        return InMemoryModerationState()


class ImplementationProvider(Provider):
    """Store and publisher implementations, chosen by configuration."""

    scope = Scope.APP

    @provide
    def provide_work_item_store(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        state: InMemoryModerationState,
        settings: Settings,
    ) -> WorkItemStoreProtocol:
        """Provide backlog discovery implementation."""
        if settings.USE_MOCK_REPOSITORY:
            from services.moderator_service.implementations.mock_stores_impl import (
                InMemoryWorkItemStore,
            )

            return InMemoryWorkItemStore(state)

        from services.moderator_service.implementations.work_item_store_impl import (
            PostgreSQLWorkItemStore,
        )

        return PostgreSQLWorkItemStore(session_factory, service_name=settings.SERVICE_NAME)

    @provide
    def provide_assignment_store(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        state: InMemoryModerationState,
        settings: Settings,
    ) -> AssignmentStoreProtocol:
        """Provide assignment persistence implementation."""
        if settings.USE_MOCK_REPOSITORY:
            from services.moderator_service.implementations.mock_stores_impl import (
                InMemoryAssignmentStore,
            )

            return InMemoryAssignmentStore(state, service_name=settings.SERVICE_NAME)

        from services.moderator_service.implementations.assignment_store_impl import (
            PostgreSQLAssignmentStore,
        )

        return PostgreSQLAssignmentStore(session_factory, service_name=settings.SERVICE_NAME)

    @provide
    def provide_worker_pool(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        state: InMemoryModerationState,
        settings: Settings,
    ) -> WorkerPoolProtocol:
        """Provide moderator pool implementation."""
        if settings.USE_MOCK_REPOSITORY:
            from services.moderator_service.implementations.mock_stores_impl import (
                InMemoryWorkerPool,
            )

            return InMemoryWorkerPool(state)

        from services.moderator_service.implementations.worker_pool_impl import (
            PostgreSQLWorkerPool,
        )

        return PostgreSQLWorkerPool(session_factory, service_name=settings.SERVICE_NAME)

    @provide
    def provide_notification_publisher(
        self,
        kafka_publisher: KafkaPublisherProtocol,
        settings: Settings,
    ) -> NotificationPublisherProtocol:
        """Provide Kafka notification publisher."""
        from services.moderator_service.implementations.notification_publisher_impl import (
            KafkaNotificationPublisher,
        )

        return KafkaNotificationPublisher(kafka_bus=kafka_publisher, settings=settings)


class ServiceProvider(Provider):
    """Business logic service providers."""

    scope = Scope.APP

    @provide
    def provide_assignment_scheduler(
        self,
        work_item_store: WorkItemStoreProtocol,
        assignment_store: AssignmentStoreProtocol,
        worker_pool: WorkerPoolProtocol,
        notification_publisher: NotificationPublisherProtocol,
        settings: Settings,
        registry: CollectorRegistry,
    ) -> AssignmentSchedulerProtocol:
        """Provide the assignment scheduler singleton."""
        from services.moderator_service.implementations.assignment_scheduler import (
            AssignmentScheduler,
        )
        from services.moderator_service.metrics import get_metrics

        return AssignmentScheduler(
            work_item_store=work_item_store,
            assignment_store=assignment_store,
            worker_pool=worker_pool,
            notification_publisher=notification_publisher,
            settings=settings,
            metrics=get_metrics(registry),
        )


class ModeratorServiceProvider(Provider):
    """Service-specific providers with engine and settings dependency."""

    def __init__(self, engine: AsyncEngine, settings: Settings) -> None:
        """Initialize with database engine and the settings the app was built with."""
        super().__init__()
        self.engine = engine
        self.settings = settings

    scope = Scope.APP

    @provide
    def provide_engine(self) -> AsyncEngine:
        """Provide the database engine passed during initialization."""
        return self.engine

    @provide
    def provide_settings(self) -> Settings:
        """Provide service settings as singleton."""
        return self.settings
