"""Startup and shutdown procedures for Moderator Service.

Starts the Kafka producer and the assignment scheduler before serving, and
stops them in reverse order after serving. A broker that is down at startup
does not keep the scheduler from running.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aiokafka.errors import KafkaError
from dishka import AsyncContainer
from teamup_service_libs.logging_utils import create_service_logger
from teamup_service_libs.protocols import KafkaPublisherProtocol

from services.moderator_service.protocols import AssignmentSchedulerProtocol

if TYPE_CHECKING:
    from teamup_service_libs.quart_app import TeamUpApp

    from services.moderator_service.config import Settings

logger = create_service_logger("moderator_service.startup")


async def initialize_services(
    app: TeamUpApp,
    settings: Settings,
    container: AsyncContainer,
) -> None:
    """Initialize all service components.

    Args:
        app: Application holding the guaranteed infrastructure
        settings: Service configuration
        container: Dishka container
    """
    try:
        kafka_publisher = await container.get(KafkaPublisherProtocol)
        app.background_components["kafka_publisher"] = kafka_publisher
        try:
            await kafka_publisher.start()
            logger.info("Kafka publisher started")
        except (KafkaError, ConnectionError, OSError) as e:
            # Publishing retries the start; assignments keep committing meanwhile
            logger.warning(
                f"Kafka unavailable at startup, continuing without notifications: {e}",
                error_type=type(e).__name__,
            )

        scheduler = await container.get(AssignmentSchedulerProtocol)
        if settings.SCHEDULER_ENABLED:
            await scheduler.start()
            app.background_components["assignment_scheduler"] = scheduler
            logger.info(
                "Assignment scheduler started",
                scan_delay_ms=settings.SCAN_DELAY_MS,
                use_mock_repository=settings.USE_MOCK_REPOSITORY,
            )
        else:
            logger.info("Assignment scheduler disabled by configuration")

        logger.info("Moderator Service initialized successfully")
    except Exception as e:
        logger.critical(f"Failed to initialize Moderator Service: {e}", exc_info=True)
        raise


async def shutdown_services(app: TeamUpApp) -> None:
    """Stop background components and release the database engine."""
    # Scheduler first, so no pass publishes into a stopped producer
    scheduler = app.background_components.pop("assignment_scheduler", None)
    if scheduler is not None:
        try:
            await scheduler.stop()
            logger.info("Assignment scheduler stopped")
        except Exception as e:
            logger.error(f"Error stopping assignment scheduler: {e}", exc_info=True)

    kafka_publisher = app.background_components.pop("kafka_publisher", None)
    if kafka_publisher is not None:
        try:
            await kafka_publisher.stop()
            logger.info("Kafka publisher stopped")
        except Exception as e:
            logger.error(f"Error stopping Kafka publisher: {e}", exc_info=True)

    try:
        await app.container.close()
        await app.database_engine.dispose()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)

    logger.info("Moderator Service shutdown tasks completed")
