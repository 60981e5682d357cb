"""Moderator Service Application.

Quart application hosting the assignment scheduler. The HTTP surface is limited
to health and metrics; the scheduler runs as a background task managed through
Quart's serving lifecycle hooks.
"""

from __future__ import annotations

from typing import Any

from dishka import make_async_container
from quart_dishka import QuartDishka
from sqlalchemy.ext.asyncio import create_async_engine
from teamup_service_libs.error_handling import TeamUpError
from teamup_service_libs.logging_utils import (
    configure_service_logging,
    create_service_logger,
)
from teamup_service_libs.quart_app import TeamUpApp

from services.moderator_service.config import Settings
from services.moderator_service.di import (
    CoreProvider,
    ImplementationProvider,
    ModeratorServiceProvider,
    ServiceProvider,
)
from services.moderator_service.startup_setup import initialize_services, shutdown_services

logger = create_service_logger("moderator_service.app")


def _engine_options(settings: Settings) -> dict[str, Any]:
    """Pool options for the configured database; SQLite uses its own pool class."""
    if settings.DATABASE_URL.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_pre_ping": settings.DATABASE_POOL_PRE_PING,
        "pool_recycle": settings.DATABASE_POOL_RECYCLE,
    }


def create_app(settings: Settings | None = None) -> TeamUpApp:
    """Create and configure the Quart application.

    Args:
        settings: Optional settings override for testing

    Returns:
        Configured Quart application with integrated scheduler lifecycle
    """
    if settings is None:
        settings = Settings()

    # Configure logging
    configure_service_logging(
        settings.SERVICE_NAME,
        environment=settings.ENVIRONMENT,
        log_level=settings.LOG_LEVEL,
    )

    app = TeamUpApp(__name__)
    app.config.update(
        {
            "TESTING": False,
            "DEBUG": settings.LOG_LEVEL == "DEBUG",
        }
    )

    # Guaranteed infrastructure; the engine connects lazily on first use
    app.database_engine = create_async_engine(
        settings.DATABASE_URL,
        echo=False,
        **_engine_options(settings),
    )
    app.container = make_async_container(
        CoreProvider(),
        ImplementationProvider(),
        ServiceProvider(),
        ModeratorServiceProvider(engine=app.database_engine, settings=settings),
    )

    # Setup dependency injection
    QuartDishka(app=app, container=app.container)

    from services.moderator_service.api.health_routes import health_bp

    app.register_blueprint(health_bp)

    @app.before_serving
    async def startup() -> None:
        """Application startup tasks."""
        try:
            await initialize_services(app, settings, app.container)
            logger.info("Moderator Service started successfully")
            logger.info("Health endpoint: /healthz")
            logger.info("Metrics endpoint: /metrics")
        except Exception as e:
            logger.critical(f"Failed to start Moderator Service: {e}", exc_info=True)
            raise

    @app.after_serving
    async def cleanup() -> None:
        """Application cleanup tasks."""
        try:
            await shutdown_services(app)
            logger.info("Moderator Service shutdown complete")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)

    @app.errorhandler(TeamUpError)
    async def handle_teamup_error(error: TeamUpError) -> tuple[dict[str, Any], int]:
        """Handle TeamUp business errors."""
        logger.warning(f"Business error: {error.error_detail.message}")
        return {"error": error.to_dict(), "service": settings.SERVICE_NAME}, 500

    @app.errorhandler(Exception)
    async def handle_exception(e: Exception) -> tuple[dict[str, Any], int]:
        """Global exception handler for API errors."""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return {
            "error": "Internal server error",
            "message": "An unexpected error occurred",
            "service": settings.SERVICE_NAME,
        }, 500

    return app


# For direct execution
if __name__ == "__main__":
    import asyncio

    import hypercorn.asyncio
    from hypercorn.config import Config

    settings = Settings()
    app = create_app(settings)

    config = Config()
    config.bind = [f"0.0.0.0:{settings.HTTP_PORT}"]
    config.loglevel = settings.LOG_LEVEL.lower()

    asyncio.run(hypercorn.asyncio.serve(app, config))
