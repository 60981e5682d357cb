"""Health and metrics routes for Moderator Service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dishka import FromDishka
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from quart import Blueprint, Response, current_app, jsonify
from quart_dishka import inject
from sqlalchemy import text
from teamup_service_libs.logging_utils import create_service_logger

from services.moderator_service.config import Settings
from services.moderator_service.protocols import AssignmentSchedulerProtocol

if TYPE_CHECKING:
    from teamup_service_libs.quart_app import TeamUpApp

logger = create_service_logger("moderator_service.api.health")
health_bp = Blueprint("health_routes", __name__)


@health_bp.route("/healthz")
@inject
async def health_check(
    settings: FromDishka[Settings],
    scheduler: FromDishka[AssignmentSchedulerProtocol],
) -> Response | tuple[Response, int]:
    """Standardized health check endpoint.

    Healthy means the assignment tables are reachable. A failing last pass is
    reported but does not make the service unhealthy; the scheduler retries on
    its next tick.
    """
    checks = {"service_responsive": True, "dependencies_available": True}
    dependencies: dict[str, dict[str, str]] = {}

    if settings.USE_MOCK_REPOSITORY:
        dependencies["database"] = {"status": "skipped", "note": "in-memory stores"}
    else:
        app: TeamUpApp = current_app  # type: ignore[assignment]
        try:
            async with app.database_engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
            dependencies["database"] = {"status": "healthy"}
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            dependencies["database"] = {"status": "unhealthy", "error": str(e)}
            checks["dependencies_available"] = False

    last_outcome = scheduler.last_outcome
    scheduler_info: dict[str, object] = {
        "enabled": settings.SCHEDULER_ENABLED,
        "running": scheduler.is_running,
        "last_pass": last_outcome.model_dump(mode="json") if last_outcome else None,
    }

    overall_status = "healthy" if checks["dependencies_available"] else "unhealthy"
    health_response = {
        "service": settings.SERVICE_NAME,
        "status": overall_status,
        "message": f"Moderator Service is {overall_status}",
        "version": "1.0.0",
        "checks": checks,
        "dependencies": dependencies,
        "scheduler": scheduler_info,
        "environment": settings.ENVIRONMENT,
    }

    status_code = 200 if overall_status == "healthy" else 503
    return jsonify(health_response), status_code


@health_bp.route("/metrics")
@inject
async def metrics(registry: FromDishka[CollectorRegistry]) -> Response:
    """Prometheus metrics endpoint."""
    return Response(generate_latest(registry), content_type=CONTENT_TYPE_LATEST)
