"""Prometheus metrics for Moderator Service.

Metrics describe scheduling pass outcomes; structured logs remain the
primary record of individual assignments.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram
from teamup_service_libs.logging_utils import create_service_logger

if TYPE_CHECKING:
    from services.moderator_service.protocols import PassOutcome

logger = create_service_logger("moderator_service.metrics")

# One metrics dictionary per registry to avoid duplicated timeseries
_metrics: dict[int, dict[str, Any]] = {}


def _create_metrics(registry: CollectorRegistry) -> dict[str, Any]:
    """Create Prometheus metrics for the Moderator Service.

    Returns:
        Dictionary of metric instances keyed by metric name
    """
    return {
        "scheduler_passes_total": Counter(
            "moderator_service_scheduler_passes_total",
            "Total scheduling passes by outcome",
            ["status"],  # empty_backlog/no_free_worker/completed/aborted
            registry=registry,
        ),
        "scheduler_pass_duration_seconds": Histogram(
            "moderator_service_scheduler_pass_duration_seconds",
            "Scheduling pass duration in seconds",
            buckets=(0.01, 0.05, 0.1, 0.5, 1, 2, 5, 10, 30),
            registry=registry,
        ),
        "assignments_created_total": Counter(
            "moderator_service_assignments_created_total",
            "Total events bound to a moderator",
            registry=registry,
        ),
        "assignment_conflicts_total": Counter(
            "moderator_service_assignment_conflicts_total",
            "Total binds lost to a concurrent writer or a status change",
            registry=registry,
        ),
        "assignment_storage_failures_total": Counter(
            "moderator_service_assignment_storage_failures_total",
            "Total binds that failed with a storage error",
            registry=registry,
        ),
        "notification_failures_total": Counter(
            "moderator_service_notification_failures_total",
            "Total assignment notifications the broker did not acknowledge",
            registry=registry,
        ),
        "deferred_events_total": Counter(
            "moderator_service_deferred_events_total",
            "Total backlog entries left for the next pass, because no moderator was free "
            "or the pass aborted",
            registry=registry,
        ),
        "backlog_size": Gauge(
            "moderator_service_backlog_size",
            "Unassigned events seen at the start of the last pass",
            registry=registry,
        ),
        "oldest_pending_age_seconds": Gauge(
            "moderator_service_oldest_pending_age_seconds",
            "Age of the oldest unassigned event seen at the end of the last pass",
            registry=registry,
        ),
    }


def get_metrics(registry: CollectorRegistry | None = None) -> dict[str, Any]:
    """Return the service metrics, creating them once per registry."""
    registry = registry or REGISTRY
    key = id(registry)
    if key not in _metrics:
        _metrics[key] = _create_metrics(registry)
        logger.info("Moderator Service metrics initialized")
    return _metrics[key]


def record_pass_outcome(metrics: dict[str, Any], outcome: PassOutcome) -> None:
    """Fold one pass outcome into the counters."""
    metrics["scheduler_passes_total"].labels(status=outcome.status.value).inc()
    metrics["scheduler_pass_duration_seconds"].observe(outcome.duration_seconds)
    metrics["backlog_size"].set(outcome.backlog_size)
    if outcome.assigned:
        metrics["assignments_created_total"].inc(outcome.assigned)
    if outcome.conflicts:
        metrics["assignment_conflicts_total"].inc(outcome.conflicts)
    if outcome.storage_failures:
        metrics["assignment_storage_failures_total"].inc(outcome.storage_failures)
    if outcome.notification_failures:
        metrics["notification_failures_total"].inc(outcome.notification_failures)
    if outcome.deferred:
        metrics["deferred_events_total"].inc(outcome.deferred)
