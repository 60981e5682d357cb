"""Error handling utilities for TeamUp services."""

from .error_detail_factory import create_error_detail_with_context
from .factories import (
    raise_assignment_conflict,
    raise_assignment_storage_error,
    raise_backlog_read_error,
    raise_kafka_publish_error,
    raise_processing_error,
    raise_worker_pool_error,
)
from .teamup_error import TeamUpError

__all__ = [
    "TeamUpError",
    "create_error_detail_with_context",
    "raise_assignment_conflict",
    "raise_assignment_storage_error",
    "raise_backlog_read_error",
    "raise_kafka_publish_error",
    "raise_processing_error",
    "raise_worker_pool_error",
]
