"""
Error factory functions raising TeamUpError with a consistent shape.

Every factory builds an ErrorDetail through create_error_detail_with_context,
so callers only supply what is specific to their failure.
"""

from __future__ import annotations

from typing import Any, NoReturn
from uuid import UUID

from teamup_core.error_enums import ErrorCode, ModerationErrorCode

from .error_detail_factory import create_error_detail_with_context
from .teamup_error import TeamUpError


def raise_processing_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise for internal processing failures."""
    error_detail = create_error_detail_with_context(
        error_code=ErrorCode.PROCESSING_ERROR,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details=additional_context,
    )
    raise TeamUpError(error_detail)


def raise_kafka_publish_error(
    service: str,
    operation: str,
    topic: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise when the broker did not acknowledge a send."""
    error_detail = create_error_detail_with_context(
        error_code=ErrorCode.KAFKA_PUBLISH_ERROR,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details={"topic": topic, **additional_context},
    )
    raise TeamUpError(error_detail)


# =============================================================================
# Moderation Specific Factories
# =============================================================================


def raise_assignment_conflict(
    service: str,
    operation: str,
    event_id: int,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise when an event is already bound or no longer eligible for binding."""
    error_detail = create_error_detail_with_context(
        error_code=ModerationErrorCode.ASSIGNMENT_CONFLICT,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details={"event_id": event_id, **additional_context},
        capture_stack=False,
    )
    raise TeamUpError(error_detail)


def raise_assignment_storage_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise for unexpected storage failures while writing an assignment."""
    error_detail = create_error_detail_with_context(
        error_code=ModerationErrorCode.ASSIGNMENT_STORAGE_ERROR,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details=additional_context,
    )
    raise TeamUpError(error_detail)


def raise_backlog_read_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise when the unassigned backlog cannot be read."""
    error_detail = create_error_detail_with_context(
        error_code=ModerationErrorCode.BACKLOG_READ_ERROR,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details=additional_context,
    )
    raise TeamUpError(error_detail)


def raise_worker_pool_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise when the moderator pool cannot be queried."""
    error_detail = create_error_detail_with_context(
        error_code=ModerationErrorCode.WORKER_POOL_ERROR,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details=additional_context,
    )
    raise TeamUpError(error_detail)
