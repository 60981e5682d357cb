"""
Factory for ErrorDetail instances with automatic context capture.
"""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from opentelemetry import trace
from teamup_core.error_enums import ErrorCode, ModerationErrorCode
from teamup_core.models.error_models import ErrorDetail


def create_error_detail_with_context(
    error_code: ErrorCode | ModerationErrorCode,
    message: str,
    service: str,
    operation: str,
    correlation_id: UUID | None = None,
    details: dict[str, Any] | None = None,
    capture_stack: bool = True,
) -> ErrorDetail:
    """
    Create an ErrorDetail enriched with stack and trace context.

    Args:
        error_code: Platform or service-specific error code
        message: Human-readable error message
        service: Service reporting the error
        operation: Operation that failed
        correlation_id: Correlation ID (generated when omitted)
        details: Additional structured context
        capture_stack: Capture the current stack trace

    Returns:
        Frozen ErrorDetail
    """
    stack_trace = "".join(traceback.format_stack()) if capture_stack else None

    trace_id: str | None = None
    span_id: str | None = None
    span = trace.get_current_span()
    if span is not None:
        span_context = span.get_span_context()
        if span_context is not None and span_context.is_valid:
            trace_id = format(span_context.trace_id, "032x")
            span_id = format(span_context.span_id, "016x")

    return ErrorDetail(
        error_code=error_code,
        message=message,
        correlation_id=correlation_id or uuid4(),
        timestamp=datetime.now(timezone.utc),
        service=service,
        operation=operation,
        details=details or {},
        stack_trace=stack_trace,
        trace_id=trace_id,
        span_id=span_id,
    )
