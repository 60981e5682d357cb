"""Error data shared by TeamUp services.

ErrorDetail carries no behaviour; TeamUpError in teamup_service_libs wraps it
for raising, and the factories there fill in trace context.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from teamup_core.error_enums import ErrorCode, ModerationErrorCode


class ErrorDetail(BaseModel):
    """One failure, identified by code, service, operation and correlation id."""

    model_config = ConfigDict(frozen=True)

    error_code: ErrorCode | ModerationErrorCode
    message: str
    correlation_id: UUID
    timestamp: datetime
    service: str
    operation: str
    details: dict[str, Any] = Field(default_factory=dict)
    stack_trace: str | None = None
    trace_id: str | None = None
    span_id: str | None = None
