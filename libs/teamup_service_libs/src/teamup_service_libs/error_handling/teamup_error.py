"""
Core exception class for TeamUp structured error handling.

TeamUpError wraps an ErrorDetail and records itself on the active
OpenTelemetry span so failed operations are visible in traces.
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from teamup_core.models.error_models import ErrorDetail


class TeamUpError(Exception):
    """Exception carrying a structured, immutable ErrorDetail."""

    def __init__(self, error_detail: ErrorDetail) -> None:
        super().__init__(f"[{error_detail.error_code.value}] {error_detail.message}")
        self.error_detail = error_detail
        self._record_to_span()

    def _record_to_span(self) -> None:
        span = trace.get_current_span()
        if span is None or not span.is_recording():
            return

        span.record_exception(self)
        span.set_status(Status(StatusCode.ERROR, self.error_detail.message))
        span.set_attribute("error", True)
        span.set_attribute("error.code", self.error_code)
        span.set_attribute("error.message", self.error_detail.message)
        span.set_attribute("error.service", self.error_detail.service)
        span.set_attribute("error.operation", self.error_detail.operation)
        span.set_attribute("correlation_id", self.correlation_id)

        for key, value in self.error_detail.details.items():
            if isinstance(value, (str, bool, int, float)):
                span.set_attribute(f"error.details.{key}", value)
            else:
                span.set_attribute(f"error.details.{key}", str(value))

    @property
    def correlation_id(self) -> str:
        return str(self.error_detail.correlation_id)

    @property
    def error_code(self) -> str:
        return self.error_detail.error_code.value

    @property
    def service(self) -> str:
        return self.error_detail.service

    @property
    def operation(self) -> str:
        return self.error_detail.operation

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging and API responses."""
        return {
            "error": str(self),
            "error_detail": self.error_detail.model_dump(mode="json"),
        }
