"""
teamup_core.error_enums - Centralized error code definitions.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    KAFKA_PUBLISH_ERROR = "KAFKA_PUBLISH_ERROR"

    # Generic infrastructure errors (can be used by any service)
    TIMEOUT = "TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    PROCESSING_ERROR = "PROCESSING_ERROR"  # Internal processing failures


class ModerationErrorCode(str, Enum):
    """
    Specific error codes for the moderator assignment workflow.
    """

    ASSIGNMENT_CONFLICT = "ASSIGNMENT_CONFLICT"
    ASSIGNMENT_STORAGE_ERROR = "ASSIGNMENT_STORAGE_ERROR"
    BACKLOG_READ_ERROR = "BACKLOG_READ_ERROR"
    WORKER_POOL_ERROR = "WORKER_POOL_ERROR"
