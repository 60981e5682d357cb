"""
TeamUp Common Core Package.
"""

from .error_enums import ErrorCode, ModerationErrorCode
from .event_enums import ModerationEvent, topic_name
from .events.envelope import EventEnvelope
from .events.moderation_events import NewAssignmentV1
from .models.error_models import ErrorDetail
from .status_enums import EventStatus

__all__ = [
    "ErrorCode",
    "ErrorDetail",
    "EventEnvelope",
    "EventStatus",
    "ModerationErrorCode",
    "ModerationEvent",
    "NewAssignmentV1",
    "topic_name",
]
