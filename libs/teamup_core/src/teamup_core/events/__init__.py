from .envelope import EventEnvelope
from .moderation_events import NewAssignmentV1

__all__ = ["EventEnvelope", "NewAssignmentV1"]
