"""
teamup_core.event_enums - Enums and helpers for the event-driven architecture.
"""

from __future__ import annotations

from enum import Enum


class ModerationEvent(str, Enum):
    # -------------  Moderator assignment  -------------#
    NEW_ASSIGNMENT = "moderator.assignment.created"


_TOPIC_MAPPING = {
    ModerationEvent.NEW_ASSIGNMENT: "teamup.moderator.assignment.created.v1",
}


def topic_name(event: ModerationEvent) -> str:
    """
    Convert a ModerationEvent to its corresponding Kafka topic name.
    """
    if event not in _TOPIC_MAPPING:
        mapped_events_summary = "\n".join(
            [f"- {e.name} ({e.value}) ➜ '{t}'" for e, t in _TOPIC_MAPPING.items()],
        )
        raise ValueError(
            f"Event '{event.name} ({event.value})' does not have an explicit topic mapping. "
            f"All events intended for Kafka must have deliberate topic contracts defined. "
            f"Currently mapped events:\n{mapped_events_summary}",
        )
    return _TOPIC_MAPPING[event]
