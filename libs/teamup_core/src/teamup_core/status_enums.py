"""Status enums for the event moderation state machine.

EventStatus: lifecycle of a user-submitted event through moderation.
"""

from __future__ import annotations

from enum import Enum


class EventStatus(str, Enum):
    """Moderation lifecycle of an event.

    Intake creates events in PENDING_REVIEW. Only the assignment scheduler moves an
    event to ASSIGNED; the moderator client later moves it to PUBLISHED or REJECTED.
    """

    PENDING_REVIEW = "pending_review"
    ASSIGNED = "assigned"
    REJECTED = "rejected"
    PUBLISHED = "published"
