"""
Moderation event models published by the moderator service.

Consumers (moderator clients, audit) must treat these as at-least-once and
deduplicate on (event_id, kind).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class NewAssignmentV1(BaseModel):
    """Event published when an event awaiting moderation is bound to a moderator."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["NEW_ASSIGNMENT"] = Field(default="NEW_ASSIGNMENT")
    event_id: int = Field(description="Identifier of the event awaiting moderation")
    moderator_id: int = Field(description="Moderator the event was assigned to")
    assigned_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
