"""Envelope wrapping every event TeamUp services publish to Kafka."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

T_EventData = TypeVar("T_EventData", bound=BaseModel)


class EventEnvelope(BaseModel, Generic[T_EventData]):
    """Identity and routing data around one event payload.

    Producers set event_id deterministically when redelivery must be
    recognisable downstream; otherwise a random id is generated.
    """

    event_id: UUID = Field(default_factory=uuid4)
    event_type: str
    event_timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    source_service: str
    schema_version: int = 1
    correlation_id: UUID = Field(default_factory=uuid4)
    data: T_EventData
    # Routing hints such as the partition key
    metadata: dict[str, Any] | None = None
