"""
Shared protocol definitions for teamup_service_libs.

These protocols define the contracts for shared infrastructure components
provided by teamup_service_libs.
"""

from __future__ import annotations

from typing import Protocol, TypeVar

from pydantic import BaseModel
from teamup_core.events.envelope import EventEnvelope

T_EventPayload = TypeVar("T_EventPayload", bound=BaseModel)

__all__ = [
    "KafkaPublisherProtocol",
    "T_EventPayload",
]


class KafkaPublisherProtocol(Protocol):
    """Protocol for Kafka event publishing."""

    async def start(self) -> None:
        """Start the underlying producer."""
        ...

    async def stop(self) -> None:
        """Stop the underlying producer and release its connections."""
        ...

    async def publish(
        self,
        topic: str,
        envelope: EventEnvelope[T_EventPayload],
        key: str | None = None,
    ) -> None:
        """
        Publish an event envelope to a Kafka topic.

        Args:
            topic: Kafka topic to publish to
            envelope: Event envelope carrying the payload
            key: Optional message key for partitioning

        Raises:
            KafkaError: If the broker does not acknowledge the send
        """
        ...
