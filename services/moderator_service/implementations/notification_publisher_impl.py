"""
Kafka notification publisher for Moderator Service.

Announces NEW_ASSIGNMENT notifications. Delivery is at-least-once from the
scheduler's point of view: a successful send means the broker acknowledged
it, nothing more. Re-sends of the same binding carry the same envelope
event_id so consumers can deduplicate.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import NAMESPACE_OID, UUID, uuid5

from teamup_core.event_enums import ModerationEvent, topic_name
from teamup_core.events.envelope import EventEnvelope
from teamup_core.events.moderation_events import NewAssignmentV1
from teamup_service_libs.error_handling import raise_kafka_publish_error
from teamup_service_libs.logging_utils import create_service_logger
from teamup_service_libs.protocols import KafkaPublisherProtocol

from services.moderator_service.protocols import NotificationPublisherProtocol

if TYPE_CHECKING:
    from services.moderator_service.config import Settings

logger = create_service_logger("moderator_service.notification_publisher")


class KafkaNotificationPublisher(NotificationPublisherProtocol):
    """Publishes assignment notifications to the configured Kafka topic."""

    def __init__(self, kafka_bus: KafkaPublisherProtocol, settings: "Settings") -> None:
        self.kafka_bus = kafka_bus
        self.settings = settings

    def build_envelope(
        self, notification: NewAssignmentV1, correlation_id: UUID
    ) -> EventEnvelope[NewAssignmentV1]:
        topic = self.settings.ASSIGNMENT_TOPIC
        # Deterministic so a re-announced binding deduplicates downstream
        deterministic_id = uuid5(
            NAMESPACE_OID,
            f"{topic}:{notification.event_id}:{notification.moderator_id}",
        )
        return EventEnvelope[NewAssignmentV1](
            event_id=deterministic_id,
            event_type=topic_name(ModerationEvent.NEW_ASSIGNMENT),
            event_timestamp=datetime.now(timezone.utc),
            source_service=self.settings.SERVICE_NAME,
            correlation_id=correlation_id,
            data=notification,
            metadata={
                "partition_key": str(notification.event_id),
                "kind": notification.kind,
            },
        )

    async def publish(self, notification: NewAssignmentV1, correlation_id: UUID) -> None:
        topic = self.settings.ASSIGNMENT_TOPIC
        envelope = self.build_envelope(notification, correlation_id)

        logger.debug(
            f"Publishing {notification.kind} for event {notification.event_id} "
            f"to moderator {notification.moderator_id} on topic '{topic}'"
        )

        try:
            await self.kafka_bus.publish(
                topic=topic,
                envelope=envelope,
                key=str(notification.event_id),
            )
        except Exception as e:
            raise_kafka_publish_error(
                service=self.settings.SERVICE_NAME,
                operation="publish_new_assignment",
                topic=topic,
                message=f"Failed to publish assignment of event {notification.event_id}: {e}",
                correlation_id=correlation_id,
                event_id=notification.event_id,
                moderator_id=notification.moderator_id,
                error_type=type(e).__name__,
            )
