"""
Kafka producer wrapper for TeamUp services.

Every record carries the envelope identity (event_id, event_type,
correlation_id, source_service) as Kafka headers, so consumers can
deduplicate and route without deserializing the JSON body.
"""

from __future__ import annotations

import json
import os
from typing import Any

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaConnectionError, KafkaTimeoutError
from teamup_core.events.envelope import EventEnvelope

from .logging_utils import create_service_logger
from .protocols import T_EventPayload

logger = create_service_logger("kafka-client")

KAFKA_BOOTSTRAP_SERVERS = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "kafka:9092")


def envelope_headers(envelope: EventEnvelope[Any]) -> list[tuple[str, bytes]]:
    """Kafka headers describing an envelope, UTF-8 encoded."""
    return [
        ("event_id", str(envelope.event_id).encode("utf-8")),
        ("event_type", envelope.event_type.encode("utf-8")),
        ("correlation_id", str(envelope.correlation_id).encode("utf-8")),
        ("source_service", envelope.source_service.encode("utf-8")),
        ("schema_version", str(envelope.schema_version).encode("utf-8")),
    ]


class KafkaBus:
    """Idempotent, fully acknowledged producer publishing EventEnvelopes as JSON."""

    def __init__(
        self,
        *,
        client_id: str,
        bootstrap_servers: str = KAFKA_BOOTSTRAP_SERVERS,
        request_timeout_ms: int = 30000,
    ) -> None:
        self.bootstrap_servers = bootstrap_servers
        self.client_id = client_id
        self.producer = AIOKafkaProducer(
            bootstrap_servers=self.bootstrap_servers,
            client_id=self.client_id,
            value_serializer=lambda v: json.dumps(v).encode("utf-8"),
            acks="all",
            enable_idempotence=True,
            request_timeout_ms=request_timeout_ms,
        )
        self._started = False

    @property
    def is_started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            return
        try:
            await self.producer.start()
        except KafkaConnectionError as e:
            logger.error(
                "Kafka producer failed to start",
                client_id=self.client_id,
                bootstrap_servers=self.bootstrap_servers,
                error=str(e),
            )
            raise
        self._started = True
        logger.info("Kafka producer started", client_id=self.client_id)

    async def stop(self) -> None:
        try:
            # Stop even when never started so a half-built producer releases its sockets
            await self.producer.stop()
        except Exception as e:
            logger.error(
                f"Error stopping Kafka producer: {e}", client_id=self.client_id, exc_info=True
            )
            return
        finally:
            self._started = False
        logger.info("Kafka producer stopped", client_id=self.client_id)

    async def publish(
        self,
        topic: str,
        envelope: EventEnvelope[T_EventPayload],
        key: str | None = None,
    ) -> None:
        """Send one envelope and wait for the broker acknowledgement.

        Starts the producer on first use. Broker errors propagate to the caller,
        which decides whether the failure is fatal.
        """
        if not self._started:
            logger.warning(
                "Kafka producer not started, starting on first publish", client_id=self.client_id
            )
            await self.start()

        try:
            record_metadata = await self.producer.send_and_wait(
                topic,
                value=envelope.model_dump(mode="json"),
                key=key.encode("utf-8") if key else None,
                headers=envelope_headers(envelope),
            )
        except KafkaTimeoutError:
            logger.error(
                "Timed out publishing to Kafka",
                client_id=self.client_id,
                topic=topic,
                event_id=str(envelope.event_id),
            )
            raise
        except Exception as e:
            logger.error(
                f"Error publishing to Kafka: {e}",
                client_id=self.client_id,
                topic=topic,
                event_id=str(envelope.event_id),
                exc_info=True,
            )
            raise

        logger.debug(
            "Published to Kafka",
            topic=topic,
            partition=record_metadata.partition,
            offset=record_metadata.offset,
            key=key,
            event_id=str(envelope.event_id),
            correlation_id=str(envelope.correlation_id),
        )
