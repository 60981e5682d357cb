"""Tests for the KafkaBus producer wrapper."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiokafka.errors import KafkaConnectionError, KafkaTimeoutError
from teamup_core.events.envelope import EventEnvelope
from teamup_core.events.moderation_events import NewAssignmentV1
from teamup_service_libs.kafka_client import KafkaBus


@pytest.fixture
def mock_producer() -> Iterator[MagicMock]:
    with patch("teamup_service_libs.kafka_client.AIOKafkaProducer") as producer_cls:
        producer = producer_cls.return_value
        producer.start = AsyncMock()
        producer.stop = AsyncMock()
        producer.send_and_wait = AsyncMock(return_value=MagicMock(partition=0, offset=11))
        yield producer_cls


@pytest.fixture
def envelope() -> EventEnvelope[NewAssignmentV1]:
    return EventEnvelope[NewAssignmentV1](
        event_type="teamup.moderator.assignment.created.v1",
        source_service="moderator_service",
        data=NewAssignmentV1(event_id=4, moderator_id=2),
    )


def test_producer_is_idempotent_with_full_acks(mock_producer: MagicMock) -> None:
    KafkaBus(client_id="moderator-producer", bootstrap_servers="localhost:9092")

    kwargs = mock_producer.call_args.kwargs
    assert kwargs["acks"] == "all"
    assert kwargs["enable_idempotence"] is True
    assert kwargs["bootstrap_servers"] == "localhost:9092"
    assert kwargs["value_serializer"]({"a": 1}) == b'{"a": 1}'


@pytest.mark.asyncio
async def test_start_is_idempotent(mock_producer: MagicMock) -> None:
    bus = KafkaBus(client_id="moderator-producer")

    await bus.start()
    await bus.start()

    mock_producer.return_value.start.assert_awaited_once()
    assert bus.is_started


@pytest.mark.asyncio
async def test_start_propagates_connection_error(mock_producer: MagicMock) -> None:
    mock_producer.return_value.start.side_effect = KafkaConnectionError()
    bus = KafkaBus(client_id="moderator-producer")

    with pytest.raises(KafkaConnectionError):
        await bus.start()

    assert not bus.is_started


@pytest.mark.asyncio
async def test_publish_sends_json_envelope_with_key(
    mock_producer: MagicMock, envelope: EventEnvelope[NewAssignmentV1]
) -> None:
    bus = KafkaBus(client_id="moderator-producer")
    await bus.start()

    await bus.publish("teamup.moderator.assignment.created.v1", envelope, key="4")

    send = mock_producer.return_value.send_and_wait
    send.assert_awaited_once()
    assert send.call_args.args[0] == "teamup.moderator.assignment.created.v1"
    assert send.call_args.kwargs["key"] == b"4"
    assert send.call_args.kwargs["value"]["data"]["event_id"] == 4
    headers = dict(send.call_args.kwargs["headers"])
    assert headers["event_id"] == str(envelope.event_id).encode()
    assert headers["correlation_id"] == str(envelope.correlation_id).encode()
    assert headers["event_type"] == b"teamup.moderator.assignment.created.v1"
    assert headers["source_service"] == b"moderator_service"


@pytest.mark.asyncio
async def test_publish_starts_producer_lazily(
    mock_producer: MagicMock, envelope: EventEnvelope[NewAssignmentV1]
) -> None:
    bus = KafkaBus(client_id="moderator-producer")

    await bus.publish("topic", envelope)

    mock_producer.return_value.start.assert_awaited_once()
    assert mock_producer.return_value.send_and_wait.call_args.kwargs["key"] is None


@pytest.mark.asyncio
async def test_publish_propagates_timeout(
    mock_producer: MagicMock, envelope: EventEnvelope[NewAssignmentV1]
) -> None:
    mock_producer.return_value.send_and_wait.side_effect = KafkaTimeoutError()
    bus = KafkaBus(client_id="moderator-producer")
    await bus.start()

    with pytest.raises(KafkaTimeoutError):
        await bus.publish("topic", envelope, key="4")


@pytest.mark.asyncio
async def test_stop_swallows_producer_errors(mock_producer: MagicMock) -> None:
    mock_producer.return_value.stop.side_effect = RuntimeError("already closed")
    bus = KafkaBus(client_id="moderator-producer")

    await bus.stop()

    assert not bus.is_started
