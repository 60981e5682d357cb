"""TeamUp shared service infrastructure: logging, Kafka publishing, error handling."""

from .kafka_client import KafkaBus
from .logging_utils import (
    bind_correlation_context,
    configure_service_logging,
    create_service_logger,
)
from .protocols import KafkaPublisherProtocol

__all__ = [
    "KafkaBus",
    "KafkaPublisherProtocol",
    "bind_correlation_context",
    "configure_service_logging",
    "create_service_logger",
]
