"""Configuration settings for Moderator Service.

Environment variables are prefixed with 'MODERATOR_' for service isolation.
"""

from __future__ import annotations

from dotenv import find_dotenv, load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from teamup_core.event_enums import ModerationEvent, topic_name

# Load .env file from repository root, regardless of current working directory
load_dotenv(find_dotenv(".env"))


class Settings(BaseSettings):
    """Configuration settings for Moderator Service."""

    model_config = SettingsConfigDict(env_prefix="MODERATOR_", extra="ignore")

    SERVICE_NAME: str = "moderator_service"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    HTTP_PORT: int = 8090

    # Development/testing flag: in-memory stores instead of PostgreSQL
    USE_MOCK_REPOSITORY: bool = False

    # Assignment scheduler
    SCHEDULER_ENABLED: bool = True
    SCAN_DELAY_MS: int = Field(default=5000, gt=0)  # delay between pass completions
    INITIAL_DELAY_MS: int = Field(default=0, ge=0)
    BACKLOG_BATCH_SIZE: int | None = Field(default=500, gt=0)  # None reads the whole backlog
    MAX_CONSECUTIVE_STORAGE_FAILURES: int = Field(default=3, gt=0)
    SHUTDOWN_TIMEOUT_SECONDS: float = 5.0
    STARVATION_WARNING_SECONDS: int = 3600

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str = "kafka:9092"  # Docker service name
    PRODUCER_CLIENT_ID: str = "moderator-service-producer"
    ASSIGNMENT_TOPIC: str = topic_name(ModerationEvent.NEW_ASSIGNMENT)

    # Database
    DATABASE_URL_OVERRIDE: str | None = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "teamup"
    DB_USER: str = "teamup"
    DB_PASSWORD: str = "teamup"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_PRE_PING: bool = True
    DATABASE_POOL_RECYCLE: int = 3600

    @property
    def DATABASE_URL(self) -> str:
        """Return the async PostgreSQL URL, or the explicit override when set."""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE

        from urllib.parse import quote_plus

        return (
            f"postgresql+asyncpg://{self.DB_USER}:{quote_plus(self.DB_PASSWORD)}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def scan_delay_seconds(self) -> float:
        return self.SCAN_DELAY_MS / 1000

    @property
    def initial_delay_seconds(self) -> float:
        return self.INITIAL_DELAY_MS / 1000

    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"
