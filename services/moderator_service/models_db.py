"""SQLAlchemy models for Moderator Service.

The events and moderator_sessions tables are written by other platform
components; this service reads them and only ever inserts into
assigned_events (plus the PENDING_REVIEW -> ASSIGNED status transition).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy import (
    Enum as SQLAlchemyEnum,
)
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func
from teamup_core.status_enums import EventStatus

# SQLite only autoincrements INTEGER primary keys
Identifier = BigInteger().with_variant(Integer, "sqlite")


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class Event(Base):
    """A user-submitted event going through moderation."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    status: Mapped[EventStatus] = mapped_column(
        SQLAlchemyEnum(
            EventStatus,
            name="event_status_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        default=EventStatus.PENDING_REVIEW,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("ix_events_status_created", "status", "created_at"),)


class AssignedEvent(Base):
    """Binding of an event to the moderator reviewing it.

    The unique constraint on event_id is what keeps concurrent scheduler
    replicas from assigning one event twice.
    """

    __tablename__ = "assigned_events"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        Identifier, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    moderator_id: Mapped[int] = mapped_column(Identifier, nullable=False, index=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (UniqueConstraint("event_id", name="uq_assigned_events_event_id"),)


class ModeratorSession(Base):
    """An open moderator session. Owned by session management; read-only here."""

    __tablename__ = "moderator_sessions"

    moderator_id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=False)
    started_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
