# src/fanout_debugger/models/event.py
"""SQLAlchemy model for actor events that trigger fanout."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from fanout_debugger.db.session import Base
from fanout_debugger.db.time import utcnow
from fanout_debugger.models.user import new_uuid


class EventType(str, Enum):
    """Closed set of actions an actor can perform against a target."""

    LIKE = "like"
    COMMENT = "comment"
    FOLLOW = "follow"


class Event(Base):
    """An action performed by ``actor_id`` against ``target_id``.

    Events are immutable once created. Replay deletes only the derived
    notifications and fanout logs, never the event itself.
    """

    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    # No foreign keys: a trace must still be producible when the actor record is gone.
    actor_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    # Column is named "metadata"; the attribute avoids clashing with DeclarativeBase.metadata.
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
