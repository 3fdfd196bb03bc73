# src/fanout_debugger/models/fanout_log.py
"""SQLAlchemy model for the append-only fanout trace."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from fanout_debugger.db.session import Base
from fanout_debugger.db.time import utcnow


class FanoutStage(str, Enum):
    """Named steps of the fanout state machine."""

    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    RECIPIENT_RESOLVED = "RECIPIENT_RESOLVED"
    NOTIFICATION_CREATED = "NOTIFICATION_CREATED"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class FanoutLog(Base):
    """One trace entry recorded while an event passed through a stage."""

    __tablename__ = "fanout_logs"
    # SQLite would otherwise reuse ids freed when replay purges a trace.
    __table_args__ = {"sqlite_autoincrement": True}

    # Monotonic key; trace order is creation order, not timestamp order.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stage: Mapped[str] = mapped_column(String(32), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
