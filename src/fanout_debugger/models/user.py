# src/fanout_debugger/models/user.py
"""SQLAlchemy models for users and the follower graph."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fanout_debugger.db.session import Base
from fanout_debugger.db.time import utcnow


def new_uuid() -> str:
    """Return a fresh random identifier in canonical string form."""
    return str(uuid.uuid4())


class User(Base):
    """A user who can act on targets and receive notifications.

    Owned by an external user-management process; the fanout engine only reads it.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class Follower(Base):
    """Directed edge: ``user_id`` follows ``follows_user_id``."""

    __tablename__ = "followers"
    __table_args__ = (
        UniqueConstraint("user_id", "follows_user_id"),
        {"sqlite_autoincrement": True},
    )

    # Integer key keeps follower listings in insertion order.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    follows_user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
