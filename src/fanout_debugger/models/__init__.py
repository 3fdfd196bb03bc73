# src/fanout_debugger/models/__init__.py
"""SQLAlchemy models for the Fanout Debugger application."""

from .event import Event, EventType
from .fanout_log import FanoutLog, FanoutStage
from .notification import Notification
from .user import Follower, User

__all__ = [
    "Event", "EventType",
    "FanoutLog", "FanoutStage",
    "Notification",
    "Follower", "User",
]
