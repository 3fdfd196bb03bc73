# src/fanout_debugger/services/__init__.py
"""Business logic services for the Fanout Debugger application."""

from .event_lock import EventLockedError, EventLockService
from .fanout import EventInput, EventNotFoundError, FanoutError, FanoutResult, FanoutService

__all__ = [
    "EventInput",
    "EventLockService",
    "EventLockedError",
    "EventNotFoundError",
    "FanoutError",
    "FanoutResult",
    "FanoutService",
]
