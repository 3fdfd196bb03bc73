# src/fanout_debugger/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .events import router as events_router
from .system import router as system_router
from .users import router as users_router

__all__ = [
    "events_router",
    "system_router",
    "users_router",
]
