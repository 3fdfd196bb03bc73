# src/fanout_debugger/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import events_router, system_router, users_router

__all__ = [
    "events_router",
    "system_router",
    "users_router",
]
