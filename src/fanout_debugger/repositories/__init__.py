"""Repositories wrapping database access."""

from .fanout_repo import ClearedEventData, FanoutRepository, SqlAlchemyFanoutRepository

__all__ = ["ClearedEventData", "FanoutRepository", "SqlAlchemyFanoutRepository"]
