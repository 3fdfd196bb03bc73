"""Per-event mutual exclusion for replay runs.

The fanout engine does not serialize runs over one event. Two overlapping
replays would interleave their delete/recreate steps, so the HTTP layer holds
one of these locks around every replay.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock
from typing import Any

import redis

from fanout_debugger.core.settings import settings

logger = logging.getLogger(__name__)

# Entries live only while some caller holds or waits on the event's lock.
_LOCAL_LOCKS: dict[str, Lock] = {}
_LOCAL_HOLDERS: dict[str, int] = {}
_REGISTRY_LOCK = Lock()


def _checkout_local_lock(event_id: str) -> Lock:
    with _REGISTRY_LOCK:
        lock = _LOCAL_LOCKS.setdefault(event_id, Lock())
        _LOCAL_HOLDERS[event_id] = _LOCAL_HOLDERS.get(event_id, 0) + 1
        return lock


def _return_local_lock(event_id: str) -> None:
    with _REGISTRY_LOCK:
        remaining = _LOCAL_HOLDERS[event_id] - 1
        if remaining:
            _LOCAL_HOLDERS[event_id] = remaining
        else:
            del _LOCAL_HOLDERS[event_id]
            del _LOCAL_LOCKS[event_id]


class EventLockedError(Exception):
    """Raised when another run already holds the lock for an event."""

    def __init__(self, event_id: str) -> None:
        super().__init__(f"Event {event_id} is already being processed")
        self.event_id = event_id


class EventLockService:
    """Hands out exclusive per-event locks, backed by Redis when configured."""

    def __init__(
        self,
        redis_client: Any | None = None,
        *,
        timeout_seconds: float | None = None,
        blocking_seconds: float | None = None,
    ) -> None:
        self._redis = redis_client
        self.timeout_seconds = (
            settings.event_lock_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.blocking_seconds = (
            settings.event_lock_blocking_seconds if blocking_seconds is None else blocking_seconds
        )

    @staticmethod
    def lock_name(event_id: str) -> str:
        return f"fanout:event:{event_id}"

    @contextmanager
    def hold(self, event_id: str) -> Iterator[None]:
        """Hold the lock for ``event_id`` for the duration of the block.

        Raises:
            EventLockedError: If the lock cannot be acquired in time.
        """
        if self._redis is not None:
            with self._hold_redis(event_id):
                yield
            return

        lock = _checkout_local_lock(event_id)
        try:
            timeout = self.blocking_seconds if self.blocking_seconds > 0 else -1
            if not lock.acquire(blocking=self.blocking_seconds > 0, timeout=timeout):
                raise EventLockedError(event_id)
            try:
                yield
            finally:
                lock.release()
        finally:
            _return_local_lock(event_id)

    @contextmanager
    def _hold_redis(self, event_id: str) -> Iterator[None]:
        lock = self._redis.lock(
            self.lock_name(event_id),
            timeout=self.timeout_seconds,
            blocking=self.blocking_seconds > 0,
            blocking_timeout=self.blocking_seconds or None,
        )
        if not lock.acquire():
            raise EventLockedError(event_id)
        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError:
                # Lock expired while the run was still going.
                logger.warning("Lock for event %s expired before release", event_id)


    def ping(self) -> bool | None:
        """Return whether the Redis backend answers, or None for the local backend."""
        if self._redis is None:
            return None
        try:
            return bool(self._redis.ping())
        except redis.exceptions.RedisError:
            logger.warning("Redis health check failed", exc_info=True)
            return False


_lock_service: EventLockService | None = None


def get_event_lock_service() -> EventLockService:
    """Return the shared event lock service for this process."""
    global _lock_service
    if _lock_service is None:
        client = redis.Redis.from_url(settings.redis_url) if settings.redis_url else None
        _lock_service = EventLockService(client)
    return _lock_service
