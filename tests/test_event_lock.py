"""Tests for per-event replay locks."""

from unittest.mock import MagicMock

import pytest
import redis

from fanout_debugger.services import event_lock
from fanout_debugger.services.event_lock import EventLockedError, EventLockService


def test_local_lock_rejects_second_holder() -> None:
    service = EventLockService(None, blocking_seconds=0)
    with service.hold("evt-local-1"):
        with pytest.raises(EventLockedError) as excinfo:
            with service.hold("evt-local-1"):
                pass
    assert excinfo.value.event_id == "evt-local-1"


def test_local_lock_released_after_block() -> None:
    service = EventLockService(None, blocking_seconds=0)
    with service.hold("evt-local-2"):
        pass
    with service.hold("evt-local-2"):
        pass


def test_local_lock_released_on_error() -> None:
    service = EventLockService(None, blocking_seconds=0)
    with pytest.raises(RuntimeError):
        with service.hold("evt-local-3"):
            raise RuntimeError("boom")
    with service.hold("evt-local-3"):
        pass


def test_different_events_do_not_contend() -> None:
    service = EventLockService(None, blocking_seconds=0)
    with service.hold("evt-a"), service.hold("evt-b"):
        pass


def test_redis_lock_acquired_and_released() -> None:
    client = MagicMock()
    lock = client.lock.return_value
    lock.acquire.return_value = True
    service = EventLockService(client, timeout_seconds=12, blocking_seconds=0)

    with service.hold("evt-r1"):
        lock.release.assert_not_called()

    client.lock.assert_called_once_with(
        "fanout:event:evt-r1", timeout=12, blocking=False, blocking_timeout=None
    )
    lock.release.assert_called_once()


def test_redis_lock_busy_raises() -> None:
    client = MagicMock()
    client.lock.return_value.acquire.return_value = False
    service = EventLockService(client, blocking_seconds=0)

    with pytest.raises(EventLockedError):
        with service.hold("evt-r2"):
            pass


def test_redis_lock_expired_release_is_logged(caplog) -> None:
    client = MagicMock()
    lock = client.lock.return_value
    lock.acquire.return_value = True
    lock.release.side_effect = redis.exceptions.LockError("expired")
    service = EventLockService(client, blocking_seconds=0)

    with service.hold("evt-r3"):
        pass
    assert "expired before release" in caplog.text


def test_local_registry_shrinks_after_release() -> None:
    service = EventLockService(None, blocking_seconds=0)
    baseline = len(event_lock._LOCAL_LOCKS)

    with service.hold("evt-registry-1"):
        assert "evt-registry-1" in event_lock._LOCAL_LOCKS
        with pytest.raises(EventLockedError):
            with service.hold("evt-registry-1"):
                pass
        # The rejected caller must not drop the entry the holder still uses.
        assert "evt-registry-1" in event_lock._LOCAL_LOCKS

    assert len(event_lock._LOCAL_LOCKS) == baseline
    assert "evt-registry-1" not in event_lock._LOCAL_HOLDERS


def test_local_registry_shrinks_after_error() -> None:
    service = EventLockService(None, blocking_seconds=0)
    baseline = len(event_lock._LOCAL_LOCKS)
    with pytest.raises(RuntimeError):
        with service.hold("evt-registry-2"):
            raise RuntimeError("boom")
    assert len(event_lock._LOCAL_LOCKS) == baseline


def test_ping_local_backend_is_none() -> None:
    assert EventLockService(None).ping() is None


def test_ping_redis_backend() -> None:
    client = MagicMock()
    client.ping.return_value = True
    assert EventLockService(client).ping() is True

    client.ping.side_effect = redis.exceptions.ConnectionError("refused")
    assert EventLockService(client).ping() is False
