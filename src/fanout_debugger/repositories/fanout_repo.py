"""Data access for events, users, followers, notifications and fanout logs."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from fanout_debugger.models import Event, FanoutLog, FanoutStage, Follower, Notification, User

__all__ = ["ClearedEventData", "FanoutRepository", "SqlAlchemyFanoutRepository"]


@dataclass(frozen=True)
class ClearedEventData:
    """Row counts removed when an event's derived data is purged."""

    notifications: int
    logs: int


class FanoutRepository(Protocol):
    """Persistence operations the fanout engine depends on."""

    def create_event(
        self,
        *,
        actor_id: str,
        type: str,
        target_id: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> Event: ...

    def get_event_by_id(self, event_id: str) -> Event | None: ...

    def get_user_by_id(self, user_id: str) -> User | None: ...

    def get_followers(self, user_id: str) -> list[User]: ...

    def create_fanout_log(
        self,
        event_id: str,
        stage: FanoutStage,
        data: Mapping[str, Any] | None = None,
    ) -> FanoutLog: ...

    def create_notification(self, user_id: str, event_id: str, message: str) -> Notification: ...

    def clear_event_data(self, event_id: str) -> ClearedEventData: ...


class SqlAlchemyFanoutRepository:
    """Thin wrapper around database access for fanout entities.

    Every write commits immediately so that an aborted run leaves a
    consistent, truncated trace behind.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def _persist(self, instance: Any) -> None:
        self.session.add(instance)
        self.session.commit()
        self.session.refresh(instance)

    # --- Events -----------------------------------------------------------------------
    def create_event(
        self,
        *,
        actor_id: str,
        type: str,
        target_id: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> Event:
        """Insert a new event and return it with id and created_at assigned."""
        event = Event(
            actor_id=actor_id,
            type=type,
            target_id=target_id,
            metadata_=dict(metadata or {}),
        )
        self._persist(event)
        return event

    def get_event_by_id(self, event_id: str) -> Event | None:
        """Return an event by identifier."""
        return self.session.get(Event, event_id)

    def list_events(self) -> list[Event]:
        """Return all events, newest first."""
        result = self.session.execute(select(Event).order_by(Event.created_at.desc()))
        return list(result.scalars())

    # --- Users and followers ------------------------------------------------------------
    def get_user_by_id(self, user_id: str) -> User | None:
        """Return a user by identifier."""
        return self.session.get(User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        """Return a user by unique username."""
        result = self.session.execute(select(User).where(User.username == username))
        return result.scalars().first()

    def list_users(self) -> list[User]:
        """Return all users sorted by username."""
        result = self.session.execute(select(User).order_by(User.username))
        return list(result.scalars())

    def get_followers(self, user_id: str) -> list[User]:
        """Return users following ``user_id`` in the order the edges were created."""
        result = self.session.execute(
            select(User)
            .join(Follower, Follower.user_id == User.id)
            .where(Follower.follows_user_id == user_id)
            .order_by(Follower.id)
        )
        return list(result.scalars())

    def get_following(self, user_id: str) -> list[User]:
        """Return users that ``user_id`` follows."""
        result = self.session.execute(
            select(User)
            .join(Follower, Follower.follows_user_id == User.id)
            .where(Follower.user_id == user_id)
            .order_by(Follower.id)
        )
        return list(result.scalars())

    # --- Fanout logs ------------------------------------------------------------------
    def create_fanout_log(
        self,
        event_id: str,
        stage: FanoutStage,
        data: Mapping[str, Any] | None = None,
    ) -> FanoutLog:
        """Append a trace entry for ``event_id``."""
        log = FanoutLog(event_id=event_id, stage=FanoutStage(stage).value, data=dict(data or {}))
        self._persist(log)
        return log

    def get_fanout_logs(self, event_id: str) -> list[FanoutLog]:
        """Return the trace for an event in creation order."""
        result = self.session.execute(
            select(FanoutLog).where(FanoutLog.event_id == event_id).order_by(FanoutLog.id)
        )
        return list(result.scalars())

    # --- Notifications ----------------------------------------------------------------
    def create_notification(self, user_id: str, event_id: str, message: str) -> Notification:
        """Insert a notification for one recipient."""
        notification = Notification(user_id=user_id, event_id=event_id, message=message)
        self._persist(notification)
        return notification

    def get_notifications_for_event(self, event_id: str) -> list[Notification]:
        """Return notifications produced by an event, newest first."""
        result = self.session.execute(
            select(Notification)
            .where(Notification.event_id == event_id)
            .order_by(Notification.created_at.desc())
        )
        return list(result.scalars())

    def get_notifications_for_user(self, user_id: str) -> list[Notification]:
        """Return a user's notifications, newest first."""
        result = self.session.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        return list(result.scalars())

    def mark_notification_read(
        self, notification_id: str, user_id: str | None = None
    ) -> Notification | None:
        """Flag a notification as read.

        Returns None when the notification does not exist or belongs to a
        different user than ``user_id``.
        """
        notification = self.session.get(Notification, notification_id)
        if notification is None or (user_id is not None and notification.user_id != user_id):
            return None
        notification.is_read = True
        self._persist(notification)
        return notification

    # --- Replay -----------------------------------------------------------------------
    def clear_event_data(self, event_id: str) -> ClearedEventData:
        """Delete every notification and fanout log derived from ``event_id``."""
        notif_result = self.session.execute(
            delete(Notification).where(Notification.event_id == event_id)
        )
        logs_result = self.session.execute(
            delete(FanoutLog).where(FanoutLog.event_id == event_id)
        )
        self.session.commit()
        return ClearedEventData(
            notifications=notif_result.rowcount or 0,
            logs=logs_result.rowcount or 0,
        )
