"""Fanout and replay engine.

Turns one event into zero or more notifications while recording every
decision as a trace entry. Fresh events and replays share a single stage
routine; the only differences are where the event comes from and whether
trace payloads are tagged with ``is_replay``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from fanout_debugger.db.time import elapsed_ms
from fanout_debugger.models import Event, FanoutLog, Notification
from fanout_debugger.repositories.fanout_repo import FanoutRepository
from fanout_debugger.services.messages import generate_notification_message
from fanout_debugger.services.recipients import get_recipient_rule, resolve_recipients
from fanout_debugger.services.stages import (
    Completed,
    Failed,
    NotificationCreated,
    Received,
    RecipientResolved,
    StageRecorder,
    Validated,
)
from fanout_debugger.services.validation import validate_event

logger = logging.getLogger(__name__)

UNKNOWN_ACTOR_NAME = "Someone"
VALIDATION_FAILED_MESSAGE = "Event validation failed"


class FanoutError(Exception):
    """Base error for fanout failures surfaced to callers."""


class EventNotFoundError(FanoutError):
    """Raised when replay is requested for an event that was never persisted."""

    def __init__(self, event_id: str) -> None:
        super().__init__(f"Event not found: {event_id}")
        self.event_id = event_id


@dataclass(frozen=True)
class EventInput:
    """Fields a caller supplies to create an event."""

    actor_id: str
    type: str
    target_id: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class FanoutResult:
    """Event plus the trace and notifications produced by one run."""

    event: Event
    logs: list[FanoutLog] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)


class FanoutService:
    """Runs the fanout state machine against an injected repository.

    The service is stateless between calls. Runs over the same event are not
    serialized here; callers must hold an event lock around ``replay_event``.
    """

    def __init__(self, repo: FanoutRepository) -> None:
        self.repo = repo

    def process_event(self, data: EventInput) -> FanoutResult:
        """Persist a new event and fan it out.

        Args:
            data: Actor, type, target and optional metadata for the event.

        Returns:
            The persisted event with its ordered trace and created notifications.

        Raises:
            Any repository error, unmodified. Entries written before the failure
            remain in place.
        """
        event = self.repo.create_event(
            actor_id=data.actor_id,
            type=data.type,
            target_id=data.target_id,
            metadata=data.metadata,
        )
        logger.info("Processing event %s (%s by %s)", event.id, event.type, event.actor_id)
        return self._run(event, is_replay=False)

    def replay_event(self, event_id: str) -> FanoutResult:
        """Discard an event's notifications and trace, then fan it out again.

        Results reflect the current user and follower graph, which is what makes
        a replay useful for diagnosing a past run.

        Raises:
            EventNotFoundError: If no event with ``event_id`` exists.
        """
        event = self.repo.get_event_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)

        cleared = self.repo.clear_event_data(event_id)
        logger.info(
            "Cleared %d notifications and %d logs for event %s",
            cleared.notifications,
            cleared.logs,
            event_id,
        )
        return self._run(event, is_replay=True)

    def _run(self, event: Event, *, is_replay: bool) -> FanoutResult:
        trace = StageRecorder(self.repo, event.id, is_replay=is_replay)
        result = FanoutResult(event=event, logs=trace.logs)

        trace.record(
            Received(
                actor_id=event.actor_id,
                type=event.type,
                target_id=event.target_id,
                metadata=dict(event.metadata_ or {}),
            )
        )

        validation = validate_event(event)
        trace.record(Validated(is_valid=validation.valid, errors=list(validation.errors)))

        if not validation.valid:
            logger.warning("Event %s failed validation: %s", event.id, "; ".join(validation.errors))
            trace.record(Failed(message=VALIDATION_FAILED_MESSAGE, errors=list(validation.errors)))
            return result

        recipients = resolve_recipients(event, self.repo)
        trace.record(
            RecipientResolved(
                recipient_count=len(recipients),
                recipient_ids=[user.id for user in recipients],
                recipient_usernames=[user.username for user in recipients],
                rule=get_recipient_rule(event.type),
            )
        )

        actor = self.repo.get_user_by_id(event.actor_id)
        if actor is None or not actor.username:
            logger.debug("Actor %s not found for event %s", event.actor_id, event.id)
            actor_name = UNKNOWN_ACTOR_NAME
        else:
            actor_name = actor.username

        for recipient in recipients:
            # Never notify actors about their own action.
            if recipient.id == event.actor_id:
                continue

            message = generate_notification_message(event.type, actor_name)
            notification = self.repo.create_notification(recipient.id, event.id, message)
            result.notifications.append(notification)
            trace.record(
                NotificationCreated(
                    notification_id=notification.id,
                    user_id=recipient.id,
                    username=recipient.username,
                    message=message,
                )
            )

        trace.record(
            Completed(
                total_notifications=len(result.notifications),
                duration_ms=elapsed_ms(event.created_at),
            )
        )
        logger.info(
            "%s event %s: %d notifications",
            "Replayed" if is_replay else "Completed",
            event.id,
            len(result.notifications),
        )
        return result
