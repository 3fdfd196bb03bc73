"""Recipient resolution rules per event type.

Rules:
    like     -> owner of the target
    comment  -> owner of the target, then every follower of the target
    follow   -> the followed user
"""

from __future__ import annotations

from fanout_debugger.models import Event, EventType, User
from fanout_debugger.repositories.fanout_repo import FanoutRepository

RECIPIENT_RULES: dict[str, str] = {
    EventType.LIKE.value: "owner of target",
    EventType.COMMENT.value: "owner + followers",
    EventType.FOLLOW.value: "followed user",
}
UNKNOWN_RULE = "unknown"


def get_recipient_rule(event_type: str) -> str:
    """Return the trace label describing which rule selected the recipients."""
    return RECIPIENT_RULES.get(event_type, UNKNOWN_RULE)


def resolve_recipients(event: Event, repo: FanoutRepository) -> list[User]:
    """Return the ordered, de-duplicated candidate recipients for ``event``.

    The actor is *not* filtered here; the engine skips it while notifying so
    the trace still shows that the actor was a resolved candidate.
    Every lookup goes to the repository so replays observe live state.
    """
    recipients: list[User] = []

    if event.type in (EventType.LIKE.value, EventType.FOLLOW.value):
        owner = repo.get_user_by_id(event.target_id)
        if owner is not None:
            recipients.append(owner)

    elif event.type == EventType.COMMENT.value:
        owner = repo.get_user_by_id(event.target_id)
        if owner is not None:
            recipients.append(owner)

        seen = {user.id for user in recipients}
        for follower in repo.get_followers(event.target_id):
            if follower.id in seen:
                continue
            seen.add(follower.id)
            recipients.append(follower)

    return recipients
