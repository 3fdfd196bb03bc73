"""Notification text templates."""

from __future__ import annotations

from fanout_debugger.models import EventType

_TEMPLATES: dict[str, str] = {
    EventType.LIKE.value: "{actor} liked your content",
    EventType.COMMENT.value: "{actor} commented on a post",
    EventType.FOLLOW.value: "{actor} started following you",
}
_FALLBACK_TEMPLATE = "{actor} interacted with you"


def generate_notification_message(event_type: str, actor_name: str) -> str:
    """Return the human-readable notification for an event type."""
    template = _TEMPLATES.get(event_type, _FALLBACK_TEMPLATE)
    return template.format(actor=actor_name)
