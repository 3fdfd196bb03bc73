"""Structural validation of events before fanout proceeds."""

from __future__ import annotations

from dataclasses import dataclass, field

from fanout_debugger.models import Event, EventType

SUPPORTED_EVENT_TYPES: tuple[str, ...] = tuple(member.value for member in EventType)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating an event; ``errors`` keeps check order."""

    valid: bool
    errors: list[str] = field(default_factory=list)


def validate_event(event: Event) -> ValidationResult:
    """Run every structural check and collect all failing reasons.

    Checks are not short-circuited: an empty type reports both the missing
    field and the unsupported value.
    """
    errors: list[str] = []

    if not event.actor_id:
        errors.append("actor_id is required")

    if not event.type:
        errors.append("type is required")

    if event.type not in SUPPORTED_EVENT_TYPES:
        errors.append(f"Invalid event type: {event.type or ''}")

    if not event.target_id:
        errors.append("target_id is required")

    return ValidationResult(valid=not errors, errors=errors)
