"""Event, trace and notification Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from fanout_debugger.models import EventType, FanoutStage


class EventCreate(BaseModel):
    """Request body for creating an event and running its fanout."""

    actor_id: UUID = Field(..., description="User performing the action")
    type: EventType = Field(..., description="Action performed: like, comment or follow")
    target_id: UUID = Field(..., description="User the action was performed against")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque data recorded in the RECEIVED trace entry",
    )


class EventOut(BaseModel):
    """Persisted event as returned to clients."""

    id: str
    actor_id: str
    type: str
    target_id: str
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FanoutLogOut(BaseModel):
    """One stage entry of an event's trace."""

    id: int
    event_id: str
    stage: FanoutStage
    data: dict[str, Any]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationOut(BaseModel):
    """Notification delivered to a single recipient."""

    id: str
    user_id: str
    event_id: str
    message: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FanoutResponse(BaseModel):
    """Response for create and replay requests."""

    success: bool = True
    event: EventOut
    fanout_logs: list[FanoutLogOut]
    notifications_created: int
    message: str | None = None


class TraceResponse(BaseModel):
    """Event together with its stored trace and notifications."""

    event: EventOut
    fanout_logs: list[FanoutLogOut]
    notifications: list[NotificationOut]


class EventList(BaseModel):
    data: list[EventOut]


class NotificationList(BaseModel):
    data: list[NotificationOut]
