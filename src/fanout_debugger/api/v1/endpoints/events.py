"""Event endpoints: create with fanout, inspect traces, replay."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from fanout_debugger.api.v1.dependencies import EventLockDep, FanoutServiceDep, RepositoryDep
from fanout_debugger.schemas.event import (
    EventCreate,
    EventList,
    EventOut,
    FanoutLogOut,
    FanoutResponse,
    NotificationOut,
    TraceResponse,
)
from fanout_debugger.services.event_lock import EventLockedError
from fanout_debugger.services.fanout import EventInput, EventNotFoundError, FanoutResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def _to_response(result: FanoutResult, message: str | None = None) -> FanoutResponse:
    return FanoutResponse(
        event=EventOut.model_validate(result.event),
        fanout_logs=[FanoutLogOut.model_validate(log) for log in result.logs],
        notifications_created=len(result.notifications),
        message=message,
    )


@router.post("", response_model=FanoutResponse, status_code=status.HTTP_201_CREATED)
async def create_event(payload: EventCreate, service: FanoutServiceDep) -> FanoutResponse:
    """Create an event and run its fanout.

    A validation failure inside the engine is still a 201: the trace ends with
    an ERROR stage and no notifications are created.
    """
    data = EventInput(
        actor_id=str(payload.actor_id),
        type=payload.type.value,
        target_id=str(payload.target_id),
        metadata=payload.metadata,
    )
    try:
        result = service.process_event(data)
    except SQLAlchemyError as err:
        logger.exception("Event creation failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from err
    return _to_response(result)


@router.get("", response_model=EventList)
async def list_events(repo: RepositoryDep) -> EventList:
    """List all events, newest first."""
    return EventList(data=[EventOut.model_validate(event) for event in repo.list_events()])


@router.get("/{event_id}", response_model=EventOut)
async def get_event(event_id: str, repo: RepositoryDep) -> EventOut:
    """Return a single event."""
    event = repo.get_event_by_id(event_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return EventOut.model_validate(event)


@router.get("/{event_id}/trace", response_model=TraceResponse)
async def get_event_trace(event_id: str, repo: RepositoryDep) -> TraceResponse:
    """Return the stored fanout trace and notifications for an event."""
    event = repo.get_event_by_id(event_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    return TraceResponse(
        event=EventOut.model_validate(event),
        fanout_logs=[FanoutLogOut.model_validate(log) for log in repo.get_fanout_logs(event_id)],
        notifications=[
            NotificationOut.model_validate(n) for n in repo.get_notifications_for_event(event_id)
        ],
    )


@router.post("/{event_id}/replay", response_model=FanoutResponse)
async def replay_event(
    event_id: str,
    service: FanoutServiceDep,
    locks: EventLockDep,
) -> FanoutResponse:
    """Delete an event's notifications and trace, then rerun its fanout."""
    try:
        with locks.hold(event_id):
            result = service.replay_event(event_id)
    except EventLockedError as err:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(err)) from err
    except EventNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found") from err
    except SQLAlchemyError as err:
        logger.exception("Replay of event %s failed", event_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from err
    return _to_response(result, message="Event replayed successfully")
