"""Shared API dependencies for repositories and services."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from fanout_debugger.db.session import get_db
from fanout_debugger.repositories.fanout_repo import SqlAlchemyFanoutRepository
from fanout_debugger.services.event_lock import EventLockService, get_event_lock_service
from fanout_debugger.services.fanout import FanoutService

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_repository(db: SessionDep) -> SqlAlchemyFanoutRepository:
    """Return a repository bound to the request's session."""
    return SqlAlchemyFanoutRepository(db)


RepositoryDep = Annotated[SqlAlchemyFanoutRepository, Depends(get_repository)]


def get_fanout_service(repo: RepositoryDep) -> FanoutService:
    """Return a fanout service using the request's repository."""
    return FanoutService(repo)


def get_event_lock_service_dep() -> EventLockService:
    """Return the shared event lock service."""
    return get_event_lock_service()


FanoutServiceDep = Annotated[FanoutService, Depends(get_fanout_service)]
EventLockDep = Annotated[EventLockService, Depends(get_event_lock_service_dep)]
