"""Health and service information endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fanout_debugger.api.v1.dependencies import EventLockDep, SessionDep
from fanout_debugger.core.settings import settings
from fanout_debugger.db.time import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["system"])


@router.get("")
async def health(db: SessionDep, locks: EventLockDep) -> JSONResponse:
    """Report service health; 503 when the database or Redis cannot be reached.

    Redis is only checked when it backs the event lock.
    """
    try:
        db.execute(text("SELECT 1"))
        database_up = True
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)
        database_up = False

    services = {"database": "up" if database_up else "down"}
    healthy = database_up

    redis_up = locks.ping()
    if redis_up is not None:
        services["redis"] = "up" if redis_up else "down"
        healthy = healthy and redis_up

    body: dict[str, Any] = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": utcnow().isoformat(),
        "version": settings.app_version,
        "services": services,
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)
