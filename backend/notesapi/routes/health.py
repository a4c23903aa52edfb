"""
Notes API - Health Check Route
===============================

What:  GET /health for load balancers and container health checks.
How:   Pings the database through the shared NoteStore (SELECT 1).

Status levels:
    healthy:   database reachable
    unhealthy: database ping failed (still HTTP 200; the body says why)
"""

import logging
import time

from fastapi import APIRouter, Depends

from notesapi import __version__
from notesapi.dependencies import get_store
from notesapi.schemas.note import HealthResponse
from notesapi.services.note_store import NoteStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(store: NoteStore = Depends(get_store)) -> HealthResponse:
    """Report service status and database connectivity."""
    if await store.ping():
        db_status, overall = "connected", "healthy"
    else:
        db_status, overall = "disconnected", "unhealthy"
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
