"""
CaddieAI Backend — Health Check Route
======================================

What:  Liveness/readiness probe for Docker and the load balancer.
How:   SELECT 1 against the database, plus the SMTP circuit state and the
       number of registered voice sessions.

Status levels:
    healthy:   database reachable, email available or not configured
    degraded:  SMTP circuit open (sign-up emails are being dropped)
    unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from caddie import __version__
from caddie.config import settings
from caddie.database import engine
from caddie.schemas.common import HealthResponse
from caddie.services.email_service import CircuitBreaker, email_service
from caddie.services.realtime_audio_service import realtime_audio_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not settings.smtp_configured:
        email_status = "not_configured"
    elif email_service.circuit_state == CircuitBreaker.OPEN:
        email_status = "circuit_open"
        if overall == "healthy":
            overall = "degraded"
    else:
        email_status = "available"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        email=email_status,
        active_voice_sessions=len(realtime_audio_service.get_all_active_sessions()),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
