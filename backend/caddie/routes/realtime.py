"""
CaddieAI Backend — Realtime Voice Session Routes
=================================================

What:  /api/realtime: open, inspect, reconfigure and end the voice session
       a golfer uses during a round, plus usage statistics.
How:   RealtimeAudioService owns the in-memory registry; these handlers only
       translate its results (None → 404, False → 404).
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from caddie.database import get_db_session
from caddie.exceptions import NotFoundError
from caddie.schemas.common import ErrorResponse
from caddie.schemas.realtime import (
    CreateSessionRequest,
    CreateSessionResponse,
    RealtimeSession,
    RealtimeSessionConfig,
    RealtimeUsageStats,
)
from caddie.services.realtime_audio_service import realtime_audio_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/realtime", tags=["Realtime Voice"])


@router.post(
    "/users/{user_id}/sessions",
    response_model=CreateSessionResponse,
    status_code=201,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
)
async def create_session(
    user_id: int,
    request: CreateSessionRequest,
    replace_existing: bool = Query(default=True, description="End a live session instead of failing"),
    db: AsyncSession = Depends(get_db_session),
) -> CreateSessionResponse:
    session = await realtime_audio_service.create_session(
        db, user_id, request.round_id, config=request.config, replace_existing=replace_existing
    )
    return CreateSessionResponse(
        session_id=session.session_id,
        websocket_url=session.websocket_url,
        started_at=session.started_at,
        config=session.config,
    )


@router.get(
    "/users/{user_id}/rounds/{round_id}/session",
    response_model=RealtimeSession,
    responses={404: {"model": ErrorResponse}},
)
async def get_active_session(user_id: int, round_id: int) -> RealtimeSession:
    session = realtime_audio_service.get_active_session(user_id, round_id)
    if session is None:
        raise NotFoundError(resource="realtime session")
    return session


@router.delete("/sessions/{session_id}", status_code=204, responses={404: {"model": ErrorResponse}})
async def end_session(session_id: str) -> Response:
    if not realtime_audio_service.end_session(session_id):
        raise NotFoundError(resource="realtime session", resource_id=session_id)
    return Response(status_code=204)


@router.put(
    "/sessions/{session_id}/config",
    response_model=RealtimeSession,
    responses={404: {"model": ErrorResponse}},
)
async def update_session_config(session_id: str, config: RealtimeSessionConfig) -> RealtimeSession:
    return realtime_audio_service.update_session_config(session_id, config)


@router.get("/users/{user_id}/usage", response_model=RealtimeUsageStats)
async def usage_statistics(
    user_id: int,
    from_date: Optional[datetime] = Query(default=None, description="ISO 8601; defaults to 30 days ago"),
) -> RealtimeUsageStats:
    return realtime_audio_service.get_usage_statistics(user_id, from_date)


@router.get("/users/{user_id}/rate-limit")
async def rate_limit_status(user_id: int) -> dict:
    return {
        "user_id": user_id,
        "rate_limited": realtime_audio_service.is_rate_limit_exceeded(user_id),
        "active_sessions": realtime_audio_service.get_user_session_count(user_id),
    }


@router.get("/sessions", response_model=List[RealtimeSession], summary="All live sessions (ops)")
async def active_sessions() -> List[RealtimeSession]:
    return realtime_audio_service.get_all_active_sessions()
