"""
CaddieAI Backend — Golf Context Routes
=======================================

What:  /api/users/{user_id}/context: builds the snapshot of player, course,
       round, hole, location and weather the voice caddie works from, and the
       system prompt and club advice derived from it.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from caddie.database import get_db_session
from caddie.schemas.golf_context import (
    ClubRecommendation,
    ClubRecommendationRequest,
    ContextRequest,
    ContextUpdateRequest,
    GolfContext,
    SystemPromptRequest,
    SystemPromptResponse,
)
from caddie.services.golf_context_service import golf_context_service

router = APIRouter(prefix="/api/users/{user_id}/context", tags=["Golf Context"])


@router.post("", response_model=GolfContext, summary="Build a golf context")
async def generate_context(
    user_id: int, request: ContextRequest, db: AsyncSession = Depends(get_db_session)
) -> GolfContext:
    return await golf_context_service.generate_context(
        db,
        user_id,
        round_id=request.round_id,
        course_id=request.course_id,
        current_hole=request.current_hole,
    )


@router.put("", response_model=GolfContext, summary="Refresh hole, location and round state")
async def update_context(
    user_id: int, request: ContextUpdateRequest, db: AsyncSession = Depends(get_db_session)
) -> GolfContext:
    return await golf_context_service.update_context(
        db, request.context, current_hole=request.current_hole, location=request.location
    )


@router.post("/system-prompt", response_model=SystemPromptResponse)
async def system_prompt(user_id: int, request: SystemPromptRequest) -> SystemPromptResponse:
    prompt = golf_context_service.generate_system_prompt(request.context, request.personality_type)
    return SystemPromptResponse(prompt=prompt)


@router.post("/club-recommendation", response_model=ClubRecommendation)
async def club_recommendation(user_id: int, request: ClubRecommendationRequest) -> ClubRecommendation:
    return golf_context_service.get_club_recommendation(
        request.context, request.distance_to_pin, request.conditions
    )
