"""
CaddieAI Backend — Shot Analysis Routes
========================================

What:  /api/shots: shot-type detection, lie/position analysis, difficulty
       assessment and nominal distance ranges.
How:   Pure computation on the posted context; no database access.
"""

from fastapi import APIRouter

from caddie.schemas.shot_type import (
    DifficultyRequest,
    PositionAnalysis,
    PositionRequest,
    ShotDifficultyAssessment,
    ShotDistanceRange,
    ShotTypeContext,
    ShotTypeDetectionResult,
)
from caddie.services.shot_type_service import shot_type_service

router = APIRouter(prefix="/api/shots", tags=["Shots"])


@router.post("/detect", response_model=ShotTypeDetectionResult, summary="Classify the next shot")
async def detect_shot_type(context: ShotTypeContext) -> ShotTypeDetectionResult:
    return shot_type_service.detect_shot_type(context)


@router.post("/position", response_model=PositionAnalysis, summary="Infer the ball's position on the hole")
async def analyze_position(request: PositionRequest) -> PositionAnalysis:
    return shot_type_service.analyze_position(request.location, request.hole, request.distance_to_pin_yards)


@router.post("/difficulty", response_model=ShotDifficultyAssessment)
async def assess_difficulty(request: DifficultyRequest) -> ShotDifficultyAssessment:
    return shot_type_service.assess_shot_difficulty(
        request.shot_type, request.golf_context, request.skill_level
    )


@router.get("/distance-range/{shot_type}", response_model=ShotDistanceRange)
async def distance_range(shot_type: str) -> ShotDistanceRange:
    return shot_type_service.get_shot_distance_range(shot_type)
