"""
CaddieAI Backend — Shot Type Schemas
=====================================

What:  Inputs and results of the heuristic shot-type classifier.
Who:   ShotTypeDetectionService and the /api/shots routes.

Shot types and positions are plain strings on the wire so the mobile client
can add new labels without a schema change; the enums below list the values
the classifier itself produces.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from caddie.schemas.golf_context import GolfContext, HoleContext, LocationContext, WeatherContext


class ShotType(str, Enum):
    DRIVE = "drive"
    TEE_SHOT_PAR3 = "tee-shot-par3"
    APPROACH_SHOT = "approach-shot"
    CHIP_SHOT = "chip-shot"
    PITCH_SHOT = "pitch-shot"
    BUNKER_SHOT = "bunker-shot"
    PUTT = "putt"
    RECOVERY_SHOT = "recovery-shot"
    LAYUP_SHOT = "layup-shot"
    GENERAL_SHOT = "general-shot"


class PositionType(str, Enum):
    TEE_BOX = "tee_box"
    FAIRWAY = "fairway"
    ROUGH = "rough"
    BUNKER = "bunker"
    GREEN = "green"
    FRINGE_APRON = "fringe_apron"
    TREES = "trees"
    HAZARD = "hazard"
    UNKNOWN = "unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ══════════════════════════════════════════════════════════════════════════
# Inputs
# ══════════════════════════════════════════════════════════════════════════


class ShotContext(BaseModel):
    """What the player reported about the shot they are facing."""

    position: Optional[str] = None
    lie_quality: Optional[str] = None
    slope: Optional[str] = None
    hazards: Optional[List[str]] = None
    intention: Optional[str] = None
    distance_to_pin_yards: Optional[float] = Field(default=None, ge=0)
    weather: Optional[WeatherContext] = None


class ShotPlacementHistory(BaseModel):
    shot_number: int
    shot_type: str
    location: LocationContext
    distance_to_pin_yards: Optional[float] = None
    club_used: Optional[str] = None
    result: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class ShotTypeContext(BaseModel):
    current_location: LocationContext
    target_location: Optional[LocationContext] = None
    current_hole: int = Field(ge=1, le=36)
    golf_context: GolfContext
    shot_context: Optional[ShotContext] = None
    shot_history: Optional[List[ShotPlacementHistory]] = None


# ══════════════════════════════════════════════════════════════════════════
# Results
# ══════════════════════════════════════════════════════════════════════════


class LieCharacteristics(BaseModel):
    quality: str = "fair"
    surface: Optional[str] = None
    slope: Optional[str] = None
    grass_condition: Optional[str] = None
    obstructions: Optional[List[str]] = None


class PositionAnalysis(BaseModel):
    position: str
    confidence: float = Field(ge=0.0, le=1.0)
    distance_from_ideal_yards: Optional[float] = None
    lie_info: Optional[LieCharacteristics] = None
    strategic_assessment: Optional[str] = None
    nearby_features: Optional[List[str]] = None


class DistanceFactors(BaseModel):
    distance_to_pin_yards: float
    distance_from_tee_yards: Optional[float] = None
    carry_distance_yards: Optional[float] = None
    hazard_distances: Optional[Dict[str, float]] = None
    effective_distance_yards: Optional[float] = None
    elevation_adjustment_yards: Optional[float] = None


class AlternativeShotType(BaseModel):
    shot_type: str
    probability: float = Field(ge=0.0, le=1.0)
    reason: Optional[str] = None


class ShotTypeDetectionResult(BaseModel):
    shot_type: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    alternatives: List[AlternativeShotType] = Field(default_factory=list)
    position_analysis: Optional[PositionAnalysis] = None
    distance_factors: Optional[DistanceFactors] = None
    influencing_factors: List[str] = Field(default_factory=list)
    detected_at: datetime = Field(default_factory=_utcnow)


class DifficultyFactor(BaseModel):
    factor: str
    severity: int = Field(ge=1, le=5)
    description: Optional[str] = None
    mitigation: Optional[List[str]] = None


class RiskAssessment(BaseModel):
    risk_level: str = "moderate"
    potential_penalties: Optional[List[str]] = None
    mitigation_advice: Optional[List[str]] = None
    conservative_alternatives: Optional[List[str]] = None


class ShotDifficultyAssessment(BaseModel):
    difficulty_level: int = Field(ge=1, le=10)
    difficulty_category: str = "moderate"
    skill_level_match: str = "appropriate"
    difficulty_factors: List[DifficultyFactor] = Field(default_factory=list)
    success_probability: float = Field(ge=0.0, le=1.0)
    risk_assessment: Optional[RiskAssessment] = None


class ShotDistanceRange(BaseModel):
    shot_type: str
    min_distance_yards: float
    max_distance_yards: float
    description: str
    characteristics: List[str] = Field(default_factory=list)


class DifficultyRequest(BaseModel):
    shot_type: str
    golf_context: GolfContext
    skill_level: Optional[str] = None


class PositionRequest(BaseModel):
    location: Optional[LocationContext] = None
    hole: HoleContext
    distance_to_pin_yards: float = Field(ge=0)
