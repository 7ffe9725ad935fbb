"""
CaddieAI Backend — Golf Context Schemas
========================================

What:  The aggregated snapshot handed to the voice/AI caddie: who is playing,
       where, on which hole, in what weather and how the round is going.
Who:   Built by GolfContextService; consumed by ShotTypeDetectionService
       and the system-prompt builder.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserGolfProfile(BaseModel):
    user_id: int
    name: Optional[str] = None
    handicap: Optional[float] = None
    skill_level: Optional[str] = Field(
        default=None, description="beginner, intermediate, advanced or professional"
    )
    playing_style: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None


class CourseContext(BaseModel):
    course_id: int
    name: str
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, description="City, State, Country")
    total_holes: int = 18
    par_total: int = 72
    course_rating: Optional[float] = None
    slope_rating: Optional[int] = None
    difficulty: Optional[str] = None
    features: Optional[Dict[str, Any]] = None


class RoundContext(BaseModel):
    round_id: int
    start_time: datetime
    current_hole: Optional[int] = None
    status: Optional[str] = None
    elapsed_time: Optional[timedelta] = None
    current_score: Optional[int] = None


class HoleContext(BaseModel):
    hole_id: int
    hole_number: int
    par: int
    yardage: Optional[int] = None
    handicap: Optional[int] = Field(default=None, description="Stroke index")
    description: Optional[str] = None
    hazards: List[str] = Field(default_factory=list)
    strategy: Optional[str] = None
    pin_latitude: Optional[float] = None
    pin_longitude: Optional[float] = None


class LocationContext(BaseModel):
    """A GPS fix, optionally annotated with its relation to the current hole."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy_meters: Optional[float] = None
    current_hole: Optional[int] = None
    distance_to_pin_meters: Optional[float] = None
    distance_to_tee_meters: Optional[float] = None
    position_on_hole: Optional[str] = None
    movement_speed_mps: Optional[float] = None
    is_within_course_boundaries: bool = True
    timestamp: datetime = Field(default_factory=_utcnow)


class WeatherContext(BaseModel):
    conditions: Optional[str] = None
    temperature: Optional[float] = Field(default=None, description="Degrees Fahrenheit")
    wind_speed: Optional[float] = Field(default=None, description="Miles per hour")
    wind_direction: Optional[str] = None
    humidity: Optional[float] = None
    precipitation: Optional[str] = None


class HolePerformance(BaseModel):
    hole_number: int
    par: int
    score: int
    clubs_used: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class PerformanceContext(BaseModel):
    current_round_score: Optional[int] = None
    current_round_pace: Optional[float] = None
    recent_holes: List[HolePerformance] = Field(default_factory=list)
    club_accuracy: Dict[str, float] = Field(default_factory=dict)
    trends: Dict[str, Any] = Field(default_factory=dict)


class GolfContext(BaseModel):
    user: UserGolfProfile
    course: Optional[CourseContext] = None
    round: Optional[RoundContext] = None
    current_hole: Optional[HoleContext] = None
    location: Optional[LocationContext] = None
    weather: Optional[WeatherContext] = None
    performance: PerformanceContext = Field(default_factory=PerformanceContext)
    custom_data: Dict[str, Any] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=_utcnow)


class ClubRecommendation(BaseModel):
    club: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    alternatives: List[str] = Field(default_factory=list)
    strategy: Optional[str] = None
    factors: Dict[str, Any] = Field(default_factory=dict)


# ── Request bodies ────────────────────────────────────────────────────────


class ContextRequest(BaseModel):
    round_id: Optional[int] = None
    course_id: Optional[int] = None
    current_hole: Optional[int] = Field(default=None, ge=1, le=36)


class ContextUpdateRequest(BaseModel):
    context: GolfContext
    current_hole: Optional[int] = Field(default=None, ge=1, le=36)
    location: Optional[LocationContext] = None


class SystemPromptRequest(BaseModel):
    context: GolfContext
    personality_type: str = Field(default="encouraging_caddie")


class SystemPromptResponse(BaseModel):
    prompt: str


class ClubRecommendationRequest(BaseModel):
    context: GolfContext
    distance_to_pin: float = Field(ge=0, description="Yards to the pin")
    conditions: Optional[str] = None
