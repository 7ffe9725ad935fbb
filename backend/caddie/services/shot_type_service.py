"""
CaddieAI Backend — Shot Type Detection Service
===============================================

What:  Classifies the shot a golfer is facing (putt, chip, drive, ...) from
       distance to the pin, position on the hole and conditions, and rates
       how difficult that shot is for the golfer's skill level.
How:   Deterministic threshold rules; no I/O, so every method is synchronous.
Who:   The /api/shots routes and the voice caddie.

Detection Flow:
    distance to pin  →  position analysis  →  distance factors
        →  primary shot type  →  confidence, reasoning, alternatives

    Distance to pin comes from the player's report when given, else half
    the hole's yardage, else 150 yards.
"""

import logging
from typing import Dict, List, Optional, Tuple

from caddie.schemas.golf_context import GolfContext, HoleContext, LocationContext, WeatherContext
from caddie.schemas.shot_type import (
    AlternativeShotType,
    DifficultyFactor,
    DistanceFactors,
    LieCharacteristics,
    PositionAnalysis,
    PositionType,
    RiskAssessment,
    ShotContext,
    ShotDifficultyAssessment,
    ShotDistanceRange,
    ShotType,
    ShotTypeContext,
    ShotTypeDetectionResult,
)

logger = logging.getLogger(__name__)

DEFAULT_DISTANCE_YARDS = 150.0
DEFAULT_HOLE_YARDAGE = 400

# ── Lookup tables ─────────────────────────────────────────────────────────

# position → (quality, surface, grass condition)
LIE_BY_POSITION: Dict[str, Tuple[str, str, str]] = {
    PositionType.TEE_BOX.value: ("excellent", "tee", "perfect"),
    PositionType.FAIRWAY.value: ("good", "fairway grass", "good"),
    PositionType.GREEN.value: ("excellent", "putting green", "perfect"),
    PositionType.ROUGH.value: ("fair", "rough grass", "thick"),
    PositionType.BUNKER.value: ("poor", "sand", "none"),
}
DEFAULT_LIE = ("fair", "grass", "average")

SHOT_REASONS: Dict[str, str] = {
    ShotType.PUTT.value: "On or very near the green",
    ShotType.CHIP_SHOT.value: "Short distance around green area",
    ShotType.PITCH_SHOT.value: "Mid-short distance requiring high trajectory",
    ShotType.APPROACH_SHOT.value: "Mid-distance approach to green",
    ShotType.DRIVE.value: "Tee shot on par 4/5 hole",
    ShotType.TEE_SHOT_PAR3.value: "Tee shot on par 3 hole",
    ShotType.BUNKER_SHOT.value: "Ball in sand bunker",
}

BASE_DIFFICULTY: Dict[str, int] = {
    ShotType.PUTT.value: 3,
    ShotType.CHIP_SHOT.value: 4,
    ShotType.TEE_SHOT_PAR3.value: 5,
    ShotType.PITCH_SHOT.value: 5,
    ShotType.APPROACH_SHOT.value: 6,
    ShotType.DRIVE.value: 6,
    ShotType.BUNKER_SHOT.value: 7,
    ShotType.RECOVERY_SHOT.value: 8,
    ShotType.LAYUP_SHOT.value: 4,
}

# Difficulty a golfer of this level handles comfortably
SKILL_DIFFICULTY: Dict[str, int] = {
    "beginner": 3,
    "intermediate": 6,
    "advanced": 8,
    "professional": 10,
}

SKILL_SUCCESS_MULTIPLIER: Dict[str, float] = {
    "beginner": 0.6,
    "intermediate": 0.75,
    "advanced": 0.85,
    "professional": 0.95,
}

POTENTIAL_PENALTIES: Dict[str, List[str]] = {
    ShotType.BUNKER_SHOT.value: ["Staying in bunker", "Flying over green"],
    ShotType.DRIVE.value: ["Out of bounds", "Water hazard", "Deep rough"],
    ShotType.RECOVERY_SHOT.value: ["Worse position", "Penalty strokes"],
}
DEFAULT_PENALTIES = ["Miss target", "Poor position"]

# shot type → (min yards, max yards, description, characteristics)
DISTANCE_RANGES: Dict[str, Tuple[float, float, str, List[str]]] = {
    ShotType.DRIVE.value: (200, 400, "Long distance tee shots", ["Power", "Distance", "Accuracy important"]),
    ShotType.TEE_SHOT_PAR3.value: (
        100, 250, "Tee shots on par 3 holes",
        ["Accuracy crucial", "Target the green", "Club selection key"],
    ),
    ShotType.APPROACH_SHOT.value: (
        80, 200, "Mid-distance approach to green", ["Precision", "Green targeting", "Spin control"],
    ),
    ShotType.CHIP_SHOT.value: (5, 40, "Short shots around the green", ["Low trajectory", "Roll control", "Precision"]),
    ShotType.PITCH_SHOT.value: (20, 80, "High, soft shots to green", ["High trajectory", "Soft landing", "Spin"]),
    ShotType.BUNKER_SHOT.value: (
        10, 60, "Shots from sand bunkers", ["Sand technique", "High trajectory", "Escape focus"],
    ),
    ShotType.PUTT.value: (0, 20, "Shots on the green", ["Rolling ball", "Green reading", "Distance control"]),
}
DEFAULT_DISTANCE_RANGE = (0, 400, "General golf shot", ["Varies by situation"])

_KNOWN_POSITIONS = {p.value for p in PositionType} - {PositionType.UNKNOWN.value}


def _category(level: int) -> str:
    if level <= 3:
        return "easy"
    if level <= 5:
        return "moderate"
    if level <= 7:
        return "challenging"
    return "very_difficult"


def _risk_level(level: int) -> str:
    if level <= 3:
        return "low"
    if level <= 5:
        return "moderate"
    if level <= 7:
        return "high"
    return "very_high"


class ShotTypeDetectionService:

    # ══════════════════════════════════════════════════════════════════════
    # Detection
    # ══════════════════════════════════════════════════════════════════════

    def detect_shot_type(self, context: ShotTypeContext) -> ShotTypeDetectionResult:
        """
        Classify the shot described by `context`.

        Never raises: if anything goes wrong the result is a general shot
        at 0.5 confidence, so the voice caddie can always answer.
        """
        try:
            logger.info("Detecting shot type for hole %s", context.current_hole)
            hole = context.golf_context.current_hole
            shot = context.shot_context

            distance = self._distance_to_pin(context)

            if hole is not None:
                position = self.analyze_position(context.current_location, hole, distance)
            else:
                position = PositionAnalysis(position=PositionType.UNKNOWN.value, confidence=0.5)

            # A lie the player reports replaces the distance-only inference,
            # so rough at 20 yd is a recovery shot rather than a chip
            reported = shot.position.lower() if shot and shot.position else None
            if reported in _KNOWN_POSITIONS:
                position = self._reported_position(reported)

            distance_factors = DistanceFactors(
                distance_to_pin_yards=distance,
                distance_from_tee_yards=self._distance_from_tee(hole, shot),
                effective_distance_yards=self.adjust_for_conditions(
                    distance, shot.weather if shot else None
                ),
            )

            shot_type = self._primary_shot_type(distance, position, hole)
            result = ShotTypeDetectionResult(
                shot_type=shot_type,
                confidence=self._confidence(shot_type, distance, position),
                reasoning=self._reasoning(shot_type, distance, position, hole),
                alternatives=self._alternatives(shot_type, distance),
                position_analysis=position,
                distance_factors=distance_factors,
                influencing_factors=self._influencing_factors(distance, position, hole, shot),
            )

            logger.info(
                "Shot type detected: %s with confidence %.2f", result.shot_type, result.confidence
            )
            return result

        except Exception as e:
            logger.error("Error detecting shot type: %s", str(e), exc_info=True)
            return ShotTypeDetectionResult(
                shot_type=ShotType.GENERAL_SHOT.value,
                confidence=0.5,
                reasoning="Error occurred during detection, defaulting to general shot",
            )

    def analyze_position(
        self,
        location: Optional[LocationContext],
        hole: HoleContext,
        distance_to_pin_yards: float,
    ) -> PositionAnalysis:
        """
        Infer where on the hole the ball lies from its distance to the pin.

            ≤ 5 yd                      green          0.9
            ≤ 30 yd                     fringe/apron   0.8
            ≤ 100 yd                    fairway        0.7
            ≥ 80% of the hole's length  tee box        0.85
            otherwise                   fairway        0.6
        """
        d = distance_to_pin_yards
        if d <= 5:
            position, confidence, assessment = PositionType.GREEN, 0.9, "On or very near the green"
        elif d <= 30:
            position, confidence, assessment = (
                PositionType.FRINGE_APRON, 0.8, "Short game area around the green",
            )
        elif d <= 100:
            position, confidence, assessment = PositionType.FAIRWAY, 0.7, "Approach shot range"
        elif hole.hole_number <= 18 and d >= (hole.yardage or DEFAULT_HOLE_YARDAGE) * 0.8:
            position, confidence, assessment = PositionType.TEE_BOX, 0.85, "Near tee box position"
        else:
            position, confidence, assessment = (
                PositionType.FAIRWAY, 0.6, "Middle distance fairway position",
            )

        return PositionAnalysis(
            position=position.value,
            confidence=confidence,
            strategic_assessment=assessment,
            lie_info=self.lie_characteristics(position.value),
        )

    @staticmethod
    def lie_characteristics(position: str) -> LieCharacteristics:
        quality, surface, grass = LIE_BY_POSITION.get(position, DEFAULT_LIE)
        return LieCharacteristics(quality=quality, surface=surface, grass_condition=grass)

    @staticmethod
    def adjust_for_conditions(distance: float, weather: Optional[WeatherContext]) -> float:
        """Plays-like distance: +5% in wind over 10 mph, +2% below 50°F, -2% above 85°F."""
        adjusted = distance
        if weather is None:
            return adjusted
        if weather.wind_speed is not None and weather.wind_speed > 10:
            adjusted *= 1.05
        if weather.temperature is not None:
            if weather.temperature < 50:
                adjusted *= 1.02
            if weather.temperature > 85:
                adjusted *= 0.98
        return adjusted

    # ── Detection helpers ─────────────────────────────────────────────────

    @staticmethod
    def _distance_to_pin(context: ShotTypeContext) -> float:
        shot = context.shot_context
        if shot is not None and shot.distance_to_pin_yards is not None:
            return float(shot.distance_to_pin_yards)
        hole = context.golf_context.current_hole
        if hole is not None and hole.yardage:
            # Without a precise fix assume the ball is halfway down the hole
            return hole.yardage * 0.5
        return DEFAULT_DISTANCE_YARDS

    @staticmethod
    def _distance_from_tee(
        hole: Optional[HoleContext], shot: Optional[ShotContext]
    ) -> Optional[float]:
        # Reported distance, else 150 yd; never the half-hole estimate
        if hole is None or not hole.yardage:
            return None
        reported = shot.distance_to_pin_yards if shot is not None else None
        return hole.yardage - (reported if reported is not None else DEFAULT_DISTANCE_YARDS)

    def _reported_position(self, position: str) -> PositionAnalysis:
        return PositionAnalysis(
            position=position,
            confidence=0.9,
            strategic_assessment="Reported by player",
            lie_info=self.lie_characteristics(position),
        )

    @staticmethod
    def _primary_shot_type(
        distance: float, position: PositionAnalysis, hole: Optional[HoleContext]
    ) -> str:
        pos = position.position
        if distance <= 5 and pos == PositionType.GREEN.value:
            return ShotType.PUTT.value
        if distance <= 30 and pos in (PositionType.FRINGE_APRON.value, PositionType.GREEN.value):
            return ShotType.CHIP_SHOT.value
        if 30 < distance <= 80:
            return ShotType.PITCH_SHOT.value
        if pos == PositionType.BUNKER.value:
            return ShotType.BUNKER_SHOT.value
        if pos == PositionType.TEE_BOX.value:
            if hole is not None and hole.par == 3:
                return ShotType.TEE_SHOT_PAR3.value
            return ShotType.DRIVE.value
        if 80 < distance <= 200:
            return ShotType.APPROACH_SHOT.value
        if pos in (PositionType.TREES.value, PositionType.ROUGH.value):
            return ShotType.LAYUP_SHOT.value if distance > 150 else ShotType.RECOVERY_SHOT.value
        return ShotType.GENERAL_SHOT.value

    @staticmethod
    def _confidence(shot_type: str, distance: float, position: PositionAnalysis) -> float:
        base = 0.7
        if (
            (shot_type == ShotType.PUTT.value and distance <= 5)
            or (shot_type == ShotType.CHIP_SHOT.value and distance <= 30)
            or (shot_type == ShotType.BUNKER_SHOT.value and position.position == PositionType.BUNKER.value)
        ):
            base = 0.9
        return round(min(base + (position.confidence - 0.7), 1.0), 3)

    @staticmethod
    def _reasoning(
        shot_type: str, distance: float, position: PositionAnalysis, hole: Optional[HoleContext]
    ) -> str:
        reasons = [f"Distance to pin: {distance:.0f} yards", f"Position: {position.position}"]
        if hole is not None:
            reasons.append(f"Hole {hole.hole_number} (Par {hole.par})")
        reasons.append(SHOT_REASONS.get(shot_type, "General golf situation"))
        return ". ".join(reasons)

    @staticmethod
    def _alternatives(shot_type: str, distance: float) -> List[AlternativeShotType]:
        alternatives = []
        if 20 <= distance <= 40 and shot_type != ShotType.CHIP_SHOT.value:
            alternatives.append(AlternativeShotType(
                shot_type=ShotType.CHIP_SHOT.value,
                probability=0.3,
                reason="Distance range overlap for short game",
            ))
        if 60 <= distance <= 100 and shot_type != ShotType.PITCH_SHOT.value:
            alternatives.append(AlternativeShotType(
                shot_type=ShotType.PITCH_SHOT.value,
                probability=0.25,
                reason="Could be played as pitch shot",
            ))
        if shot_type != ShotType.GENERAL_SHOT.value:
            alternatives.append(AlternativeShotType(
                shot_type=ShotType.GENERAL_SHOT.value,
                probability=0.15,
                reason="General shot approach possible",
            ))
        return alternatives

    @staticmethod
    def _influencing_factors(distance, position, hole, shot) -> List[str]:
        factors = [f"Distance: {distance:.0f} yards", f"Position: {position.position}"]
        if hole is not None:
            factors.append(f"Hole par: {hole.par}")
        weather = shot.weather if shot else None
        if weather is not None and weather.wind_speed is not None and weather.wind_speed > 10:
            factors.append(f"Wind: {weather.wind_speed:g} mph {weather.wind_direction or ''}".rstrip())
        quality = position.lie_info.quality if position.lie_info else None
        if quality != "good":
            factors.append(f"Lie quality: {quality or 'unknown'}")
        return factors

    # ══════════════════════════════════════════════════════════════════════
    # Difficulty
    # ══════════════════════════════════════════════════════════════════════

    def assess_shot_difficulty(
        self,
        shot_type: str,
        golf_context: GolfContext,
        skill_level: Optional[str] = None,
    ) -> ShotDifficultyAssessment:
        """
        Rate a shot 1-10 and compare it with what the golfer's skill level
        handles comfortably. Success probability is capped at 0.95.
        """
        skill = (skill_level or golf_context.user.skill_level or "").lower()
        level = BASE_DIFFICULTY.get(shot_type, 5)
        comfort = SKILL_DIFFICULTY.get(skill, 5)

        if level <= comfort - 2:
            match = "easy"
        elif level <= comfort + 1:
            match = "appropriate"
        elif level <= comfort + 3:
            match = "challenging"
        else:
            match = "very_difficult"

        return ShotDifficultyAssessment(
            difficulty_level=level,
            difficulty_category=_category(level),
            skill_level_match=match,
            difficulty_factors=self._difficulty_factors(golf_context),
            success_probability=self._success_probability(level, skill),
            risk_assessment=RiskAssessment(
                risk_level=_risk_level(level),
                potential_penalties=list(POTENTIAL_PENALTIES.get(shot_type, DEFAULT_PENALTIES)),
            ),
        )

    @staticmethod
    def _success_probability(level: int, skill: str) -> float:
        if level <= 3:
            base = 0.85
        elif level <= 5:
            base = 0.7
        elif level <= 7:
            base = 0.55
        elif level <= 9:
            base = 0.4
        else:
            base = 0.25
        multiplier = SKILL_SUCCESS_MULTIPLIER.get(skill, 0.7)
        return round(min(base * multiplier, 0.95), 4)

    @staticmethod
    def _difficulty_factors(golf_context: GolfContext) -> List[DifficultyFactor]:
        factors = []
        location = golf_context.location
        if location is not None and (location.distance_to_pin_meters or 0) > 150:
            factors.append(DifficultyFactor(
                factor="Distance",
                severity=3,
                description="Long distance shot requires power and accuracy",
            ))
        weather = golf_context.weather
        if weather is not None and (weather.wind_speed or 0) > 15:
            factors.append(DifficultyFactor(
                factor="Wind",
                severity=4,
                description="Strong wind affects ball flight significantly",
            ))
        return factors

    # ══════════════════════════════════════════════════════════════════════
    # Reference data
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def get_shot_distance_range(shot_type: str) -> ShotDistanceRange:
        low, high, description, characteristics = DISTANCE_RANGES.get(shot_type, DEFAULT_DISTANCE_RANGE)
        return ShotDistanceRange(
            shot_type=shot_type,
            min_distance_yards=low,
            max_distance_yards=high,
            description=description,
            characteristics=list(characteristics),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
shot_type_service = ShotTypeDetectionService()
