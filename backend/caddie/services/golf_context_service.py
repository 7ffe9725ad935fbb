"""
CaddieAI Backend — Golf Context Service (AI Prompt Context Aggregator)
=======================================================================

What:  Assembles a GolfContext snapshot from users, courses, holes, rounds
       and GPS fixes, turns it into a system prompt, and gives a simple
       distance-based club recommendation.
How:   Sequential SQLAlchemy lookups; missing pieces are left empty rather
       than failing the whole context.
Who:   The /api/context routes and the voice caddie session setup.

Context Assembly (generate_context):
    ┌─────────┐   ┌──────────┐   ┌─────────┐   ┌──────────┐   ┌──────────┐
    │  User   │──▶│  Course  │──▶│  Round  │──▶│   Hole   │──▶│ Location │
    │ profile │   │ (or the  │   │ status, │   │ (DB row  │   │ latest   │
    └─────────┘   │ round's) │   │ elapsed │   │ or par 4)│   │ fix      │
                  └──────────┘   └─────────┘   └──────────┘   └──────────┘
    then performance (round score) and the default weather placeholder.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from caddie.exceptions import CaddieError, DatabaseError
from caddie.geo import haversine_m, meters_to_yards
from caddie.models.course import Course, Hole
from caddie.models.location import LocationPoint
from caddie.models.round import Round
from caddie.models.user import User
from caddie.schemas.golf_context import (
    ClubRecommendation,
    CourseContext,
    GolfContext,
    HoleContext,
    LocationContext,
    PerformanceContext,
    RoundContext,
    UserGolfProfile,
    WeatherContext,
)
from caddie.services.prompts import prompt_for_context

logger = logging.getLogger(__name__)

DEFAULT_HOLE_PAR = 4
DEFAULT_HOLE_YARDAGE = 400

# Upper bound (exclusive) in yards → club
CLUB_BY_DISTANCE = [
    (50, "Sand Wedge"),
    (80, "Pitching Wedge"),
    (110, "Gap Wedge"),
    (130, "9 Iron"),
    (150, "8 Iron"),
    (170, "7 Iron"),
    (190, "6 Iron"),
    (210, "5 Iron"),
    (230, "4 Iron"),
    (250, "3 Iron or Hybrid"),
]
LONGEST_CLUB = "Driver or 3 Wood"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored timestamp is UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _elapsed(start_time: Optional[datetime]) -> Optional[timedelta]:
    if start_time is None:
        return None
    return _utcnow() - _as_utc(start_time)


def _format_elapsed(elapsed: timedelta) -> str:
    minutes = int(elapsed.total_seconds()) // 60
    return f"{minutes // 60}:{minutes % 60:02d}"


def _num(value: float) -> str:
    return f"{value:g}"


def determine_difficulty(course_rating: Optional[float], slope_rating: Optional[int]) -> str:
    """Difficulty label from the slope rating; Unknown unless both ratings exist."""
    if course_rating is None or slope_rating is None:
        return "Unknown"
    if slope_rating < 113:
        return "Easy"
    if slope_rating < 125:
        return "Moderate"
    if slope_rating < 140:
        return "Challenging"
    return "Very Challenging"


def default_weather() -> WeatherContext:
    # Placeholder until a weather provider is wired in
    return WeatherContext(conditions="Partly Cloudy", temperature=72, wind_speed=5, wind_direction="SW")


class GolfContextService:

    # ══════════════════════════════════════════════════════════════════════
    # Context assembly
    # ══════════════════════════════════════════════════════════════════════

    async def generate_context(
        self,
        db: AsyncSession,
        user_id: int,
        round_id: Optional[int] = None,
        course_id: Optional[int] = None,
        current_hole: Optional[int] = None,
    ) -> GolfContext:
        """
        Build the context for a user, optionally scoped to a round, course
        and hole. When only a round is given its course is used.
        """
        try:
            context = GolfContext(user=await self._user_profile(db, user_id))

            if course_id is not None:
                context.course = await self._course_context(db, course_id)

            round_row: Optional[Round] = None
            if round_id is not None:
                round_row = await self._get_round(db, round_id)
                if round_row is not None:
                    context.round = self._round_context(round_row)
                    if context.course is None:
                        context.course = await self._course_context(db, round_row.course_id)

            if current_hole is not None and context.course is not None:
                context.current_hole = await self._hole_context(
                    db, context.course.course_id, current_hole
                )

            if round_id is not None:
                context.location = await self._latest_location(db, user_id, round_id)

            context.performance = PerformanceContext(
                current_round_score=round_row.total_score if round_row else None
            )
            context.weather = default_weather()

            logger.info(
                "Generated golf context for user %s, round %s, course %s",
                user_id, round_id, context.course.course_id if context.course else None,
            )
            return context

        except CaddieError:
            raise
        except Exception as e:
            logger.error("Error generating golf context for user %s: %s", user_id, e, exc_info=True)
            raise DatabaseError(
                message="Could not build the golf context. Please try again.",
                context={"user_id": user_id, "error_type": type(e).__name__},
            )

    async def update_context(
        self,
        db: AsyncSession,
        context: GolfContext,
        current_hole: Optional[int] = None,
        location: Optional[LocationContext] = None,
    ) -> GolfContext:
        """
        Refresh the moving parts of an existing context: the hole, the GPS
        fix (with distance to the pin when the hole has pin coordinates) and
        the round's status and elapsed time.
        """
        try:
            if (
                current_hole is not None
                and context.course is not None
                and (context.current_hole is None or context.current_hole.hole_number != current_hole)
            ):
                context.current_hole = await self._hole_context(
                    db, context.course.course_id, current_hole
                )

            if location is not None:
                fix = LocationContext(
                    latitude=location.latitude,
                    longitude=location.longitude,
                    accuracy_meters=location.accuracy_meters,
                    current_hole=context.current_hole.hole_number if context.current_hole else None,
                    timestamp=location.timestamp,
                )
                fix.distance_to_pin_meters = self.distance_to_pin(fix, context.current_hole)
                context.location = fix

            if context.round is not None:
                round_row = await self._get_round(db, context.round.round_id)
                if round_row is not None:
                    context.round.current_hole = round_row.current_hole
                    context.round.status = round_row.status
                    context.round.elapsed_time = _elapsed(round_row.start_time)
                    context.round.current_score = round_row.total_score
                    context.performance.current_round_score = round_row.total_score

            context.generated_at = _utcnow()
            return context

        except CaddieError:
            raise
        except Exception as e:
            logger.error("Error updating golf context: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not refresh the golf context. Please try again.",
                context={"user_id": context.user.user_id, "error_type": type(e).__name__},
            )

    @staticmethod
    def distance_to_pin(location: LocationContext, hole: Optional[HoleContext]) -> Optional[float]:
        if hole is None or hole.pin_latitude is None or hole.pin_longitude is None:
            return None
        return haversine_m(location.latitude, location.longitude, hole.pin_latitude, hole.pin_longitude)

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _user_profile(self, db: AsyncSession, user_id: int) -> UserGolfProfile:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            return UserGolfProfile(user_id=user_id, name="")
        return UserGolfProfile(
            user_id=user_id,
            name=user.full_name,
            handicap=user.handicap,
            skill_level=user.skill_level,
            playing_style=user.playing_style,
            preferences=user.preferences,
        )

    async def _course_context(self, db: AsyncSession, course_id: int) -> Optional[CourseContext]:
        result = await db.execute(select(Course).where(Course.id == course_id))
        course = result.scalar_one_or_none()
        if course is None:
            return None
        return CourseContext(
            course_id=course.id,
            name=course.name,
            description=course.description,
            location=", ".join(part or "" for part in (course.city, course.state, course.country)),
            total_holes=course.total_holes,
            par_total=course.par_total,
            course_rating=course.course_rating,
            slope_rating=course.slope_rating,
            difficulty=determine_difficulty(course.course_rating, course.slope_rating),
            features=course.amenities,
        )

    async def _get_round(self, db: AsyncSession, round_id: int) -> Optional[Round]:
        result = await db.execute(select(Round).where(Round.id == round_id))
        return result.scalar_one_or_none()

    @staticmethod
    def _round_context(round_row: Round) -> RoundContext:
        return RoundContext(
            round_id=round_row.id,
            start_time=_as_utc(round_row.start_time) if round_row.start_time else _utcnow(),
            current_hole=round_row.current_hole,
            status=round_row.status,
            elapsed_time=_elapsed(round_row.start_time),
            current_score=round_row.total_score,
        )

    async def _hole_context(self, db: AsyncSession, course_id: int, hole_number: int) -> HoleContext:
        result = await db.execute(
            select(Hole).where(Hole.course_id == course_id, Hole.hole_number == hole_number)
        )
        hole = result.scalar_one_or_none()
        if hole is None:
            return HoleContext(
                hole_id=hole_number,
                hole_number=hole_number,
                par=DEFAULT_HOLE_PAR,
                yardage=DEFAULT_HOLE_YARDAGE,
                description=f"Hole {hole_number}",
            )
        return HoleContext(
            hole_id=hole.id,
            hole_number=hole.hole_number,
            par=hole.par,
            yardage=hole.yardage_men or hole.yardage_women,
            handicap=hole.stroke_index,
            description=hole.description,
            hazards=list(hole.hazards or []),
            pin_latitude=hole.pin_latitude,
            pin_longitude=hole.pin_longitude,
        )

    async def _latest_location(
        self, db: AsyncSession, user_id: int, round_id: int
    ) -> Optional[LocationContext]:
        result = await db.execute(
            select(LocationPoint)
            .where(LocationPoint.round_id == round_id, LocationPoint.user_id == user_id)
            .order_by(LocationPoint.recorded_at.desc())
            .limit(1)
        )
        point = result.scalar_one_or_none()
        if point is None:
            return None
        return LocationContext(
            latitude=point.latitude,
            longitude=point.longitude,
            accuracy_meters=point.accuracy_meters,
            distance_to_pin_meters=point.distance_to_pin_meters,
            position_on_hole=point.position_on_hole,
            timestamp=_as_utc(point.recorded_at),
        )

    # ══════════════════════════════════════════════════════════════════════
    # Prompt and advice
    # ══════════════════════════════════════════════════════════════════════

    def generate_system_prompt(
        self, context: GolfContext, personality_type: str = "encouraging_caddie"
    ) -> str:
        """
        Persona for the golfer's skill level and playing style, followed by
        the "Current Context:" block describing the round.

        Situation is judged against a rough par of four per hole played:
        more than two under is a hot round, more than four over a struggle.
        """
        situation = None
        score = context.performance.current_round_score
        hole = context.round.current_hole if context.round else None
        if score is not None and hole is not None:
            relative = score - hole * 4
            if relative < -2:
                situation = "playing_well"
            elif relative > 4:
                situation = "struggling"

        base = prompt_for_context(
            context.user.skill_level or "intermediate",
            context.user.playing_style,
            situation,
            personality_type,
        )
        return f"{base}\n\n{self.contextual_info(context)}"

    @staticmethod
    def contextual_info(context: GolfContext) -> str:
        lines: List[str] = []

        user = context.user
        lines.append(f"Player: {user.name or ''}")
        if user.handicap is not None:
            lines.append(f"Handicap: {_num(user.handicap)}")
        if user.skill_level:
            lines.append(f"Skill Level: {user.skill_level}")

        if context.course is not None:
            lines.append(f"Course: {context.course.name}")
            lines.append(f"Par {context.course.par_total}, {context.course.total_holes} holes")
            if context.course.difficulty:
                lines.append(f"Difficulty: {context.course.difficulty}")

        if context.round is not None:
            lines.append(f"Round Status: {context.round.status or ''}")
            if context.round.current_hole is not None:
                lines.append(f"Current Hole: {context.round.current_hole}")
            if context.round.elapsed_time is not None:
                lines.append(f"Playing Time: {_format_elapsed(context.round.elapsed_time)}")

        hole = context.current_hole
        if hole is not None:
            lines.append(f"Hole {hole.hole_number} - Par {hole.par}")
            if hole.yardage is not None:
                lines.append(f"Distance: {hole.yardage} yards")
            if hole.description:
                lines.append(f"Hole Description: {hole.description}")

        location = context.location
        if location is not None and location.distance_to_pin_meters is not None:
            yards = meters_to_yards(location.distance_to_pin_meters)
            lines.append(f"Distance to Pin: {yards:.0f} yards")

        weather = context.weather
        if weather is not None:
            text = f"Weather: {weather.conditions or ''}"
            if weather.temperature is not None:
                text += f", {_num(weather.temperature)}°F"
            if weather.wind_speed:
                text += f", Wind: {_num(weather.wind_speed)} mph {weather.wind_direction or ''}".rstrip()
            lines.append(text)

        if not lines:
            return ""
        return "Current Context:\n" + "\n".join(lines)

    def get_club_recommendation(
        self,
        context: GolfContext,
        distance_to_pin: float,
        conditions: Optional[str] = None,
    ) -> ClubRecommendation:
        """Club for the distance (yards), adjusted for a beginner and for wind."""
        club = next((name for limit, name in CLUB_BY_DISTANCE if distance_to_pin < limit), LONGEST_CLUB)
        confidence = 0.8
        reasoning = f"Based on {_num(distance_to_pin)} yards to pin"
        alternatives: List[str] = []

        if context.user.skill_level == "beginner":
            reasoning += ". Recommend more forgiving clubs for your skill level."
            alternatives.append("Consider using a higher lofted club for better control")

        if conditions and "wind" in conditions.lower():
            reasoning += " Consider wind conditions - may need one club up or down."
            confidence -= 0.1

        strategy = None
        if context.current_hole is not None:
            strategy = f"Hole {context.current_hole.hole_number} - Par {context.current_hole.par}"
            if context.current_hole.description:
                strategy += f". {context.current_hole.description}"

        return ClubRecommendation(
            club=club,
            confidence=round(confidence, 2),
            reasoning=reasoning,
            alternatives=alternatives,
            strategy=strategy,
            factors={
                "distance": distance_to_pin,
                "conditions": conditions or "normal",
                "skillLevel": context.user.skill_level or "intermediate",
            },
        )


# ── Singleton Instance ────────────────────────────────────────────────────
golf_context_service = GolfContextService()
