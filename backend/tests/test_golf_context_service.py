"""
CaddieAI Backend — Golf Context Service Tests
==============================================

What we test:
    ✅ Context assembly from user, round, course, hole and location rows
    ✅ Defaults when rows are missing (par 4 / 400 yd hole, empty profile)
    ✅ update_context moves the hole, recomputes distance to pin, refreshes the round
    ✅ System prompt persona, situation and context block
    ✅ Club recommendation by distance, skill and wind
"""

from datetime import timedelta

import pytest

from caddie.exceptions import DatabaseError
from caddie.schemas.golf_context import HoleContext, LocationContext, RoundContext
from caddie.services import prompts
from caddie.services.golf_context_service import (
    GolfContextService,
    determine_difficulty,
)


class TestGenerateContext:

    def setup_method(self):
        self.service = GolfContextService()

    @pytest.mark.asyncio
    async def test_full_context_from_round(
        self, mock_db_session, db_result, sample_user, sample_round, sample_course
    ):
        mock_db_session.execute.side_effect = [
            db_result(scalar=sample_user),
            db_result(scalar=sample_round),
            db_result(scalar=sample_course),
            db_result(scalar=sample_course.holes[0]),
            db_result(scalar=None),
        ]

        context = await self.service.generate_context(
            mock_db_session, user_id=7, round_id=42, current_hole=1
        )

        assert context.user.name == "Jordan Lee"
        assert context.user.playing_style == "conservative"
        assert context.course.location == "Pebble Beach, California, USA"
        assert context.course.difficulty == "Very Challenging"
        assert context.round.status == "in_progress"
        assert context.round.elapsed_time >= timedelta(minutes=75)
        assert context.current_hole.yardage == 380
        assert context.current_hole.handicap == 6
        assert context.location is None
        assert context.performance.current_round_score == 13
        assert context.weather.conditions == "Partly Cloudy"

    @pytest.mark.asyncio
    async def test_missing_hole_uses_defaults(self, mock_db_session, db_result, sample_user, sample_course):
        mock_db_session.execute.side_effect = [
            db_result(scalar=sample_user),
            db_result(scalar=sample_course),
            db_result(scalar=None),
        ]

        context = await self.service.generate_context(
            mock_db_session, user_id=7, course_id=1, current_hole=12
        )

        assert context.current_hole.par == 4
        assert context.current_hole.yardage == 400
        assert context.current_hole.description == "Hole 12"
        assert context.round is None

    @pytest.mark.asyncio
    async def test_unknown_user_gets_empty_profile(self, mock_db_session, db_result):
        mock_db_session.execute.return_value = db_result(scalar=None)

        context = await self.service.generate_context(mock_db_session, user_id=99)

        assert context.user.user_id == 99
        assert context.user.name == ""
        assert context.course is None

    @pytest.mark.asyncio
    async def test_database_failure_is_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(DatabaseError):
            await self.service.generate_context(mock_db_session, user_id=7)


class TestUpdateContext:

    def setup_method(self):
        self.service = GolfContextService()

    @pytest.mark.asyncio
    async def test_location_gets_distance_to_pin(self, mock_db_session, golf_context):
        location = LocationContext(latitude=36.5681, longitude=-121.9500)

        updated = await self.service.update_context(mock_db_session, golf_context, location=location)

        assert updated.location.current_hole == 1
        assert updated.location.distance_to_pin_meters == pytest.approx(205, abs=5)
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_hole_change_and_round_refresh(
        self, mock_db_session, db_result, golf_context, sample_course, sample_round
    ):
        golf_context.round = RoundContext(round_id=42, start_time=sample_round.start_time, current_hole=1)
        mock_db_session.execute.side_effect = [
            db_result(scalar=sample_course.holes[1]),
            db_result(scalar=sample_round),
        ]

        updated = await self.service.update_context(mock_db_session, golf_context, current_hole=7)

        assert updated.current_hole.hole_number == 7
        assert updated.current_hole.par == 3
        assert updated.round.current_hole == 3
        assert updated.round.current_score == 13
        assert updated.performance.current_round_score == 13

    def test_distance_to_pin_needs_pin(self):
        hole = HoleContext(hole_id=1, hole_number=1, par=4)
        fix = LocationContext(latitude=0, longitude=0)
        assert GolfContextService.distance_to_pin(fix, hole) is None


class TestSystemPrompt:

    def setup_method(self):
        self.service = GolfContextService()

    def test_persona_and_context_block(self, golf_context):
        golf_context.user.playing_style = "conservative"

        prompt = self.service.generate_system_prompt(golf_context)

        assert prompt.startswith(prompts.ENCOURAGING_CADDIE)
        assert prompts.PERSONALITIES["calm"] in prompt
        assert "Current Context:\nPlayer: Jordan Lee" in prompt
        assert "Hole 1 - Par 4" in prompt
        assert "Weather: Sunny, 70°F, Wind: 5 mph W" in prompt

    def test_distance_to_pin_is_shown_in_yards(self, golf_context):
        golf_context.location = LocationContext(
            latitude=36.5681, longitude=-121.9500, distance_to_pin_meters=182.88
        )

        info = self.service.contextual_info(golf_context)

        assert "Distance to Pin: 200 yards" in info

    def test_no_pin_distance_line_without_location(self, golf_context):
        assert "Distance to Pin" not in self.service.contextual_info(golf_context)

    def test_struggling_round(self, golf_context, sample_round):
        golf_context.round = RoundContext(round_id=42, start_time=sample_round.start_time, current_hole=3)
        golf_context.performance.current_round_score = 20

        prompt = self.service.generate_system_prompt(golf_context)

        assert prompts.SITUATIONS["struggling"] in prompt

    def test_personality_type_used_without_style(self, golf_context):
        prompt = self.service.generate_system_prompt(golf_context, personality_type="witty")
        assert prompts.PERSONALITIES["witty"] in prompt

    def test_skill_level_selects_persona(self, golf_context):
        golf_context.user.skill_level = "beginner"
        assert self.service.generate_system_prompt(golf_context).startswith(prompts.BEGINNER_FRIENDLY)


class TestClubRecommendation:

    def setup_method(self):
        self.service = GolfContextService()

    def test_mid_iron_distance(self, golf_context):
        result = self.service.get_club_recommendation(golf_context, 145)
        assert result.club == "8 Iron"
        assert result.confidence == 0.8
        assert result.factors["skillLevel"] == "intermediate"
        assert result.strategy == "Hole 1 - Par 4"

    def test_beyond_longest_iron(self, golf_context):
        assert self.service.get_club_recommendation(golf_context, 280).club == "Driver or 3 Wood"

    def test_beginner_in_wind(self, golf_context):
        golf_context.user.skill_level = "beginner"
        result = self.service.get_club_recommendation(golf_context, 40, conditions="Windy")
        assert result.club == "Sand Wedge"
        assert result.confidence == 0.7
        assert result.alternatives
        assert "wind" in result.reasoning.lower()


@pytest.mark.parametrize(
    "rating,slope,expected",
    [
        (None, 120, "Unknown"),
        (68.0, 105, "Easy"),
        (71.0, 118, "Moderate"),
        (73.0, 131, "Challenging"),
        (75.5, 145, "Very Challenging"),
    ],
)
def test_determine_difficulty(rating, slope, expected):
    assert determine_difficulty(rating, slope) == expected


def test_build_system_prompt_skips_empty_parts():
    assert prompts.build_system_prompt("base", None, "situation") == "base\n\nsituation"
