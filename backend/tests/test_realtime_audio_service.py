"""
CaddieAI Backend — Realtime Voice Session Registry Tests
=========================================================

What we test:
    ✅ Session creation checks round existence and ownership
    ✅ One live session per user: replaced by default, refused on request
    ✅ Lookups return copies, not the registry's own objects, and drop orphaned mappings
    ✅ Ending, reconfiguring and expiring sessions
    ✅ Usage statistics across ended and live sessions
"""

from datetime import datetime, timedelta, timezone

import pytest

from caddie.exceptions import AuthorizationError, DatabaseError, NotFoundError, SessionLimitError
from caddie.schemas.realtime import RealtimeSessionConfig, SessionStatus
from caddie.services.realtime_audio_service import RealtimeAudioService


@pytest.fixture
def service():
    return RealtimeAudioService(session_ttl_seconds=3600)


@pytest.fixture
def round_db(mock_db_session, db_result, sample_round):
    mock_db_session.execute.return_value = db_result(scalar=sample_round)
    return mock_db_session


class TestCreateSession:

    @pytest.mark.asyncio
    async def test_create(self, service, round_db):
        session = await service.create_session(round_db, user_id=7, round_id=42)

        assert session.status == SessionStatus.ACTIVE
        assert session.websocket_url == "/api/realtimeaudio/connect/42"
        assert session.metadata["courseId"] == 1
        assert session.config.voice == "echo"
        assert service.get_user_session_count(7) == 1

    @pytest.mark.asyncio
    async def test_missing_round(self, service, mock_db_session, db_result):
        mock_db_session.execute.return_value = db_result(scalar=None)

        with pytest.raises(NotFoundError):
            await service.create_session(mock_db_session, user_id=7, round_id=42)

    @pytest.mark.asyncio
    async def test_round_of_another_user(self, service, round_db):
        with pytest.raises(AuthorizationError):
            await service.create_session(round_db, user_id=8, round_id=42)
        assert service.get_all_active_sessions() == []

    @pytest.mark.asyncio
    async def test_round_lookup_failure(self, service, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(DatabaseError):
            await service.create_session(mock_db_session, user_id=7, round_id=42)

    @pytest.mark.asyncio
    async def test_new_session_replaces_old(self, service, round_db):
        first = await service.create_session(round_db, user_id=7, round_id=42)
        second = await service.create_session(round_db, user_id=7, round_id=42)

        assert first.session_id != second.session_id
        assert [s.session_id for s in service.get_all_active_sessions()] == [second.session_id]
        assert service.end_session(first.session_id) is False

    @pytest.mark.asyncio
    async def test_refuse_replacement(self, service, round_db):
        await service.create_session(round_db, user_id=7, round_id=42)

        with pytest.raises(SessionLimitError):
            await service.create_session(round_db, user_id=7, round_id=42, replace_existing=False)


class TestSessionLookup:

    @pytest.mark.asyncio
    async def test_active_session_for_round(self, service, round_db):
        created = await service.create_session(round_db, user_id=7, round_id=42)

        assert service.get_active_session(7, 42).session_id == created.session_id
        assert service.get_active_session(7, 43) is None
        assert service.get_active_session(8, 42) is None

    @pytest.mark.asyncio
    async def test_returned_session_is_a_copy(self, service, round_db):
        created = await service.create_session(round_db, user_id=7, round_id=42)
        created.status = SessionStatus.ERROR
        created.config.voice = "alloy"

        stored = service.get_active_session(7, 42)
        assert stored.status == SessionStatus.ACTIVE
        assert stored.config.voice == "echo"

    @pytest.mark.asyncio
    async def test_orphaned_user_mapping_is_dropped(self, service, round_db):
        created = await service.create_session(round_db, user_id=7, round_id=42)
        del service._sessions[created.session_id]

        assert service.get_active_session(7, 42) is None
        assert 7 not in service._user_sessions
        assert service.get_user_session_count(7) == 0
        assert service.is_rate_limit_exceeded(7) is False

    @pytest.mark.asyncio
    async def test_rate_limit_reflects_live_session(self, service, round_db):
        assert service.is_rate_limit_exceeded(7) is False
        session = await service.create_session(round_db, user_id=7, round_id=42)
        assert service.is_rate_limit_exceeded(7) is True

        service.end_session(session.session_id)
        assert service.is_rate_limit_exceeded(7) is False


class TestSessionChanges:

    @pytest.mark.asyncio
    async def test_end_session(self, service, round_db):
        session = await service.create_session(round_db, user_id=7, round_id=42)

        assert service.end_session(session.session_id) is True
        assert service.end_session(session.session_id) is False
        assert service.get_active_session(7, 42) is None

    @pytest.mark.asyncio
    async def test_update_config(self, service, round_db):
        session = await service.create_session(round_db, user_id=7, round_id=42)

        updated = service.update_session_config(
            session.session_id, RealtimeSessionConfig(voice="alloy", temperature=0.3)
        )

        assert updated.config.voice == "alloy"
        assert service.get_active_session(7, 42).config.temperature == 0.3

    def test_update_unknown_session(self, service):
        with pytest.raises(NotFoundError):
            service.update_session_config("missing", RealtimeSessionConfig())

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, service, round_db):
        session = await service.create_session(round_db, user_id=7, round_id=42)
        service._sessions[session.session_id].started_at -= timedelta(hours=2)

        assert service.cleanup_expired_sessions() == 1
        assert service.get_all_active_sessions() == []
        assert service.cleanup_expired_sessions() == 0


class TestUsageStatistics:

    @pytest.mark.asyncio
    async def test_counts_ended_and_live_sessions(self, service, round_db, monkeypatch):
        from caddie.config import settings

        monkeypatch.setattr(settings, "realtime_cost_per_minute", 0.06)

        first = await service.create_session(round_db, user_id=7, round_id=42)
        service._sessions[first.session_id].started_at -= timedelta(minutes=10)
        service.end_session(first.session_id)
        await service.create_session(round_db, user_id=7, round_id=42)

        stats = service.get_usage_statistics(7)

        assert stats.total_sessions == 2
        assert stats.total_duration >= timedelta(minutes=10)
        assert stats.estimated_cost == pytest.approx(0.6, abs=0.01)
        assert stats.detailed_stats["totalMinutes"] == pytest.approx(10, abs=0.1)

    @pytest.mark.asyncio
    async def test_window_excludes_old_sessions(self, service, round_db):
        session = await service.create_session(round_db, user_id=7, round_id=42)
        service.end_session(session.session_id)

        stats = service.get_usage_statistics(7, from_date=datetime.now(timezone.utc) + timedelta(minutes=1))

        assert stats.total_sessions == 0
        assert stats.estimated_cost == 0

    def test_user_without_sessions(self, service):
        stats = service.get_usage_statistics(99)
        assert stats.total_sessions == 0
        assert stats.detailed_stats["averageSessionDurationSeconds"] == 0
