"""
CaddieAI Backend — Realtime Audio Service (Voice Session Registry)
===================================================================

What:  Tracks the voice-assistant session each golfer has open during a
       round: creation, lookup, config changes, ending, expiry and usage.
How:   Two in-memory maps guarded by a threading.Lock:
           session_id → RealtimeSession
           user_id    → session_id
       A user has at most one live session; creating a new one ends the old.
Who:   The /api/realtime routes; the app lifespan runs the expiry sweep.

Scaling Note:
    State lives in the process. With several workers a golfer may hit a
    worker that does not know their session; run a single worker or move
    the maps to a shared store before scaling out.
"""

import asyncio
import logging
import threading
import uuid
from collections import defaultdict, deque
from datetime import datetime, timedelta, timezone
from typing import Deque, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from caddie.config import settings
from caddie.exceptions import (
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    SessionLimitError,
)
from caddie.models.round import Round
from caddie.schemas.realtime import (
    RealtimeSession,
    RealtimeSessionConfig,
    RealtimeUsageStats,
    SessionStatus,
    TurnDetection,
)

logger = logging.getLogger(__name__)

# Ended sessions kept per user for usage statistics
HISTORY_PER_USER = 500
DEFAULT_USAGE_WINDOW = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_golf_config() -> RealtimeSessionConfig:
    return RealtimeSessionConfig(
        voice=settings.realtime_voice,
        transcription_model=settings.realtime_transcription_model,
        turn_detection=TurnDetection(),
        temperature=settings.realtime_temperature,
        max_response_output_tokens=settings.realtime_max_response_output_tokens,
    )


class RealtimeAudioService:

    def __init__(self, session_ttl_seconds: Optional[int] = None):
        self.session_ttl = timedelta(
            seconds=session_ttl_seconds or settings.realtime_session_ttl_seconds
        )
        self._lock = threading.Lock()
        self._sessions: Dict[str, RealtimeSession] = {}
        self._user_sessions: Dict[int, str] = {}
        self._history: Dict[int, Deque[RealtimeSession]] = defaultdict(
            lambda: deque(maxlen=HISTORY_PER_USER)
        )

    # ══════════════════════════════════════════════════════════════════════
    # Lifecycle
    # ══════════════════════════════════════════════════════════════════════

    async def create_session(
        self,
        db: AsyncSession,
        user_id: int,
        round_id: int,
        config: Optional[RealtimeSessionConfig] = None,
        replace_existing: bool = True,
    ) -> RealtimeSession:
        """
        Open a voice session for the user's round.

        Any session the user already holds is ended first, unless
        `replace_existing` is False, in which case SessionLimitError is raised.

        Raises:
            NotFoundError:      The round does not exist.
            AuthorizationError: The round belongs to another user.
            SessionLimitError:  An active session exists and replacement was refused.
        """
        try:
            result = await db.execute(select(Round).where(Round.id == round_id))
            round_row = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Error loading round %s for voice session: %s", round_id, e, exc_info=True)
            raise DatabaseError(context={"round_id": round_id, "error_type": type(e).__name__})

        if round_row is None:
            raise NotFoundError(resource="round", resource_id=round_id)
        if round_row.user_id != user_id:
            raise AuthorizationError(
                message="Round does not belong to the user",
                context={"user_id": user_id, "round_id": round_id},
            )

        now = _utcnow()
        session = RealtimeSession(
            session_id=str(uuid.uuid4()),
            user_id=user_id,
            round_id=round_id,
            started_at=now,
            config=config or default_golf_config(),
            status=SessionStatus.ACTIVE,
            websocket_url=f"/api/realtimeaudio/connect/{round_id}",
            metadata={
                "roundId": round_id,
                "courseId": round_row.course_id,
                "startedAt": now.isoformat(),
            },
        )

        with self._lock:
            existing_id = self._user_sessions.get(user_id)
            if existing_id is not None and existing_id in self._sessions:
                if not replace_existing:
                    raise SessionLimitError(user_id=user_id)
                self._end_locked(existing_id)
            self._sessions[session.session_id] = session
            self._user_sessions[user_id] = session.session_id

        logger.info(
            "Created realtime audio session %s for user %s, round %s",
            session.session_id, user_id, round_id,
        )
        return session.model_copy(deep=True)

    def get_active_session(self, user_id: int, round_id: int) -> Optional[RealtimeSession]:
        """The user's live session for this round, or None."""
        with self._lock:
            session_id = self._user_sessions.get(user_id)
            if session_id is None:
                return None

            session = self._sessions.get(session_id)
            if session is None:
                # Mapping outlived its session
                del self._user_sessions[user_id]
                return None

            if session.round_id != round_id:
                logger.warning(
                    "Session %s round mismatch: expected %s, got %s",
                    session_id, round_id, session.round_id,
                )
                return None

            return session.model_copy(deep=True)

    def end_session(self, session_id: str) -> bool:
        """End a session. Returns False when it was not live."""
        with self._lock:
            ended = self._end_locked(session_id)
        if ended is None:
            return False
        logger.info("Ended realtime audio session %s for user %s", session_id, ended.user_id)
        return True

    def _end_locked(self, session_id: str) -> Optional[RealtimeSession]:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return None
        session.ended_at = _utcnow()
        session.status = SessionStatus.ENDED
        if self._user_sessions.get(session.user_id) == session_id:
            del self._user_sessions[session.user_id]
        self._history[session.user_id].append(session)
        return session

    def update_session_config(self, session_id: str, config: RealtimeSessionConfig) -> RealtimeSession:
        """
        Raises:
            NotFoundError: No live session with this ID.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFoundError(resource="realtime session", resource_id=session_id)
            session.config = config
            updated = session.model_copy(deep=True)
        logger.info("Updated configuration for realtime audio session %s", session_id)
        return updated

    # ══════════════════════════════════════════════════════════════════════
    # Queries
    # ══════════════════════════════════════════════════════════════════════

    def get_usage_statistics(
        self, user_id: int, from_date: Optional[datetime] = None
    ) -> RealtimeUsageStats:
        """
        Session count and talk time since `from_date` (default: 30 days ago),
        counting ended sessions from history plus the live one.
        """
        now = _utcnow()
        start = from_date or now - DEFAULT_USAGE_WINDOW
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)

        with self._lock:
            sessions: List[RealtimeSession] = [
                s for s in self._history.get(user_id, ()) if s.started_at >= start
            ]
            sessions.extend(
                s for s in self._sessions.values()
                if s.user_id == user_id and s.started_at >= start
            )
            durations = [s.duration for s in sessions]

        total = sum(durations, timedelta(0))
        minutes = total.total_seconds() / 60
        average = total / len(durations) if durations else timedelta(0)

        return RealtimeUsageStats(
            user_id=user_id,
            from_date=start,
            to_date=now,
            total_sessions=len(sessions),
            total_duration=total,
            total_audio_bytes=0,
            estimated_cost=round(minutes * settings.realtime_cost_per_minute, 4),
            currency=settings.realtime_usage_currency,
            detailed_stats={
                "averageSessionDurationSeconds": round(average.total_seconds(), 1),
                "totalMinutes": round(minutes, 2),
            },
        )

    def is_rate_limit_exceeded(self, user_id: int) -> bool:
        """One live session per user."""
        with self._lock:
            return user_id in self._user_sessions

    def get_all_active_sessions(self) -> List[RealtimeSession]:
        with self._lock:
            return [
                s.model_copy(deep=True)
                for s in self._sessions.values()
                if s.status == SessionStatus.ACTIVE
            ]

    def get_user_session_count(self, user_id: int) -> int:
        with self._lock:
            return sum(
                1 for s in self._sessions.values()
                if s.user_id == user_id and s.status == SessionStatus.ACTIVE
            )

    # ══════════════════════════════════════════════════════════════════════
    # Expiry
    # ══════════════════════════════════════════════════════════════════════

    def cleanup_expired_sessions(self) -> int:
        """End active sessions older than the TTL. Returns how many were ended."""
        cutoff = _utcnow() - self.session_ttl
        with self._lock:
            expired = [
                s.session_id for s in self._sessions.values()
                if s.status == SessionStatus.ACTIVE and s.started_at < cutoff
            ]
            ended = [self._end_locked(session_id) for session_id in expired]

        for session in ended:
            if session is not None:
                logger.info(
                    "Cleaned up expired session %s for user %s", session.session_id, session.user_id
                )
        return len(expired)

    async def run_cleanup_loop(self, interval_seconds: Optional[int] = None) -> None:
        """Periodic sweep; runs until cancelled by the app lifespan."""
        interval = interval_seconds or settings.realtime_cleanup_interval_seconds
        logger.info("Realtime session sweep started (every %ss)", interval)
        while True:
            await asyncio.sleep(interval)
            try:
                self.cleanup_expired_sessions()
            except Exception as e:
                logger.error("Realtime session sweep failed: %s", str(e), exc_info=True)

    def reset(self) -> None:
        """Drop all sessions and history (used in tests)."""
        with self._lock:
            self._sessions.clear()
            self._user_sessions.clear()
            self._history.clear()


# ── Singleton Instance ────────────────────────────────────────────────────
realtime_audio_service = RealtimeAudioService()
