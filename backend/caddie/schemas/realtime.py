"""
CaddieAI Backend — Realtime Voice Session Schemas
==================================================

What:  Session records, voice/model configuration and usage statistics for
       the in-memory voice-assistant registry.
Who:   RealtimeAudioService and the /api/realtime routes.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

DEFAULT_CADDIE_INSTRUCTIONS = """You are the CaddieAI voice caddie walking the course with the golfer.

HOW TO SPEAK:
- Answer in fewer than 30 words so the conversation keeps moving
- Sound like an experienced caddie: warm, calm and upbeat
- Skip technical jargon unless the golfer asks for detail

WHAT TO HELP WITH:
- Club choice for the distance and the conditions
- Where to aim and how to manage the hole
- Encouragement after a poor shot

Match your advice to the golfer's skill level and keep it actionable."""


class SessionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"
    ERROR = "error"


class TurnDetection(BaseModel):
    type: str = "server_vad"
    threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    prefix_padding_ms: int = Field(default=300, ge=0)
    silence_duration_ms: int = Field(default=200, ge=0)


class RealtimeSessionConfig(BaseModel):
    instructions: str = DEFAULT_CADDIE_INSTRUCTIONS
    voice: str = "echo"
    input_audio_format: str = "pcm16"
    output_audio_format: str = "pcm16"
    enable_input_transcription: bool = True
    transcription_model: str = "whisper-1"
    turn_detection: TurnDetection = Field(default_factory=TurnDetection)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_response_output_tokens: Optional[int] = Field(default=150, ge=1)


class RealtimeSession(BaseModel):
    session_id: str
    user_id: int
    round_id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    config: RealtimeSessionConfig = Field(default_factory=RealtimeSessionConfig)
    status: SessionStatus = SessionStatus.ACTIVE
    websocket_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @property
    def duration(self) -> timedelta:
        """Elapsed time until the session ended (or until now while active)."""
        return (self.ended_at or datetime.now(timezone.utc)) - self.started_at


class RealtimeUsageStats(BaseModel):
    user_id: int
    from_date: datetime
    to_date: datetime
    total_sessions: int = 0
    total_duration: timedelta = timedelta(0)
    total_audio_bytes: int = 0
    estimated_cost: float = 0.0
    currency: str = "USD"
    detailed_stats: Optional[Dict[str, Any]] = None


class CreateSessionRequest(BaseModel):
    round_id: int
    config: Optional[RealtimeSessionConfig] = None


class CreateSessionResponse(BaseModel):
    session_id: str
    websocket_url: str
    started_at: datetime
    config: RealtimeSessionConfig
    success: bool = True
    error_message: Optional[str] = None
