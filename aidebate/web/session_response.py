from pydantic import BaseModel

from aidebate.config.settings import PersonaConfig
from aidebate.debate_engine.session import DebateSession


class SessionResponse(BaseModel):
    """Response model for debate session information."""

    id: int
    topic_id: int
    status: str
    is_paused: bool
    checkpoint: str | None = None
    playback_speed: str
    language: str
    round_count: int
    judge_count: int
    affirmative_persona: PersonaConfig
    negative_persona: PersonaConfig
    started_at: str | None = None
    completed_at: str | None = None
    final_score_affirmative: float | None = None
    final_score_negative: float | None = None
    winner: str | None = None

    @classmethod
    def from_session(cls, session: DebateSession) -> "SessionResponse":
        assert session.session_id is not None
        return cls(
            id=session.session_id,
            topic_id=session.topic_id,
            status=session.status.value,
            is_paused=session.is_paused,
            checkpoint=session.checkpoint,
            playback_speed=session.playback_speed.value,
            language=session.language,
            round_count=session.round_count,
            judge_count=session.judge_count,
            affirmative_persona=session.affirmative_persona,
            negative_persona=session.negative_persona,
            started_at=session.started_at.isoformat() if session.started_at else None,
            completed_at=session.completed_at.isoformat() if session.completed_at else None,
            final_score_affirmative=(
                float(session.final_score_affirmative)
                if session.final_score_affirmative is not None
                else None
            ),
            final_score_negative=(
                float(session.final_score_negative)
                if session.final_score_negative is not None
                else None
            ),
            winner=session.winner.value if session.winner else None,
        )
