from typing import Literal

from pydantic import BaseModel, Field

from aidebate.config.settings import PersonaConfig


class SessionSetupRequest(BaseModel):
    """Request model for creating a new debate session."""

    topic_id: int
    affirmative_persona: PersonaConfig | None = None
    negative_persona: PersonaConfig | None = None
    playback_speed: Literal["FAST", "NORMAL", "SLOW"] | None = None
    language: Literal["en", "zh"] | None = None
    round_count: int | None = Field(default=None, ge=1, le=20)
    judge_count: int | None = Field(default=None, ge=1, le=9)
