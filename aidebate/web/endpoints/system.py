"""System health and provider status endpoints."""

import logging

from fastapi import APIRouter, Depends

from aidebate.debate_engine.core import DebateEngine
from aidebate.web.dependencies import get_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"isAlive": True}


@router.get("/config")
async def get_public_config(engine: DebateEngine = Depends(get_engine)):
    """Defaults used when a session does not override them."""
    debate = engine.config.debate
    return {
        "rounds": debate.rounds,
        "language": debate.language,
        "playbackSpeed": debate.playback_speed,
        "speedDelaysMs": debate.speed_delays_ms,
        "judgeCount": engine.config.judging.judge_count,
    }
