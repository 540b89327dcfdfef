"""FastAPI web application for the AI debate system."""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aidebate.debate_engine.core import DebateEngine
from aidebate.moderation import ContentModerator
from aidebate.web.debate_manager import DebateManager
from aidebate.web.endpoints.moderation import router as moderation_router
from aidebate.web.endpoints.sessions import router as sessions_router
from aidebate.web.endpoints.sessions import ws_router as sessions_ws_router
from aidebate.web.endpoints.system import router as system_router
from aidebate.web.endpoints.topics import router as topics_router

logger: logging.Logger = logging.getLogger(__name__)


def _build_default_engine() -> DebateEngine:
    from aidebate.config.settings import get_default_config
    from aidebate.debate_engine.database import DatabaseManager
    from aidebate.models import build_model_manager

    config = get_default_config()
    db = DatabaseManager(config.system.database_path)
    return DebateEngine(config, db, build_model_manager(config))


def get_allowed_origins() -> list[str] | None:
    """Get CORS origins from environment or use development defaults."""
    env_origins: str | None = os.environ.get("ALLOWED_ORIGINS")
    if env_origins:
        return [origin.strip() for origin in env_origins.split(",")]
    return None


def create_app(
    engine: DebateEngine | None = None, moderator: ContentModerator | None = None
) -> FastAPI:
    """Build the application; the engine is created from config at startup when not given."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        debate_engine = engine or _build_default_engine()
        app.state.debate_manager = DebateManager(debate_engine)
        app.state.moderator = moderator or ContentModerator(
            debate_engine.db, debate_engine.config.system.moderation_cache_ttl_seconds
        )
        app.state.moderator.seed(debate_engine.config.moderation.banned_words)
        logger.info("Debate engine ready")

        yield

        await app.state.debate_manager.shutdown()
        logger.info("Debate streams stopped")

    app = FastAPI(
        title="AI Debate System",
        description="Multi-round AI debates with moderator narration and judge scoring",
        version="1.0.0",
        lifespan=lifespan,
    )

    allowed_origins = get_allowed_origins()
    if allowed_origins:
        logger.info(f"Setting CORS allowed origins: {allowed_origins}")
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        logger.info("No ALLOWED_ORIGINS set, using development CORS settings")
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(system_router)
    app.include_router(topics_router)
    app.include_router(moderation_router)
    app.include_router(sessions_router)
    app.include_router(sessions_ws_router)
    return app

