"""Request-scoped access to the application's shared services."""

from fastapi import Request

from aidebate.debate_engine.core import DebateEngine
from aidebate.moderation import ContentModerator
from aidebate.web.debate_manager import DebateManager


def get_debate_manager(request: Request) -> DebateManager:
    return request.app.state.debate_manager


def get_engine(request: Request) -> DebateEngine:
    return request.app.state.debate_manager.engine


def get_moderator(request: Request) -> ContentModerator:
    return request.app.state.moderator
