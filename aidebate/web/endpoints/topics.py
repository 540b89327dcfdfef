"""Debate topic endpoints."""

import logging

from fastapi import APIRouter, Depends

from aidebate.debate_engine.core import DebateEngine
from aidebate.debate_engine.models import Topic
from aidebate.moderation import ContentModerator
from aidebate.web.dependencies import get_engine, get_moderator
from aidebate.web.errors import translate_engine_errors
from aidebate.web.topic_request import TopicCreateRequest, TopicResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/topics")


@router.post("", response_model=TopicResponse, status_code=201)
async def create_topic(
    request: TopicCreateRequest,
    engine: DebateEngine = Depends(get_engine),
    moderator: ContentModerator = Depends(get_moderator),
):
    """Create a topic after checking it against the sensitive word list."""
    with translate_engine_errors():
        moderator.ensure_acceptable(request.title, request.description)
    topic = engine.db.create_topic(Topic(title=request.title, description=request.description))
    logger.info(f"Created topic {topic.topic_id}: {topic.title}")
    return TopicResponse.from_topic(topic)


@router.get("", response_model=list[TopicResponse])
async def list_topics(engine: DebateEngine = Depends(get_engine)):
    return [TopicResponse.from_topic(topic) for topic in engine.db.list_topics()]


@router.get("/{topic_id}", response_model=TopicResponse)
async def get_topic(topic_id: int, engine: DebateEngine = Depends(get_engine)):
    with translate_engine_errors():
        return TopicResponse.from_topic(engine.get_topic(topic_id))
