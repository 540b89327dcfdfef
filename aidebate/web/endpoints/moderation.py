"""Banned-term management endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from aidebate.moderation import ContentModerator, Severity
from aidebate.web.dependencies import get_moderator
from aidebate.web.moderation_request import SensitiveWordRequest, SensitiveWordResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/moderation")


@router.get("/words", response_model=list[SensitiveWordResponse])
async def list_words(moderator: ContentModerator = Depends(get_moderator)):
    return [SensitiveWordResponse.from_entry(word, severity) for word, severity in moderator.list_words()]


@router.post("/words", response_model=SensitiveWordResponse, status_code=201)
async def add_word(
    request: SensitiveWordRequest, moderator: ContentModerator = Depends(get_moderator)
):
    """Add a banned term, or reactivate it with a new severity."""
    severity = Severity[request.severity]
    moderator.add_word(request.word, severity)
    logger.info(f"Banned word added with severity {severity.name}")
    return SensitiveWordResponse.from_entry(request.word, severity)


@router.delete("/words/{word}", status_code=204)
async def remove_word(word: str, moderator: ContentModerator = Depends(get_moderator)):
    if not moderator.remove_word(word):
        raise HTTPException(status_code=404, detail=f"Banned word not found: {word}")
    logger.info("Banned word removed")
    return Response(status_code=204)
