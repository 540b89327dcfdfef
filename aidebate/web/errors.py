"""Mapping of engine exceptions to HTTP errors."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException

from aidebate.debate_engine.exceptions import (
    ArgumentNotFoundError,
    CheckpointError,
    DebateEngineError,
    InvalidTransitionError,
    SessionBusyError,
    SessionNotFoundError,
    TopicNotFoundError,
)
from aidebate.moderation import TopicRejectedError

logger = logging.getLogger(__name__)


@contextmanager
def translate_engine_errors() -> Iterator[None]:
    """Raise HTTPException for engine errors: 404 missing, 409 conflict, 400 invalid."""
    try:
        yield
    except (SessionNotFoundError, TopicNotFoundError, ArgumentNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except (InvalidTransitionError, SessionBusyError) as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except (CheckpointError, TopicRejectedError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except DebateEngineError as e:
        logger.error(f"Unhandled engine error: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
