"""Debate orchestration and flow management.

``DebateEngine`` lives in ``aidebate.debate_engine.core``; it is not
re-exported here because it pulls in the judges, which themselves import
this package's record types.
"""

from .checkpoint import Checkpoint, RoundStep
from .events import EventEmitter
from .exceptions import (
    ArgumentMissingError,
    ArgumentNotFoundError,
    CheckpointError,
    DebateEngineError,
    InvalidTransitionError,
    SessionBusyError,
    SessionNotFoundError,
    TopicNotFoundError,
)
from .models import Argument, ModeratorMessage, Role, RoundScoreRecord, Topic
from .session import DebateSession
from .types import DebateEvent, PlaybackSpeed, SessionStatus, Side, Winner

__all__ = [
    "Checkpoint",
    "RoundStep",
    "EventEmitter",
    "ArgumentMissingError",
    "ArgumentNotFoundError",
    "CheckpointError",
    "DebateEngineError",
    "InvalidTransitionError",
    "SessionBusyError",
    "SessionNotFoundError",
    "TopicNotFoundError",
    "Argument",
    "ModeratorMessage",
    "Role",
    "RoundScoreRecord",
    "Topic",
    "DebateSession",
    "DebateEvent",
    "PlaybackSpeed",
    "SessionStatus",
    "Side",
    "Winner",
]
