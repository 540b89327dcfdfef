"""Shared types and enums for the debate engine."""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypedDict, assert_never


class Side(Enum):
    """The two debating positions."""

    AFFIRMATIVE = "AFFIRMATIVE"
    NEGATIVE = "NEGATIVE"

    @property
    def token(self) -> str:
        """Lowercase form used inside checkpoint strings."""
        return self.value.lower()

    def label(self, language: str) -> str:
        match self:
            case Side.AFFIRMATIVE:
                return "正方" if language == "zh" else "Affirmative"
            case Side.NEGATIVE:
                return "反方" if language == "zh" else "Negative"
            case _:
                assert_never(self)


class Timing(Enum):
    """Whether a checkpoint sits before or after a side's argument."""

    BEFORE = "before"
    AFTER = "after"


class SessionStatus(Enum):
    """Lifecycle states of a debate session."""

    INITIALIZED = "INITIALIZED"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.ABORTED)


class Winner(Enum):
    """Outcome of a completed debate."""

    AFFIRMATIVE = "AFFIRMATIVE"
    NEGATIVE = "NEGATIVE"
    DRAW = "DRAW"


class PlaybackSpeed(Enum):
    """Pacing applied between rounds while streaming."""

    FAST = "FAST"
    NORMAL = "NORMAL"
    SLOW = "SLOW"


class RoleType(Enum):
    """Participants created for every session."""

    ORGANIZER = "ORGANIZER"
    MODERATOR = "MODERATOR"
    JUDGE = "JUDGE"
    AFFIRMATIVE = "AFFIRMATIVE"
    NEGATIVE = "NEGATIVE"

    @classmethod
    def for_side(cls, side: Side) -> "RoleType":
        match side:
            case Side.AFFIRMATIVE:
                return cls.AFFIRMATIVE
            case Side.NEGATIVE:
                return cls.NEGATIVE
            case _:
                assert_never(side)


class MessageType(Enum):
    """Kinds of persisted moderator messages."""

    RULES = "RULES"
    INTRODUCTION = "INTRODUCTION"
    SUMMARY = "SUMMARY"
    EVALUATION = "EVALUATION"
    JUDGE_FEEDBACK = "JUDGE_FEEDBACK"
    ANNOUNCEMENT = "ANNOUNCEMENT"


class DebateEvent(str, Enum):
    """Names of the events streamed to observers."""

    DEBATE_START = "debate_start"
    ORGANIZER_RULES = "organizer_rules"
    MODERATOR_INTRODUCTION = "moderator_introduction"
    ROUND_START = "round_start"
    AI_ARGUMENT = "ai_argument"
    MODERATOR_SUMMARY = "moderator_summary"
    MODERATOR_EVALUATION = "moderator_evaluation"
    ROUND_SCORES_UPDATE = "round_scores_update"
    CUMULATIVE_SCORES_UPDATE = "cumulative_scores_update"
    ROUND_COMPLETE = "round_complete"
    JUDGING_START = "judging_start"
    JUDGE_FEEDBACK = "judge_feedback"
    FINAL_SCORES = "final_scores"
    WINNER_ANNOUNCEMENT = "winner_announcement"
    DEBATE_COMPLETE = "debate_complete"
    DEBATE_PAUSED = "debate_paused"
    ERROR = "error"


class PausedEventData(TypedDict):
    """Payload of debate_paused."""

    round: int
    position: str
    speaker: str


# Callback type aliases for debate engine events
type EventCallback = Callable[[dict[str, Any]], Awaitable[None]]
type ChunkCallback = Callable[[str, bool], Awaitable[None]]
type SleepFunction = Callable[[float], Awaitable[None]]
