"""Data models for the debate engine."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from .types import MessageType, RoleType, Side


@dataclass
class Topic:
    """A debate motion."""

    title: str
    description: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    topic_id: int | None = None


@dataclass
class Role:
    """A participant of one session."""

    session_id: int
    role_type: RoleType
    name: str
    judge_number: int | None = None
    role_id: int | None = None


@dataclass
class Argument:
    """A side's contribution to one round. Immutable once persisted."""

    session_id: int
    round_number: int
    side: Side
    content: str
    role_id: int | None = None
    submitted_at: datetime = field(default_factory=datetime.now)
    argument_id: int | None = None

    @property
    def character_count(self) -> int:
        return len(self.content)


@dataclass
class RoundScoreRecord:
    """One judge's holistic score for one side in one round."""

    session_id: int
    round_number: int
    judge_number: int
    side: Side
    score: Decimal
    feedback: str
    is_fallback: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    record_id: int | None = None


@dataclass
class ScoringRule:
    """A weighted criterion used by per-argument scoring."""

    session_id: int
    criterion: str
    weight: Decimal
    max_score: Decimal = Decimal("100")
    description: str = ""
    rule_id: int | None = None


@dataclass
class ScoreRecord:
    """One judge's score of one argument against one scoring rule."""

    argument_id: int
    judge_number: int
    rule_id: int
    score: Decimal
    feedback: str
    created_at: datetime = field(default_factory=datetime.now)
    record_id: int | None = None


@dataclass
class ModeratorMessage:
    """Narration persisted once its stream completes."""

    session_id: int
    message_type: MessageType
    content: str
    round_number: int | None = None
    side: Side | None = None
    argument_id: int | None = None
    created_at: datetime = field(default_factory=datetime.now)
    message_id: int | None = None
