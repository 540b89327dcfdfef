"""Debate session lifecycle.

A session moves INITIALIZED -> IN_PROGRESS <-> PAUSED -> COMPLETED, and may be
ABORTED from any non-terminal state. None of the transitions are idempotent:
pausing a paused session or completing a completed one raises
``InvalidTransitionError`` so callers must check the status first.

The checkpoint is set together with the PAUSED status. ``resume`` returns the
session to IN_PROGRESS but keeps the checkpoint until the resume path calls
``consume_checkpoint``.

``progress`` is the boundary a running loop last reached, written at every
sub-step boundary so an interrupted run can continue without regenerating
persisted arguments. It is cleared when the session ends.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from aidebate.config.settings import PersonaConfig
from .exceptions import InvalidTransitionError
from .types import PlaybackSpeed, SessionStatus, Side, Winner

logger = logging.getLogger(__name__)


@dataclass
class DebateSession:
    """A single debate between the affirmative and negative sides."""

    topic_id: int
    affirmative_persona: PersonaConfig = field(
        default_factory=lambda: PersonaConfig(personality="Analytical", expertise_level="Expert")
    )
    negative_persona: PersonaConfig = field(
        default_factory=lambda: PersonaConfig(personality="Passionate", expertise_level="Expert")
    )
    playback_speed: PlaybackSpeed = PlaybackSpeed.NORMAL
    language: str = "en"
    round_count: int = 5
    judge_count: int = 3
    status: SessionStatus = SessionStatus.INITIALIZED
    is_paused: bool = False
    checkpoint: str | None = None
    progress: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    final_score_affirmative: Decimal | None = None
    final_score_negative: Decimal | None = None
    winner: Winner | None = None
    created_at: datetime = field(default_factory=datetime.now)
    session_id: int | None = None

    @property
    def max_possible_score(self) -> Decimal:
        return Decimal(100 * self.round_count)

    @property
    def has_pending_resume(self) -> bool:
        """True when a checkpoint is waiting to be consumed by the resume path."""
        return self.checkpoint is not None and self.status in (
            SessionStatus.PAUSED,
            SessionStatus.IN_PROGRESS,
        )

    def persona_for(self, side: Side) -> PersonaConfig:
        return self.affirmative_persona if side is Side.AFFIRMATIVE else self.negative_persona

    def _require(self, operation: str, *allowed: SessionStatus) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(operation, self.status.value)

    def start(self) -> None:
        self._require("start", SessionStatus.INITIALIZED)
        self.status = SessionStatus.IN_PROGRESS
        self.started_at = datetime.now()
        logger.info(f"Session {self.session_id} started")

    def pause(self, checkpoint: str) -> None:
        self._require("pause", SessionStatus.IN_PROGRESS)
        self.status = SessionStatus.PAUSED
        self.is_paused = True
        self.checkpoint = checkpoint
        logger.info(f"Session {self.session_id} paused at {checkpoint}")

    def resume(self) -> None:
        self._require("resume", SessionStatus.PAUSED)
        if self.checkpoint is None:
            raise InvalidTransitionError("resume without checkpoint", self.status.value)
        self.status = SessionStatus.IN_PROGRESS
        self.is_paused = False
        logger.info(f"Session {self.session_id} resumed, pending checkpoint {self.checkpoint}")

    def consume_checkpoint(self) -> str:
        """Take the retained checkpoint once the resume path has decoded it."""
        self._require("consume checkpoint of", SessionStatus.IN_PROGRESS)
        if self.checkpoint is None:
            raise InvalidTransitionError("consume missing checkpoint of", self.status.value)
        checkpoint, self.checkpoint = self.checkpoint, None
        return checkpoint

    def complete(self, affirmative_score: Decimal, negative_score: Decimal, winner: Winner) -> None:
        self._require("complete", SessionStatus.IN_PROGRESS, SessionStatus.PAUSED)
        self.status = SessionStatus.COMPLETED
        self.is_paused = False
        self.checkpoint = None
        self.progress = None
        self.final_score_affirmative = affirmative_score
        self.final_score_negative = negative_score
        self.winner = winner
        self.completed_at = datetime.now()
        logger.info(
            f"Session {self.session_id} completed: {winner.value} "
            f"({affirmative_score} vs {negative_score})"
        )

    def abort(self) -> None:
        if self.status.is_terminal:
            raise InvalidTransitionError("abort", self.status.value)
        self.status = SessionStatus.ABORTED
        self.is_paused = False
        self.checkpoint = None
        self.progress = None
        self.completed_at = datetime.now()
        logger.info(f"Session {self.session_id} aborted")
