"""Encoding and decoding of pause checkpoints.

Two shapes exist: ``round_{n}`` (coarse, restarts the whole round) and
``round_{n}_{side}_{timing}`` naming the round sub-step that runs next.
"""

import re
from dataclasses import dataclass
from enum import IntEnum

from .exceptions import CheckpointError
from .types import Side, Timing

_CHECKPOINT_PATTERN = re.compile(r"^round_(\d+)(?:_(affirmative|negative)_(before|after))?$")


class RoundStep(IntEnum):
    """Resumable sub-steps of a round, in execution order."""

    AFFIRMATIVE_ARGUMENT = 1
    AFFIRMATIVE_FEEDBACK = 2
    NEGATIVE_ARGUMENT = 3
    NEGATIVE_FEEDBACK = 4


_STEP_POSITIONS: dict[RoundStep, tuple[Side, Timing]] = {
    RoundStep.AFFIRMATIVE_ARGUMENT: (Side.AFFIRMATIVE, Timing.BEFORE),
    RoundStep.AFFIRMATIVE_FEEDBACK: (Side.AFFIRMATIVE, Timing.AFTER),
    RoundStep.NEGATIVE_ARGUMENT: (Side.NEGATIVE, Timing.BEFORE),
    RoundStep.NEGATIVE_FEEDBACK: (Side.NEGATIVE, Timing.AFTER),
}
_POSITION_STEPS = {position: step for step, position in _STEP_POSITIONS.items()}


@dataclass(frozen=True)
class Checkpoint:
    round_number: int
    side: Side | None = None
    timing: Timing | None = None

    def __post_init__(self) -> None:
        if self.round_number < 1:
            raise CheckpointError(f"Checkpoint round must be positive, got {self.round_number}")
        if (self.side is None) != (self.timing is None):
            raise CheckpointError("Checkpoint side and timing must be given together")

    @classmethod
    def for_step(cls, round_number: int, step: RoundStep) -> "Checkpoint":
        side, timing = _STEP_POSITIONS[step]
        return cls(round_number, side, timing)

    @classmethod
    def parse(cls, token: str | None, round_count: int | None = None) -> "Checkpoint":
        """Decode a checkpoint string, raising CheckpointError when it is malformed."""
        if not token:
            raise CheckpointError("Empty checkpoint")
        match = _CHECKPOINT_PATTERN.match(token.strip())
        if match is None:
            raise CheckpointError(f"Unrecognised checkpoint: {token!r}")

        round_number = int(match.group(1))
        if round_count is not None and round_number > round_count:
            raise CheckpointError(
                f"Checkpoint {token!r} is beyond the session's {round_count} rounds"
            )
        if match.group(2) is None:
            return cls(round_number)
        return cls(round_number, Side(match.group(2).upper()), Timing(match.group(3)))

    @property
    def is_coarse(self) -> bool:
        return self.side is None

    @property
    def step(self) -> RoundStep:
        """The sub-step that runs first when resuming from this checkpoint."""
        if self.side is None or self.timing is None:
            return RoundStep.AFFIRMATIVE_ARGUMENT
        return _POSITION_STEPS[(self.side, self.timing)]

    @property
    def speaker(self) -> Side:
        return self.side or Side.AFFIRMATIVE

    @property
    def position(self) -> str:
        """Human-facing position label, e.g. ``negative_after`` or ``round_start``."""
        if self.side is None or self.timing is None:
            return "round_start"
        return f"{self.side.token}_{self.timing.value}"

    def __str__(self) -> str:
        if self.side is None or self.timing is None:
            return f"round_{self.round_number}"
        return f"round_{self.round_number}_{self.side.token}_{self.timing.value}"
