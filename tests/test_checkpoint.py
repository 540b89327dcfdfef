"""Tests for checkpoint encoding and decoding."""

from __future__ import annotations

import pytest

from aidebate.debate_engine.checkpoint import Checkpoint, RoundStep
from aidebate.debate_engine.exceptions import CheckpointError
from aidebate.debate_engine.types import Side, Timing


@pytest.mark.parametrize(
    ("token", "step"),
    [
        ("round_1_affirmative_before", RoundStep.AFFIRMATIVE_ARGUMENT),
        ("round_2_affirmative_after", RoundStep.AFFIRMATIVE_FEEDBACK),
        ("round_3_negative_before", RoundStep.NEGATIVE_ARGUMENT),
        ("round_4_negative_after", RoundStep.NEGATIVE_FEEDBACK),
        ("round_5", RoundStep.AFFIRMATIVE_ARGUMENT),
    ],
)
def test_parse_maps_checkpoint_to_resume_step(token: str, step: RoundStep) -> None:
    """Each checkpoint names the sub-step that runs first on resume."""
    checkpoint = Checkpoint.parse(token, round_count=5)

    assert checkpoint.step is step
    assert str(checkpoint) == token


def test_fine_checkpoint_fields() -> None:
    checkpoint = Checkpoint.parse("round_3_negative_after")

    assert checkpoint.round_number == 3
    assert checkpoint.side is Side.NEGATIVE
    assert checkpoint.timing is Timing.AFTER
    assert checkpoint.is_coarse is False
    assert checkpoint.position == "negative_after"
    assert checkpoint.speaker is Side.NEGATIVE


def test_coarse_checkpoint_restarts_round() -> None:
    checkpoint = Checkpoint.parse("round_2")

    assert checkpoint.is_coarse is True
    assert checkpoint.position == "round_start"
    assert checkpoint.speaker is Side.AFFIRMATIVE


def test_for_step_encodes_every_boundary() -> None:
    """Encoding a step and decoding it again lands on the same step."""
    for step in RoundStep:
        assert Checkpoint.parse(str(Checkpoint.for_step(4, step))).step is step


@pytest.mark.parametrize(
    "token",
    [
        None,
        "",
        "round_x",
        "round_0",
        "round_3_middle_before",
        "round_3_negative_during",
        "Round_3",
        "round_3_negative",
    ],
)
def test_parse_rejects_malformed_tokens(token: str | None) -> None:
    with pytest.raises(CheckpointError):
        Checkpoint.parse(token)


def test_parse_rejects_round_beyond_session() -> None:
    """A checkpoint can never point past the session's last round."""
    with pytest.raises(CheckpointError):
        Checkpoint.parse("round_6_affirmative_before", round_count=5)


def test_side_and_timing_must_be_given_together() -> None:
    with pytest.raises(CheckpointError):
        Checkpoint(2, side=Side.AFFIRMATIVE)
