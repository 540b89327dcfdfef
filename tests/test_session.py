"""Tests for the debate session lifecycle."""

from __future__ import annotations

from decimal import Decimal

import pytest

from aidebate.debate_engine.database import DatabaseManager
from aidebate.debate_engine.exceptions import InvalidTransitionError
from aidebate.debate_engine.models import Topic
from aidebate.debate_engine.session import DebateSession
from aidebate.debate_engine.types import PlaybackSpeed, SessionStatus, Winner


def _started() -> DebateSession:
    session = DebateSession(topic_id=1, session_id=7)
    session.start()
    return session


def test_start_moves_initialized_session_in_progress() -> None:
    """Starting records the start time and can only happen once."""
    session = DebateSession(topic_id=1, session_id=7)

    session.start()

    assert session.status is SessionStatus.IN_PROGRESS
    assert session.started_at is not None
    with pytest.raises(InvalidTransitionError):
        session.start()


def test_pause_sets_status_flag_and_checkpoint_together() -> None:
    """A paused session always carries the checkpoint it paused at."""
    session = _started()

    session.pause("round_2_negative_before")

    assert session.status is SessionStatus.PAUSED
    assert session.is_paused is True
    assert session.checkpoint == "round_2_negative_before"


def test_pause_is_not_idempotent() -> None:
    """Pausing twice is rejected instead of overwriting the checkpoint."""
    session = _started()
    session.pause("round_1")

    with pytest.raises(InvalidTransitionError):
        session.pause("round_2")
    assert session.checkpoint == "round_1"


def test_pause_requires_in_progress() -> None:
    session = DebateSession(topic_id=1)

    with pytest.raises(InvalidTransitionError):
        session.pause("round_1")


def test_resume_keeps_checkpoint_until_consumed() -> None:
    """Resume clears the pause flag; the checkpoint waits for the resume path."""
    session = _started()
    session.pause("round_3_affirmative_after")

    session.resume()

    assert session.status is SessionStatus.IN_PROGRESS
    assert session.is_paused is False
    assert session.has_pending_resume is True
    assert session.consume_checkpoint() == "round_3_affirmative_after"
    assert session.checkpoint is None
    assert session.has_pending_resume is False


def test_resume_requires_paused_session() -> None:
    session = _started()

    with pytest.raises(InvalidTransitionError):
        session.resume()


def test_complete_records_scores_and_clears_pause_state() -> None:
    """Completion is allowed from a paused session and is terminal."""
    session = _started()
    session.pause("round_2")

    session.complete(Decimal("160.50"), Decimal("150.25"), Winner.AFFIRMATIVE)

    assert session.status is SessionStatus.COMPLETED
    assert session.is_paused is False
    assert session.checkpoint is None
    assert session.winner is Winner.AFFIRMATIVE
    assert session.completed_at is not None
    with pytest.raises(InvalidTransitionError):
        session.complete(Decimal("1"), Decimal("1"), Winner.DRAW)


def test_abort_from_any_non_terminal_state() -> None:
    """Abort works before start and while paused, never after completion."""
    fresh = DebateSession(topic_id=1)
    fresh.abort()
    assert fresh.status is SessionStatus.ABORTED

    paused = _started()
    paused.pause("round_1")
    paused.abort()
    assert paused.status is SessionStatus.ABORTED
    assert paused.checkpoint is None

    with pytest.raises(InvalidTransitionError):
        paused.abort()


def test_max_possible_score_is_100_per_round() -> None:
    assert DebateSession(topic_id=1, round_count=5).max_possible_score == Decimal("500")


def test_session_round_trips_through_database(db: DatabaseManager) -> None:
    """Persisted sessions keep status, checkpoint, personas and decimal scores."""
    topic = db.create_topic(Topic(title="Remote work"))
    assert topic.topic_id is not None
    session = db.create_session(
        DebateSession(topic_id=topic.topic_id, playback_speed=PlaybackSpeed.FAST, language="zh", round_count=3)
    )
    assert session.session_id is not None

    session.start()
    session.pause("round_2_affirmative_after")
    db.save_session(session)
    loaded = db.get_session(session.session_id)

    assert loaded is not None
    assert loaded.status is SessionStatus.PAUSED
    assert loaded.is_paused is True
    assert loaded.checkpoint == "round_2_affirmative_after"
    assert loaded.playback_speed is PlaybackSpeed.FAST
    assert loaded.language == "zh"
    assert loaded.round_count == 3
    assert loaded.affirmative_persona == session.affirmative_persona

    loaded.complete(Decimal("140.33"), Decimal("140.33"), Winner.DRAW)
    db.save_session(loaded)
    final = db.get_session(session.session_id)

    assert final is not None
    assert final.final_score_affirmative == Decimal("140.33")
    assert final.winner is Winner.DRAW


def test_pause_flag_only_raised_for_in_progress_sessions(db: DatabaseManager) -> None:
    topic = db.create_topic(Topic(title="Nuclear power"))
    assert topic.topic_id is not None
    session = db.create_session(DebateSession(topic_id=topic.topic_id))
    assert session.session_id is not None

    assert db.request_pause(session.session_id) is False

    session.start()
    db.save_session(session)

    assert db.request_pause(session.session_id) is True
    assert db.is_pause_requested(session.session_id) is True


def test_progress_is_recorded_beside_pause_flag_and_cleared_on_completion(db: DatabaseManager) -> None:
    topic = db.create_topic(Topic(title="Space exploration"))
    assert topic.topic_id is not None
    session = db.create_session(DebateSession(topic_id=topic.topic_id))
    assert session.session_id is not None
    session.start()
    db.save_session(session)

    db.request_pause(session.session_id)
    db.record_progress(session.session_id, "round_4_negative_before")
    loaded = db.get_session(session.session_id)

    assert loaded is not None
    assert loaded.progress == "round_4_negative_before"
    assert loaded.is_paused is True

    loaded.complete(Decimal("300"), Decimal("290"), Winner.AFFIRMATIVE)
    db.save_session(loaded)
    final = db.get_session(session.session_id)
    assert final is not None
    assert final.progress is None
