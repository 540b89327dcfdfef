"""Deciding where a streaming run enters the debate.

A run either starts fresh (opening then round 1), resumes from a pause
checkpoint, or recovers a session that was left IN_PROGRESS without one,
for example after the process was restarted mid-round.
"""

import logging
from dataclasses import dataclass

from .checkpoint import Checkpoint, RoundStep
from .database import DatabaseManager
from .exceptions import CheckpointError, InvalidTransitionError
from .scoring import ScoringEngine
from .session import DebateSession
from .types import SessionStatus, Side

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResumePlan:
    """Entry point of a streaming run."""

    round_number: int
    start_step: RoundStep = RoundStep.AFFIRMATIVE_ARGUMENT
    run_opening: bool = False

    @classmethod
    def fresh(cls) -> "ResumePlan":
        return cls(round_number=1, run_opening=True)

    def checkpoint(self) -> Checkpoint:
        """The pause checkpoint that re-enters the debate where this plan would."""
        if self.start_step is RoundStep.AFFIRMATIVE_ARGUMENT:
            return Checkpoint(self.round_number)
        return Checkpoint.for_step(self.round_number, self.start_step)


class ResumeCoordinator:
    """Turns persisted session state into a ResumePlan."""

    def __init__(self, db: DatabaseManager, scoring: ScoringEngine):
        self.db = db
        self.scoring = scoring

    def plan(self, session: DebateSession) -> ResumePlan:
        """Prepare ``session`` for streaming and return where to enter.

        The session is moved to IN_PROGRESS and saved. A malformed checkpoint
        raises ``CheckpointError`` before anything is written, so the paused
        state stays resumable. The consumed checkpoint becomes the session's
        progress, so a run that fails before its first boundary recovers there.
        """
        assert session.session_id is not None

        if session.has_pending_resume:
            checkpoint = Checkpoint.parse(session.checkpoint, session.round_count)
            if session.status is SessionStatus.PAUSED:
                session.resume()
            session.progress = session.consume_checkpoint()
            self.db.save_session(session)
            logger.info(
                f"Session {session.session_id} resuming at {checkpoint} ({checkpoint.step.name})"
            )
            return ResumePlan(
                round_number=checkpoint.round_number,
                start_step=checkpoint.step,
            )

        match session.status:
            case SessionStatus.INITIALIZED:
                session.start()
                self.db.save_session(session)
                return ResumePlan.fresh()
            case SessionStatus.IN_PROGRESS:
                if session.is_paused:
                    # A pause request that no running loop honoured
                    session.is_paused = False
                    self.db.save_session(session)
                return self.recovery_plan(session)
            case SessionStatus.PAUSED | SessionStatus.COMPLETED | SessionStatus.ABORTED:
                raise InvalidTransitionError("stream", session.status.value)

    def recovery_plan(self, session: DebateSession) -> ResumePlan:
        """Where an IN_PROGRESS session without a pending checkpoint continues.

        A scored round is never re-run: once every round is scored the plan
        goes straight to judging. Inside an unscored round the recorded
        progress is used, stepping past an argument that was already
        persisted. Only a session with no usable progress restarts the round.
        """
        assert session.session_id is not None
        latest = self.db.latest_argument_round(session.session_id)
        if latest is None:
            return ResumePlan.fresh()

        if self.scoring.is_round_scored(session.session_id, latest):
            next_round = latest + 1
            logger.info(
                f"Session {session.session_id} interrupted after round {latest}, continuing at {next_round}"
            )
            return ResumePlan(round_number=next_round)

        step = self._progress_step(session, latest)
        if step is not None:
            logger.info(
                f"Session {session.session_id} interrupted inside round {latest}, continuing at {step.name}"
            )
            return ResumePlan(round_number=latest, start_step=step)

        logger.warning(
            f"Session {session.session_id} interrupted inside round {latest}, re-running it from the start"
        )
        return ResumePlan(round_number=latest)

    def _progress_step(self, session: DebateSession, round_number: int) -> RoundStep | None:
        assert session.session_id is not None
        if session.progress is None:
            return None
        try:
            progress = Checkpoint.parse(session.progress, session.round_count)
        except CheckpointError as e:
            logger.warning(f"Session {session.session_id} has unusable progress: {e}")
            return None
        if progress.round_number != round_number:
            return None

        step = progress.step
        if step in (RoundStep.AFFIRMATIVE_ARGUMENT, RoundStep.NEGATIVE_ARGUMENT):
            # The argument may have been persisted before the next boundary was reached
            side = Side.AFFIRMATIVE if step is RoundStep.AFFIRMATIVE_ARGUMENT else Side.NEGATIVE
            if self.db.find_argument(session.session_id, round_number, side) is not None:
                step = RoundStep(step + 1)
        return step
