"""Core debate engine for orchestrating AI debates."""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from aidebate.config.settings import AppConfig, PersonaConfig
from aidebate.judges import create_criterion_judges, create_round_judges
from aidebate.judges.criterion_judge import CriterionJudge
from aidebate.judges.round_judge import RoundJudge
from aidebate.models.manager import ModelManager
from .checkpoint import Checkpoint, RoundStep
from .database import DatabaseManager
from .events import EventEmitter
from .exceptions import (
    ArgumentNotFoundError,
    DebateEngineError,
    InvalidTransitionError,
    SessionBusyError,
    SessionNotFoundError,
    TopicNotFoundError,
)
from .generation import TextGenerationService
from .models import Argument, Role, Topic
from .moderator import ModeratorService
from .orchestrator import RoundOrchestrator, RoundOutcome
from .resume import ResumeCoordinator, ResumePlan
from .scoring import (
    ArgumentScore,
    ArgumentScorer,
    CumulativeScores,
    RoundResult,
    ScoringEngine,
    determine_winner,
)
from .session import DebateSession
from .types import DebateEvent, EventCallback, PlaybackSpeed, RoleType, SessionStatus, SleepFunction, Winner

logger = logging.getLogger(__name__)


@dataclass
class FinalResult:
    """Totals and winner recorded when a session completes."""

    affirmative_total: Decimal
    negative_total: Decimal
    max_possible: Decimal
    winner: Winner
    rounds_scored: int

    def to_event(self) -> dict[str, Any]:
        return {
            "affirmativeTotal": float(self.affirmative_total),
            "negativeTotal": float(self.negative_total),
            "maxPossible": float(self.max_possible),
            "winner": self.winner.value,
            "roundsScored": self.rounds_scored,
        }


class DebateEngine:
    """Drives debate sessions: opening, rounds, judging, pause and resume.

    At most one streaming loop runs per session. ``stream`` is the single
    entry point and decides between a fresh run and a resume.
    """

    def __init__(
        self,
        config: AppConfig,
        db: DatabaseManager,
        model_manager: ModelManager,
        round_judges: list[RoundJudge] | None = None,
        criterion_judges: list[CriterionJudge] | None = None,
        sleep: SleepFunction = asyncio.sleep,
    ):
        self.config = config
        self.db = db
        self.model_manager = model_manager
        self._sleep = sleep

        self.generation = TextGenerationService(model_manager, config, sleep)
        self.moderator = ModeratorService(db, self.generation)
        if round_judges is None:
            round_judges = create_round_judges(model_manager, config.judging)
        if criterion_judges is None:
            criterion_judges = create_criterion_judges(model_manager, config.judging)
        self.scoring = ScoringEngine(db, round_judges, config.judging)
        self.argument_scorer = ArgumentScorer(db, criterion_judges, config.judging)
        self.orchestrator = RoundOrchestrator(
            db, self.generation, self.moderator, self.scoring, config, sleep
        )
        self.resume_coordinator = ResumeCoordinator(db, self.scoring)
        self._active: set[int] = set()

    # ------------------------------------------------------------ lookups

    def get_session(self, session_id: int) -> DebateSession:
        session = self.db.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def get_topic(self, topic_id: int) -> Topic:
        topic = self.db.get_topic(topic_id)
        if topic is None:
            raise TopicNotFoundError(topic_id)
        return topic

    def is_streaming(self, session_id: int) -> bool:
        return session_id in self._active

    # -------------------------------------------------------- lifecycle

    def initialize_session(
        self,
        topic_id: int,
        affirmative_persona: PersonaConfig | None = None,
        negative_persona: PersonaConfig | None = None,
        playback_speed: PlaybackSpeed | None = None,
        language: str | None = None,
        round_count: int | None = None,
        judge_count: int | None = None,
    ) -> DebateSession:
        """Create a session with its roles and per-argument scoring rules."""
        self.get_topic(topic_id)
        judge_count = judge_count or self.config.judging.judge_count
        if judge_count > len(self.scoring.judges):
            raise ValueError(
                f"Requested {judge_count} judges but only {len(self.scoring.judges)} are configured"
            )

        session = DebateSession(
            topic_id=topic_id,
            playback_speed=playback_speed or PlaybackSpeed(self.config.debate.playback_speed),
            language=language or self.config.debate.language,
            round_count=round_count or self.config.debate.rounds,
            judge_count=judge_count,
        )
        if affirmative_persona is not None:
            session.affirmative_persona = affirmative_persona
        if negative_persona is not None:
            session.negative_persona = negative_persona
        self.db.create_session(session)
        assert session.session_id is not None

        roles = [
            Role(session.session_id, RoleType.ORGANIZER, "Organizer"),
            Role(session.session_id, RoleType.MODERATOR, "Moderator"),
            *[
                Role(session.session_id, RoleType.JUDGE, f"Judge {n}", judge_number=n)
                for n in range(1, judge_count + 1)
            ],
            Role(session.session_id, RoleType.AFFIRMATIVE, "Affirmative"),
            Role(session.session_id, RoleType.NEGATIVE, "Negative"),
        ]
        self.db.create_roles(roles)
        self.argument_scorer.create_scoring_rules(session.session_id)

        logger.info(
            f"Initialized session {session.session_id}: {session.round_count} rounds, "
            f"{judge_count} judges, {session.playback_speed.value} speed, language {session.language}"
        )
        return session

    def start_session(self, session_id: int) -> DebateSession:
        session = self.get_session(session_id)
        session.start()
        self.db.save_session(session)
        return session

    def request_pause(self, session_id: int) -> str | None:
        """Ask a session to pause.

        With a loop running the request is flagged and honoured at the next
        sub-step boundary; None is returned because the checkpoint is not
        known yet. Without a loop the session pauses immediately where a
        recovering run would continue and that checkpoint is returned.

        Once the final round has passed its last boundary only judging is
        left, which has no pause point, so the request is refused.
        """
        session = self.get_session(session_id)
        if session.status is not SessionStatus.IN_PROGRESS:
            raise InvalidTransitionError("pause", session.status.value)

        if self.is_streaming(session_id):
            if self._past_final_boundary(session):
                raise InvalidTransitionError("pause after the final round of", session.status.value)
            if not self.db.request_pause(session_id):
                raise InvalidTransitionError("pause", self.get_session(session_id).status.value)
            logger.info(f"Pause requested for streaming session {session_id}")
            return None

        if session.checkpoint is not None:
            # Resumed but not streamed yet
            checkpoint = session.checkpoint
        else:
            plan = self.resume_coordinator.recovery_plan(session)
            if plan.round_number > session.round_count:
                raise InvalidTransitionError("pause after the final round of", session.status.value)
            checkpoint = str(plan.checkpoint())
        session.pause(checkpoint)
        self.db.save_session(session)
        return checkpoint

    @staticmethod
    def _past_final_boundary(session: DebateSession) -> bool:
        if session.progress is None:
            return False
        progress = Checkpoint.parse(session.progress, session.round_count)
        return progress.round_number == session.round_count and progress.step is RoundStep.NEGATIVE_FEEDBACK

    def resume_session(self, session_id: int) -> DebateSession:
        """Return a paused session to IN_PROGRESS; the next stream consumes its checkpoint."""
        session = self.get_session(session_id)
        Checkpoint.parse(session.checkpoint, session.round_count)
        session.resume()
        self.db.save_session(session)
        return session

    def complete_session(self, session_id: int) -> FinalResult:
        """Finalise with the current cumulative totals, without streaming."""
        if self.is_streaming(session_id):
            raise SessionBusyError(session_id)
        session = self.get_session(session_id)
        result = self._final_result(session)
        session.complete(result.affirmative_total, result.negative_total, result.winner)
        self.db.save_session(session)
        return result

    def skip_to_end(self, session_id: int) -> FinalResult:
        logger.info(f"Skipping session {session_id} to the end")
        return self.complete_session(session_id)

    def abort_session(self, session_id: int) -> DebateSession:
        if self.is_streaming(session_id):
            raise SessionBusyError(session_id)
        session = self.get_session(session_id)
        session.abort()
        self.db.save_session(session)
        return session

    # ---------------------------------------------------------- queries

    def session_state(self, session_id: int) -> dict[str, Any]:
        session = self.get_session(session_id)
        return {
            "sessionId": session_id,
            "status": session.status.value,
            "isPaused": session.is_paused,
            "checkpoint": session.checkpoint,
            "currentRound": self.db.latest_argument_round(session_id) or 0,
            "roundCount": session.round_count,
            "streaming": self.is_streaming(session_id),
        }

    def round_result(self, session_id: int, round_number: int) -> RoundResult | None:
        self.get_session(session_id)
        return next(
            (r for r in self.scoring.round_results(session_id) if r.round_number == round_number),
            None,
        )

    def cumulative_scores(self, session_id: int) -> CumulativeScores:
        return self.scoring.cumulative_scores(self.get_session(session_id))

    async def score_argument(self, session_id: int, argument_id: int) -> ArgumentScore:
        session = self.get_session(session_id)
        argument = self._argument_of(session_id, argument_id)
        topic = self.get_topic(session.topic_id)
        return await self.argument_scorer.score_argument(session, topic.title, argument)

    def argument_score_breakdown(self, session_id: int, argument_id: int) -> ArgumentScore:
        self._argument_of(session_id, argument_id)
        return self.argument_scorer.calculate(session_id, argument_id)

    def _argument_of(self, session_id: int, argument_id: int) -> Argument:
        argument = self.db.get_argument(argument_id)
        if argument is None or argument.session_id != session_id:
            raise ArgumentNotFoundError(session_id, argument_id)
        return argument

    # -------------------------------------------------------- streaming

    async def stream(self, session_id: int, sink: EventCallback | None = None) -> None:
        """Begin or continue a session, delivering events to ``sink``.

        Failures end the stream with an ``error`` event; persisted state stays
        at the last checkpoint so the session can be resumed.
        """
        emitter = EventEmitter(session_id, sink)
        if self.is_streaming(session_id):
            await emitter.error(str(SessionBusyError(session_id)))
            return

        self._active.add(session_id)
        try:
            session = self.get_session(session_id)
            topic = self.get_topic(session.topic_id)
            plan = self.resume_coordinator.plan(session)
            await self._run(session, topic.title, emitter, plan)
        except DebateEngineError as e:
            logger.error(f"Session {session_id} stream stopped: {e}")
            await emitter.error(str(e))
        except asyncio.CancelledError:
            logger.info(f"Session {session_id} stream cancelled")
            raise
        except Exception as e:
            logger.exception(f"Session {session_id} stream failed")
            await emitter.error(f"Debate failed: {e}")
        finally:
            self._active.discard(session_id)

    async def _run(
        self, session: DebateSession, topic: str, emitter: EventEmitter, plan: ResumePlan
    ) -> None:
        if plan.run_opening:
            await self._opening(session, topic, emitter)

        for round_number in range(plan.round_number, session.round_count + 1):
            start_step = (
                plan.start_step if round_number == plan.round_number else RoundStep.AFFIRMATIVE_ARGUMENT
            )
            outcome = await self.orchestrator.run_round(session, topic, emitter, round_number, start_step)
            if outcome is RoundOutcome.PAUSED:
                return

        await self._judging(session, emitter)

    async def _opening(self, session: DebateSession, topic: str, emitter: EventEmitter) -> None:
        await emitter.emit(
            DebateEvent.DEBATE_START,
            topic=topic,
            rounds=session.round_count,
            judges=session.judge_count,
            language=session.language,
            playbackSpeed=session.playback_speed.value,
        )
        await self.moderator.organizer_rules(session, emitter.text_stream(DebateEvent.ORGANIZER_RULES))
        await self.moderator.introduction(
            session, topic, emitter.text_stream(DebateEvent.MODERATOR_INTRODUCTION)
        )
        await self._sleep(self.config.speed_delay_seconds(session.playback_speed.value))

    async def _judging(self, session: DebateSession, emitter: EventEmitter) -> None:
        await emitter.emit(DebateEvent.JUDGING_START, judgeCount=session.judge_count)
        for judge_number in range(1, session.judge_count + 1):
            await self.moderator.judge_feedback(
                session,
                judge_number,
                emitter.text_stream(DebateEvent.JUDGE_FEEDBACK, judgeNumber=judge_number),
            )

        result = self._final_result(session)
        await emitter.emit(DebateEvent.FINAL_SCORES, **result.to_event())
        await self.moderator.winner_announcement(
            session,
            result.winner,
            emitter.text_stream(DebateEvent.WINNER_ANNOUNCEMENT, winner=result.winner.value),
        )

        session.complete(result.affirmative_total, result.negative_total, result.winner)
        self.db.save_session(session)
        await emitter.emit(DebateEvent.DEBATE_COMPLETE, winner=result.winner.value)

    def _final_result(self, session: DebateSession) -> FinalResult:
        totals = self.scoring.cumulative_scores(session)
        return FinalResult(
            affirmative_total=totals.affirmative_total,
            negative_total=totals.negative_total,
            max_possible=totals.max_possible,
            winner=determine_winner(totals.affirmative_total, totals.negative_total),
            rounds_scored=totals.rounds_scored,
        )
