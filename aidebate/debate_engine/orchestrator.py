"""Round orchestration: the fixed sub-step sequence of one debate round."""

import asyncio
import logging
from enum import Enum

from aidebate.config.settings import AppConfig
from .checkpoint import Checkpoint, RoundStep
from .database import DatabaseManager
from .events import EventEmitter
from .exceptions import ArgumentMissingError
from .generation import GenerationContext, TextGenerationService
from .models import Argument
from .moderator import ModeratorService
from .scoring import ScoringEngine
from .session import DebateSession
from .types import DebateEvent, PausedEventData, RoleType, Side, SleepFunction

logger = logging.getLogger(__name__)


class RoundOutcome(Enum):
    COMPLETED = "completed"
    PAUSED = "paused"


class RoundOrchestrator:
    """Runs one round: arguments, moderator feedback, scoring and pacing.

    Pause requests are honoured only at the four sub-step boundaries, before
    and after each side's argument. A generation call in flight always
    finishes before the pause takes effect.

    Each boundary is recorded as the session's progress before the pause
    check, so a pause request arriving after the final round's last boundary
    can be refused rather than dropped.
    """

    def __init__(
        self,
        db: DatabaseManager,
        generation: TextGenerationService,
        moderator: ModeratorService,
        scoring: ScoringEngine,
        config: AppConfig,
        sleep: SleepFunction = asyncio.sleep,
    ):
        self.db = db
        self.generation = generation
        self.moderator = moderator
        self.scoring = scoring
        self.config = config
        self._sleep = sleep

    async def run_round(
        self,
        session: DebateSession,
        topic: str,
        emitter: EventEmitter,
        round_number: int,
        start_step: RoundStep = RoundStep.AFFIRMATIVE_ARGUMENT,
    ) -> RoundOutcome:
        """Run ``round_number`` from ``start_step``, skipping earlier sub-steps."""
        if start_step is not RoundStep.AFFIRMATIVE_ARGUMENT:
            logger.info(
                f"Session {session.session_id} re-entering round {round_number} at {start_step.name}"
            )

        for step in RoundStep:
            if step < start_step:
                continue
            checkpoint = Checkpoint.for_step(round_number, step)
            self._record_progress(session, checkpoint)
            if await self._pause_if_requested(session, emitter, checkpoint):
                return RoundOutcome.PAUSED

            match step:
                case RoundStep.AFFIRMATIVE_ARGUMENT:
                    await emitter.emit(DebateEvent.ROUND_START, round=round_number)
                    await self._argument(session, topic, emitter, round_number, Side.AFFIRMATIVE)
                case RoundStep.AFFIRMATIVE_FEEDBACK:
                    await self._feedback(session, topic, emitter, round_number, Side.AFFIRMATIVE)
                case RoundStep.NEGATIVE_ARGUMENT:
                    await self._argument(session, topic, emitter, round_number, Side.NEGATIVE)
                case RoundStep.NEGATIVE_FEEDBACK:
                    await self._feedback(session, topic, emitter, round_number, Side.NEGATIVE)

        result = await self.scoring.score_round(session, topic, round_number)
        await emitter.emit(
            DebateEvent.ROUND_SCORES_UPDATE,
            round=round_number,
            affirmativeScore=float(result.affirmative_average),
            negativeScore=float(result.negative_average),
        )
        cumulative = self.scoring.cumulative_scores(session)
        await emitter.emit(DebateEvent.CUMULATIVE_SCORES_UPDATE, **cumulative.to_event())
        await emitter.emit(DebateEvent.ROUND_COMPLETE, round=round_number)
        logger.info(f"Session {session.session_id} round {round_number}/{session.round_count} complete")

        await self._sleep(self.config.speed_delay_seconds(session.playback_speed.value))
        return RoundOutcome.COMPLETED

    def _record_progress(self, session: DebateSession, checkpoint: Checkpoint) -> None:
        assert session.session_id is not None
        session.progress = str(checkpoint)
        self.db.record_progress(session.session_id, session.progress)

    async def _pause_if_requested(
        self, session: DebateSession, emitter: EventEmitter, checkpoint: Checkpoint
    ) -> bool:
        assert session.session_id is not None
        if not self.db.is_pause_requested(session.session_id):
            return False

        session.pause(str(checkpoint))
        # Durable before observers hear about it
        self.db.save_session(session)
        payload: PausedEventData = {
            "round": checkpoint.round_number,
            "position": checkpoint.position,
            "speaker": checkpoint.speaker.value,
        }
        await emitter.emit(DebateEvent.DEBATE_PAUSED, **payload)
        return True

    async def _argument(
        self,
        session: DebateSession,
        topic: str,
        emitter: EventEmitter,
        round_number: int,
        side: Side,
    ) -> Argument:
        assert session.session_id is not None
        role = self.db.get_role(session.session_id, RoleType.for_side(side))
        context = GenerationContext(
            session_id=session.session_id,
            round_number=round_number,
            round_count=session.round_count,
            topic=topic,
            side=side,
            history=self.db.list_arguments(session.session_id),
            persona=session.persona_for(side),
            language=session.language,
            moderator_instruction=self.config.generation.moderator_instruction,
        )
        content = await self.generation.generate_argument(
            context,
            emitter.text_stream(DebateEvent.AI_ARGUMENT, side=side.value, round=round_number),
        )
        argument = self.db.insert_argument(
            Argument(
                session_id=session.session_id,
                round_number=round_number,
                side=side,
                content=content,
                role_id=role.role_id if role else None,
            )
        )
        logger.info(
            f"Session {session.session_id} round {round_number} {side.value} argument "
            f"persisted ({argument.character_count} chars)"
        )
        return argument

    async def _feedback(
        self,
        session: DebateSession,
        topic: str,
        emitter: EventEmitter,
        round_number: int,
        side: Side,
    ) -> None:
        assert session.session_id is not None
        argument = self.db.find_argument(session.session_id, round_number, side)
        if argument is None:
            raise ArgumentMissingError(
                f"No {side.value} argument persisted for round {round_number} "
                f"of session {session.session_id}"
            )

        fields = {"side": side.value, "round": round_number}
        await self.moderator.summarize_argument(
            session, topic, argument, emitter.text_stream(DebateEvent.MODERATOR_SUMMARY, **fields)
        )
        await self.moderator.evaluate_argument(
            session,
            topic,
            argument,
            self.db.list_arguments(session.session_id),
            emitter.text_stream(DebateEvent.MODERATOR_EVALUATION, **fields),
        )
