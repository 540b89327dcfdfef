"""Moderator narration: fixed announcements and generated commentary."""

import logging
from typing import assert_never

from .database import DatabaseManager
from .generation import TextGenerationService
from .models import Argument, ModeratorMessage
from .session import DebateSession
from .types import ChunkCallback, MessageType, Winner

logger = logging.getLogger(__name__)


def organizer_rules_text(round_count: int, language: str) -> str:
    if language == "zh":
        return (
            f"欢迎参加本次辩论赛！本次辩论将进行{round_count}轮，每轮双方各陈述论点。"
            "评委将根据逻辑性、说服力和表达流畅度评分。请各位辩手尊重规则，展现最佳表现。"
        )
    return (
        f"Welcome to this debate! This debate will consist of {round_count} rounds, with each "
        "side presenting arguments in each round. Judges will score based on logic, "
        "persuasiveness, and fluency. Please respect the rules and demonstrate your best performance."
    )


def introduction_text(topic: str, language: str) -> str:
    if language == "zh":
        return (
            f"今天的辩题是：'{topic}'。双方将围绕这一话题展开精彩辩论。"
            "让我们以开放的心态倾听双方观点，见证思想的碰撞。现在，让我们开始！"
        )
    return (
        f"Today's debate topic is: '{topic}'. Both sides will engage in a wonderful debate on "
        "this issue. Let us listen to both perspectives with an open mind and witness the clash "
        "of ideas. Now, let's begin!"
    )


def judge_feedback_text(judge_number: int, language: str) -> str:
    if language == "zh":
        return f"评委{judge_number}：双方辩手都展现了出色的辩论技巧。论点清晰，逻辑严谨，证据充分。这是一场精彩的辩论。"
    return (
        f"Judge {judge_number}: Both debaters demonstrated excellent debate skills. Arguments were "
        "clear, logic was rigorous, and evidence was sufficient. This was an excellent debate."
    )


def winner_announcement_text(winner: Winner, language: str) -> str:
    zh = language == "zh"
    match winner:
        case Winner.DRAW:
            if zh:
                return "经过激烈的辩论和公正的评判，本场辩论结果为平局。双方都展现了卓越的辩论能力，恭喜双方！"
            return (
                "After intense debate and fair judging, this debate ends in a draw. Both sides "
                "demonstrated excellent debate skills. Congratulations to both sides!"
            )
        case Winner.AFFIRMATIVE | Winner.NEGATIVE:
            label = {
                Winner.AFFIRMATIVE: "正方" if zh else "Affirmative",
                Winner.NEGATIVE: "反方" if zh else "Negative",
            }[winner]
            if zh:
                return f"经过激烈的辩论和公正的评判，本场辩论的获胜方是：{label}。恭喜获胜方，也感谢双方的精彩表现！"
            return (
                f"After intense debate and fair judging, the winner of this debate is: {label}. "
                "Congratulations to the winner, and thank you both for the excellent performance!"
            )
        case _:
            assert_never(winner)


class ModeratorService:
    """Streams narration and records it as moderator messages once complete."""

    def __init__(self, db: DatabaseManager, generation: TextGenerationService):
        self.db = db
        self.generation = generation

    async def _stream_fixed(
        self,
        session: DebateSession,
        message_type: MessageType,
        text: str,
        chunk_callback: ChunkCallback,
        round_number: int | None = None,
    ) -> str:
        await chunk_callback(text, False)
        await chunk_callback("", True)
        self._record(session, message_type, text, round_number=round_number)
        return text

    def _record(
        self,
        session: DebateSession,
        message_type: MessageType,
        content: str,
        round_number: int | None = None,
        argument: Argument | None = None,
    ) -> ModeratorMessage:
        assert session.session_id is not None
        return self.db.insert_moderator_message(
            ModeratorMessage(
                session_id=session.session_id,
                message_type=message_type,
                content=content,
                round_number=round_number if argument is None else argument.round_number,
                side=argument.side if argument else None,
                argument_id=argument.argument_id if argument else None,
            )
        )

    async def organizer_rules(self, session: DebateSession, chunk_callback: ChunkCallback) -> str:
        text = organizer_rules_text(session.round_count, session.language)
        return await self._stream_fixed(session, MessageType.RULES, text, chunk_callback)

    async def introduction(self, session: DebateSession, topic: str, chunk_callback: ChunkCallback) -> str:
        text = introduction_text(topic, session.language)
        return await self._stream_fixed(session, MessageType.INTRODUCTION, text, chunk_callback)

    async def summarize_argument(
        self, session: DebateSession, topic: str, argument: Argument, chunk_callback: ChunkCallback
    ) -> str:
        summary = await self.generation.generate_summary(topic, argument, session.language, chunk_callback)
        self._record(session, MessageType.SUMMARY, summary, argument=argument)
        return summary

    async def evaluate_argument(
        self,
        session: DebateSession,
        topic: str,
        argument: Argument,
        history: list[Argument],
        chunk_callback: ChunkCallback,
    ) -> str:
        evaluation = await self.generation.generate_evaluation(
            topic, argument, history, session.language, chunk_callback
        )
        self._record(session, MessageType.EVALUATION, evaluation, argument=argument)
        return evaluation

    async def judge_feedback(
        self, session: DebateSession, judge_number: int, chunk_callback: ChunkCallback
    ) -> str:
        text = judge_feedback_text(judge_number, session.language)
        return await self._stream_fixed(session, MessageType.JUDGE_FEEDBACK, text, chunk_callback)

    async def winner_announcement(
        self, session: DebateSession, winner: Winner, chunk_callback: ChunkCallback
    ) -> str:
        text = winner_announcement_text(winner, session.language)
        logger.info(f"Session {session.session_id} winner announcement: {winner.value}")
        return await self._stream_fixed(session, MessageType.ANNOUNCEMENT, text, chunk_callback)
