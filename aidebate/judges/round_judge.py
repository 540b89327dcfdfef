"""Holistic per-round judge."""

import logging
from decimal import Decimal

from aidebate.config.settings import RubricWeights
from aidebate.debate_engine.types import Side
from aidebate.models.manager import ModelManager
from .base import BaseJudge, JudgeEvaluation

logger = logging.getLogger(__name__)

MAX_ROUND_SCORE = Decimal("100")


class RoundJudge(BaseJudge):
    """Scores one side's performance in one round on a 0-100 scale."""

    def __init__(
        self,
        model_manager: ModelManager,
        judge_number: int,
        model_id: str,
        rubric: RubricWeights | None = None,
    ):
        super().__init__(model_manager, judge_number, model_id)
        self.rubric = rubric or RubricWeights()

    @property
    def name(self) -> str:
        return f"Judge {self.judge_number}"

    def _system_prompt(self, language: str) -> str:
        r = self.rubric
        reply_language = "Write the feedback in Simplified Chinese." if language == "zh" else ""
        return (
            f"You are {self.name}, an expert and impartial debate judge. Evaluate one side's "
            "performance in a single round using this rubric:\n"
            f"1. Argument Quality ({r.argument_quality:.0%}): logic, evidence, relevance\n"
            f"2. Rebuttal Effectiveness ({r.rebuttal_effectiveness:.0%}): how well the opponent is answered\n"
            f"3. Rhetorical Impact ({r.rhetorical_impact:.0%}): clarity and persuasive force\n"
            f"4. Strategic Positioning ({r.strategic_positioning:.0%}): fit with the round's purpose\n"
            "Combine the rubric into ONE holistic score from 0 to 100. "
            'Respond ONLY with JSON: {"score": 85.5, "feedback": "..."} '
            f"{reply_language}"
        ).strip()

    def build_prompt(
        self,
        topic: str,
        round_number: int,
        side: Side,
        side_argument: str,
        opponent_argument: str,
        previous_context: list[str],
    ) -> str:
        lines = [f"Topic: {topic}", f"Round: {round_number}", f"Side being judged: {side.label('en')}", ""]
        if previous_context:
            lines.append("Previous rounds context:")
            lines += [f"- {line}" for line in previous_context]
            lines.append("")
        lines += [
            "This side's argument:",
            side_argument,
            "",
            "Opponent's argument:",
            opponent_argument,
            "",
            "Please evaluate this side's performance in this round based on the above information.",
        ]
        return "\n".join(lines)

    async def evaluate_round(
        self,
        topic: str,
        round_number: int,
        side: Side,
        side_argument: str,
        opponent_argument: str,
        previous_context: list[str],
        language: str = "en",
    ) -> JudgeEvaluation:
        """Ask the judge model for a score; raises on unusable responses."""
        prompt = self.build_prompt(
            topic, round_number, side, side_argument, opponent_argument, previous_context
        )
        response = await self._ask(self._system_prompt(language), prompt)
        evaluation = self._parse_scored_response(response, MAX_ROUND_SCORE)
        logger.debug(
            f"{self.name} scored {side.value} round {round_number}: {evaluation.score}"
        )
        return evaluation
