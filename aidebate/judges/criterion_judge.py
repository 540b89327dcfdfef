"""Per-argument judge scoring a single weighted criterion."""

from decimal import Decimal

from aidebate.debate_engine.models import Argument, ScoringRule
from .base import BaseJudge, JudgeEvaluation


class CriterionJudge(BaseJudge):
    """Scores one argument against one criterion such as Logic or Fluency."""

    @property
    def name(self) -> str:
        return f"Criterion Judge {self.judge_number}"

    async def judge_argument(self, topic: str, argument: Argument, rule: ScoringRule) -> JudgeEvaluation:
        max_score = Decimal(rule.max_score)
        system_prompt = (
            f"You are {self.name}, a strict debate judge. Score arguments on a single criterion. "
            f'Respond ONLY with JSON: {{"score": <0-{max_score}>, "feedback": "<one sentence>"}}'
        )
        user_prompt = (
            f"Topic: {topic}\n"
            f"Side: {argument.side.label('en')}\n"
            f"Criterion: {rule.criterion} - {rule.description}\n\n"
            f"Argument:\n{argument.content}"
        )
        response = await self._ask(system_prompt, user_prompt)
        return self._parse_scored_response(response, max_score)
