"""Judging system implementations."""

from .base import BaseJudge, JudgeEvaluation, JudgeResponseError
from .criterion_judge import CriterionJudge
from .factory import create_criterion_judges, create_round_judges
from .round_judge import RoundJudge

__all__ = [
    "BaseJudge",
    "JudgeEvaluation",
    "JudgeResponseError",
    "CriterionJudge",
    "RoundJudge",
    "create_criterion_judges",
    "create_round_judges",
]
