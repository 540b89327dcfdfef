"""Factory for creating judge panels."""

import logging

from aidebate.config.settings import JudgingConfig
from aidebate.models.manager import ModelManager, judge_model_id
from .criterion_judge import CriterionJudge
from .round_judge import RoundJudge

logger = logging.getLogger(__name__)


def create_round_judges(
    model_manager: ModelManager, judging: JudgingConfig, count: int | None = None
) -> list[RoundJudge]:
    """Create the holistic judges, numbered from 1."""
    count = count or judging.judge_count
    logger.info(f"Creating {count} round judges")
    return [
        RoundJudge(model_manager, number, judge_model_id(number), judging.rubric)
        for number in range(1, count + 1)
    ]


def create_criterion_judges(
    model_manager: ModelManager, judging: JudgingConfig, count: int | None = None
) -> list[CriterionJudge]:
    """Create the per-argument judges, sharing the round judges' models."""
    count = count or judging.judge_count
    return [
        CriterionJudge(model_manager, number, judge_model_id(number))
        for number in range(1, count + 1)
    ]
