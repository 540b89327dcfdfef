"""Scoring engine.

Round scoring (the authoritative path) fans out one task per judge and side,
waits for all of them, substitutes a fallback record for any task that fails,
and persists the complete batch. Cumulative totals are the running sum of the
per-round side averages.

Per-argument scoring is an auxiliary path: every judge scores every weighted
criterion, criterion scores are averaged across judges, weighted and summed.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from aidebate.config.settings import JudgingConfig
from .database import DatabaseManager
from .exceptions import ArgumentMissingError
from .models import Argument, RoundScoreRecord, ScoreRecord, ScoringRule
from .session import DebateSession
from .types import Side, Winner

if TYPE_CHECKING:
    from aidebate.judges import CriterionJudge, RoundJudge

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def determine_winner(affirmative_total: Decimal, negative_total: Decimal) -> Winner:
    if affirmative_total > negative_total:
        return Winner.AFFIRMATIVE
    if negative_total > affirmative_total:
        return Winner.NEGATIVE
    return Winner.DRAW


@dataclass
class RoundResult:
    """Outcome of scoring one round."""

    round_number: int
    records: list[RoundScoreRecord]
    affirmative_average: Decimal
    negative_average: Decimal

    @property
    def fallback_count(self) -> int:
        return sum(1 for record in self.records if record.is_fallback)


@dataclass
class CumulativeScores:
    affirmative_total: Decimal
    negative_total: Decimal
    max_possible: Decimal
    rounds_scored: int
    rounds: list[RoundResult] = field(default_factory=list)

    def to_event(self) -> dict[str, float | int]:
        return {
            "affirmativeTotal": float(self.affirmative_total),
            "negativeTotal": float(self.negative_total),
            "maxPossible": float(self.max_possible),
            "roundsScored": self.rounds_scored,
        }


def side_average(records: list[RoundScoreRecord], side: Side) -> Decimal:
    scores = [record.score for record in records if record.side is side]
    if not scores:
        return Decimal("0.00")
    return quantize(sum(scores, Decimal("0")) / len(scores))


def latest_batch(records: list[RoundScoreRecord]) -> list[RoundScoreRecord]:
    """Keep the newest record per (judge, side); a re-run round is scored once."""
    latest: dict[tuple[int, Side], RoundScoreRecord] = {}
    for record in records:
        key = (record.judge_number, record.side)
        current = latest.get(key)
        if current is None or (record.record_id or 0) > (current.record_id or 0):
            latest[key] = record
    return sorted(latest.values(), key=lambda r: (r.side.value != Side.AFFIRMATIVE.value, r.judge_number))


class ScoringEngine:
    """Concurrent multi-judge round scoring and cumulative totals."""

    def __init__(
        self,
        db: DatabaseManager,
        judges: "list[RoundJudge]",
        config: JudgingConfig,
    ):
        self.db = db
        self.judges = judges
        self.config = config

    def previous_round_context(self, session_id: int, round_number: int) -> list[str]:
        """Truncated lines for up to ``context_rounds`` rounds before this one."""
        first = max(1, round_number - self.config.context_rounds)
        limit = self.config.context_chars
        lines = []
        for previous in range(first, round_number):
            for side in Side:
                argument = self.db.find_argument(session_id, previous, side)
                if argument is not None:
                    lines.append(
                        f"Round {previous} {side.label('en')}: {argument.content[:limit]}..."
                    )
        return lines

    async def score_round(
        self, session: DebateSession, topic: str, round_number: int
    ) -> RoundResult:
        """Score both sides of a round with every judge and persist all records."""
        assert session.session_id is not None
        session_id = session.session_id

        affirmative = self.db.find_argument(session_id, round_number, Side.AFFIRMATIVE)
        negative = self.db.find_argument(session_id, round_number, Side.NEGATIVE)
        if affirmative is None or negative is None:
            raise ArgumentMissingError(
                f"Round {round_number} of session {session_id} is missing an argument"
            )

        context = self.previous_round_context(session_id, round_number)
        judges = self.judges[: session.judge_count]
        semaphore = asyncio.Semaphore(self.config.max_concurrent_evaluations)

        async def evaluate(judge: "RoundJudge", side: Side) -> RoundScoreRecord:
            own, other = (affirmative, negative) if side is Side.AFFIRMATIVE else (negative, affirmative)
            try:
                async with semaphore:
                    async with asyncio.timeout(self.config.evaluation_timeout):
                        evaluation = await judge.evaluate_round(
                            topic,
                            round_number,
                            side,
                            own.content,
                            other.content,
                            context,
                            session.language,
                        )
                return RoundScoreRecord(
                    session_id=session_id,
                    round_number=round_number,
                    judge_number=judge.judge_number,
                    side=side,
                    score=evaluation.score,
                    feedback=evaluation.feedback,
                )
            except Exception as e:
                logger.warning(
                    f"{judge.name} failed on {side.value} round {round_number} "
                    f"of session {session_id}, applying fallback score: {e}"
                )
                return RoundScoreRecord(
                    session_id=session_id,
                    round_number=round_number,
                    judge_number=judge.judge_number,
                    side=side,
                    score=Decimal(str(self.config.fallback_score)),
                    feedback=self.config.fallback_feedback,
                    is_fallback=True,
                )

        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(evaluate(judge, side))
                for side in Side
                for judge in judges
            ]
        records = self.db.insert_round_scores([task.result() for task in tasks])

        result = RoundResult(
            round_number=round_number,
            records=records,
            affirmative_average=side_average(records, Side.AFFIRMATIVE),
            negative_average=side_average(records, Side.NEGATIVE),
        )
        logger.info(
            f"Session {session_id} round {round_number} scored: "
            f"affirmative {result.affirmative_average}, negative {result.negative_average}"
            + (f" ({result.fallback_count} fallback)" if result.fallback_count else "")
        )
        return result

    def round_results(self, session_id: int) -> list[RoundResult]:
        by_round: dict[int, list[RoundScoreRecord]] = {}
        for record in self.db.list_round_scores(session_id):
            by_round.setdefault(record.round_number, []).append(record)

        results = []
        for round_number in sorted(by_round):
            batch = latest_batch(by_round[round_number])
            results.append(
                RoundResult(
                    round_number=round_number,
                    records=batch,
                    affirmative_average=side_average(batch, Side.AFFIRMATIVE),
                    negative_average=side_average(batch, Side.NEGATIVE),
                )
            )
        return results

    def cumulative_scores(self, session: DebateSession) -> CumulativeScores:
        assert session.session_id is not None
        rounds = self.round_results(session.session_id)
        return CumulativeScores(
            affirmative_total=sum((r.affirmative_average for r in rounds), Decimal("0.00")),
            negative_total=sum((r.negative_average for r in rounds), Decimal("0.00")),
            max_possible=session.max_possible_score,
            rounds_scored=len(rounds),
            rounds=rounds,
        )

    def is_round_scored(self, session_id: int, round_number: int) -> bool:
        return bool(self.db.list_round_scores(session_id, round_number))


@dataclass
class CriterionBreakdown:
    criterion: str
    weight: Decimal
    average_score: Decimal
    weighted_score: Decimal
    judge_scores: dict[int, Decimal]
    feedback: list[str]


@dataclass
class ArgumentScore:
    argument_id: int
    total: Decimal
    criteria: list[CriterionBreakdown]


class ArgumentScorer:
    """Weighted-criteria scoring of a single argument."""

    def __init__(
        self,
        db: DatabaseManager,
        judges: "list[CriterionJudge]",
        config: JudgingConfig,
    ):
        self.db = db
        self.judges = judges
        self.config = config

    def create_scoring_rules(self, session_id: int) -> list[ScoringRule]:
        rules = [
            ScoringRule(
                session_id=session_id,
                criterion=criterion.name,
                weight=Decimal(str(criterion.weight)),
                max_score=Decimal(str(criterion.max_score)),
                description=criterion.description,
            )
            for criterion in self.config.criteria
        ]
        return self.db.create_scoring_rules(rules)

    async def score_argument(self, session: DebateSession, topic: str, argument: Argument) -> ArgumentScore:
        """Have every judge score every rule, then compute the weighted total."""
        assert argument.argument_id is not None and session.session_id is not None
        rules = self.db.list_scoring_rules(session.session_id)
        records = []
        for judge in self.judges[: session.judge_count]:
            for rule in rules:
                assert rule.rule_id is not None
                try:
                    evaluation = await judge.judge_argument(topic, argument, rule)
                    score, feedback = evaluation.score, evaluation.feedback
                except Exception as e:
                    logger.warning(f"{judge.name} could not score {rule.criterion} of argument {argument.argument_id}: {e}")
                    score = quantize(rule.max_score * Decimal(str(self.config.criterion_fallback_ratio)))
                    feedback = "Unable to provide detailed feedback at this time."
                records.append(
                    ScoreRecord(
                        argument_id=argument.argument_id,
                        judge_number=judge.judge_number,
                        rule_id=rule.rule_id,
                        score=score,
                        feedback=feedback,
                    )
                )
        self.db.insert_score_records(records)
        return self.calculate(session.session_id, argument.argument_id)

    def calculate(self, session_id: int, argument_id: int) -> ArgumentScore:
        """Per-criterion judge average, weighted and summed, rounded half-up to 2 places."""
        records = self.db.list_score_records(argument_id)
        breakdown = []
        total = Decimal("0")
        for rule in self.db.list_scoring_rules(session_id):
            rule_records = [record for record in records if record.rule_id == rule.rule_id]
            if not rule_records:
                continue
            average = quantize(sum((r.score for r in rule_records), Decimal("0")) / len(rule_records))
            weighted = average * rule.weight
            total += weighted
            breakdown.append(
                CriterionBreakdown(
                    criterion=rule.criterion,
                    weight=rule.weight,
                    average_score=average,
                    weighted_score=quantize(weighted),
                    judge_scores={r.judge_number: r.score for r in rule_records},
                    feedback=[r.feedback for r in rule_records],
                )
            )
        return ArgumentScore(argument_id=argument_id, total=quantize(total), criteria=breakdown)
