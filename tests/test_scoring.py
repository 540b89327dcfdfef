"""Tests for concurrent round scoring and cumulative totals."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from aidebate.config.settings import JudgingConfig
from aidebate.debate_engine.database import DatabaseManager
from aidebate.debate_engine.exceptions import ArgumentMissingError
from aidebate.debate_engine.models import Argument, Topic
from aidebate.debate_engine.scoring import ScoringEngine, determine_winner, side_average
from aidebate.debate_engine.session import DebateSession
from aidebate.debate_engine.types import Side, Winner
from aidebate.judges import JudgeEvaluation


class ScriptedJudge:
    """Round judge returning fixed scores per side, or failing on demand."""

    def __init__(
        self,
        judge_number: int,
        affirmative: str = "80",
        negative: str = "70",
        fail: bool = False,
        hang: bool = False,
    ):
        self.judge_number = judge_number
        self.scores = {Side.AFFIRMATIVE: Decimal(affirmative), Side.NEGATIVE: Decimal(negative)}
        self.fail = fail
        self.hang = hang
        self.calls: list[tuple[int, Side, list[str]]] = []

    @property
    def name(self) -> str:
        return f"Judge {self.judge_number}"

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
        self.calls.append((round_number, side, previous_context))
        if self.hang:
            await asyncio.sleep(30)
        if self.fail:
            raise RuntimeError("model offline")
        return JudgeEvaluation(score=self.scores[side], feedback=f"{side.value} was convincing")


class ConcurrencyGauge:
    """Shared counter of judge calls in flight."""

    def __init__(self):
        self.in_flight = 0
        self.peak = 0


class GaugedJudge(ScriptedJudge):
    def __init__(self, judge_number: int, gauge: ConcurrencyGauge):
        super().__init__(judge_number)
        self.gauge = gauge

    async def evaluate_round(self, *args, **kwargs) -> JudgeEvaluation:
        self.gauge.in_flight += 1
        self.gauge.peak = max(self.gauge.peak, self.gauge.in_flight)
        try:
            await asyncio.sleep(0.01)
            return await super().evaluate_round(*args, **kwargs)
        finally:
            self.gauge.in_flight -= 1


def _seed(db: DatabaseManager, rounds: int = 3, judge_count: int = 3, content: str | None = None) -> DebateSession:
    topic = db.create_topic(Topic(title="Should cities ban cars?"))
    assert topic.topic_id is not None
    session = db.create_session(DebateSession(topic_id=topic.topic_id, round_count=rounds, judge_count=judge_count))
    assert session.session_id is not None
    session.start()
    db.save_session(session)
    for round_number in range(1, rounds + 1):
        for side in Side:
            db.insert_argument(
                Argument(
                    session_id=session.session_id,
                    round_number=round_number,
                    side=side,
                    content=content or f"{side.value} argument for round {round_number}",
                )
            )
    return session


def test_score_round_persists_one_record_per_judge_and_side(db: DatabaseManager) -> None:
    """Three judges and two sides give six records and per-side averages."""
    session = _seed(db)
    judges = [ScriptedJudge(1, "80", "70"), ScriptedJudge(2, "90", "60"), ScriptedJudge(3, "85", "65")]
    engine = ScoringEngine(db, judges, JudgingConfig())  # type: ignore[arg-type]

    result = asyncio.run(engine.score_round(session, "Should cities ban cars?", 1))

    assert len(result.records) == 6
    assert result.affirmative_average == Decimal("85.00")
    assert result.negative_average == Decimal("65.00")
    assert result.fallback_count == 0
    assert len(db.list_round_scores(session.session_id, 1)) == 6  # type: ignore[arg-type]


def test_failing_and_hanging_judges_get_fallback_scores(db: DatabaseManager) -> None:
    """A failed or timed-out judge never leaves a hole in the batch."""
    session = _seed(db)
    judges = [
        ScriptedJudge(1, "90", "80"),
        ScriptedJudge(2, fail=True),
        ScriptedJudge(3, hang=True),
    ]
    config = JudgingConfig(evaluation_timeout=0.05)
    engine = ScoringEngine(db, judges, config)  # type: ignore[arg-type]

    result = asyncio.run(engine.score_round(session, "Should cities ban cars?", 1))

    assert len(result.records) == 6
    fallbacks = [record for record in result.records if record.is_fallback]
    assert len(fallbacks) == 4
    assert {record.judge_number for record in fallbacks} == {2, 3}
    assert all(record.score == Decimal("75") for record in fallbacks)
    assert all(record.feedback == config.fallback_feedback for record in fallbacks)
    assert result.affirmative_average == Decimal("80.00")
    assert result.negative_average == Decimal("76.67")


def test_every_judge_failing_still_completes_round(db: DatabaseManager) -> None:
    session = _seed(db)
    judges = [ScriptedJudge(n, fail=True) for n in (1, 2, 3)]
    engine = ScoringEngine(db, judges, JudgingConfig())  # type: ignore[arg-type]

    result = asyncio.run(engine.score_round(session, "topic", 2))

    assert result.fallback_count == 6
    assert result.affirmative_average == result.negative_average == Decimal("75.00")


def test_judge_calls_respect_concurrency_bound(db: DatabaseManager) -> None:
    """No more than ``max_concurrent_evaluations`` judge calls run at once."""
    session = _seed(db)
    gauge = ConcurrencyGauge()
    judges = [GaugedJudge(n, gauge) for n in (1, 2, 3)]
    engine = ScoringEngine(db, judges, JudgingConfig(max_concurrent_evaluations=2))  # type: ignore[arg-type]

    asyncio.run(engine.score_round(session, "topic", 1))

    assert gauge.peak == 2


def test_only_session_judge_count_judges_are_used(db: DatabaseManager) -> None:
    session = _seed(db, judge_count=2)
    judges = [ScriptedJudge(n) for n in (1, 2, 3)]
    engine = ScoringEngine(db, judges, JudgingConfig())  # type: ignore[arg-type]

    result = asyncio.run(engine.score_round(session, "topic", 1))

    assert len(result.records) == 4
    assert judges[2].calls == []


def test_missing_argument_raises(db: DatabaseManager) -> None:
    session = _seed(db, rounds=1)
    engine = ScoringEngine(db, [ScriptedJudge(1)], JudgingConfig())  # type: ignore[arg-type]

    with pytest.raises(ArgumentMissingError):
        asyncio.run(engine.score_round(session, "topic", 2))


def test_cumulative_totals_are_sum_of_round_averages(db: DatabaseManager) -> None:
    """Totals equal the running sum of side averages and stay within bounds."""
    session = _seed(db, rounds=3)
    engine = ScoringEngine(db, [ScriptedJudge(1, "80", "70"), ScriptedJudge(2, "90", "75")], JudgingConfig())  # type: ignore[arg-type]
    session.judge_count = 2

    results = [asyncio.run(engine.score_round(session, "topic", n)) for n in (1, 2, 3)]
    totals = engine.cumulative_scores(session)

    assert totals.rounds_scored == 3
    assert totals.affirmative_total == sum(r.affirmative_average for r in results)
    assert totals.negative_total == sum(r.negative_average for r in results)
    assert totals.affirmative_total == Decimal("255.00")
    assert totals.negative_total == Decimal("217.50")
    assert Decimal("0") <= totals.negative_total <= totals.max_possible == Decimal("300")
    assert totals.to_event() == {
        "affirmativeTotal": 255.0,
        "negativeTotal": 217.5,
        "maxPossible": 300.0,
        "roundsScored": 3,
    }


def test_rescored_round_counts_only_latest_batch(db: DatabaseManager) -> None:
    """A re-run round adds a new batch; totals use the newest one."""
    session = _seed(db, rounds=1)
    first = ScoringEngine(db, [ScriptedJudge(n, "60", "60") for n in (1, 2, 3)], JudgingConfig())  # type: ignore[arg-type]
    second = ScoringEngine(db, [ScriptedJudge(n, "90", "50") for n in (1, 2, 3)], JudgingConfig())  # type: ignore[arg-type]

    asyncio.run(first.score_round(session, "topic", 1))
    asyncio.run(second.score_round(session, "topic", 1))
    totals = second.cumulative_scores(session)

    assert len(db.list_round_scores(session.session_id)) == 12  # type: ignore[arg-type]
    assert totals.rounds_scored == 1
    assert totals.affirmative_total == Decimal("90.00")
    assert totals.negative_total == Decimal("50.00")


def test_side_average_rounds_half_up(db: DatabaseManager) -> None:
    """70.005 rounds to 70.01, not to the even 70.00."""
    session = _seed(db, rounds=1)
    judges = [ScriptedJudge(1, "70"), ScriptedJudge(2, "70"), ScriptedJudge(3, "70.015")]
    engine = ScoringEngine(db, judges, JudgingConfig())  # type: ignore[arg-type]

    result = asyncio.run(engine.score_round(session, "topic", 1))

    assert result.affirmative_average == Decimal("70.01")
    assert side_average(result.records, Side.AFFIRMATIVE) == Decimal("70.01")


def test_previous_round_context_is_truncated(db: DatabaseManager) -> None:
    """Judges see up to two earlier rounds, each argument cut to 100 characters."""
    session = _seed(db, rounds=4, content="x" * 150)
    engine = ScoringEngine(db, [], JudgingConfig())

    assert engine.previous_round_context(session.session_id, 1) == []  # type: ignore[arg-type]
    lines = engine.previous_round_context(session.session_id, 4)  # type: ignore[arg-type]

    assert len(lines) == 4
    assert lines[0] == f"Round 2 Affirmative: {'x' * 100}..."
    assert lines[-1].startswith("Round 3 Negative: ")


def test_judges_receive_previous_context(db: DatabaseManager) -> None:
    session = _seed(db, rounds=2)
    judge = ScriptedJudge(1)
    session.judge_count = 1
    engine = ScoringEngine(db, [judge], JudgingConfig())  # type: ignore[arg-type]

    asyncio.run(engine.score_round(session, "topic", 2))

    assert all(len(context) == 2 for _, _, context in judge.calls)


@pytest.mark.parametrize(
    ("affirmative", "negative", "winner"),
    [
        ("350.10", "349.90", Winner.AFFIRMATIVE),
        ("300.00", "300.01", Winner.NEGATIVE),
        ("375.00", "375.00", Winner.DRAW),
    ],
)
def test_determine_winner(affirmative: str, negative: str, winner: Winner) -> None:
    assert determine_winner(Decimal(affirmative), Decimal(negative)) is winner
