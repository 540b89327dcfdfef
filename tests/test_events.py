"""Tests for the ordered event stream."""

from __future__ import annotations

import asyncio

from aidebate.debate_engine.events import EventEmitter
from aidebate.debate_engine.types import DebateEvent

from conftest import EventRecorder


def test_events_carry_envelope_and_increasing_sequence() -> None:
    recorder = EventRecorder()
    emitter = EventEmitter(12, recorder)

    async def run() -> None:
        await emitter.emit(DebateEvent.DEBATE_START, topic="Space mining", rounds=5)
        await emitter.emit(DebateEvent.ROUND_START, round=1)
        await emitter.error("boom")

    asyncio.run(run())

    assert recorder.types() == ["debate_start", "round_start", "error"]
    assert [event["sequence"] for event in recorder.events] == [1, 2, 3]
    assert all(event["sessionId"] == 12 for event in recorder.events)
    assert recorder.events[0]["topic"] == "Space mining"
    assert recorder.events[2]["message"] == "boom"
    assert "timestamp" in recorder.events[1]


def test_text_stream_accumulates_prefixes() -> None:
    """Each chunk event's content extends the previous one; one completion ends it."""
    recorder = EventRecorder()
    emitter = EventEmitter(3, recorder)
    relay = emitter.text_stream(DebateEvent.AI_ARGUMENT, side="AFFIRMATIVE", round=2)

    async def run() -> None:
        for chunk in ["Cheap ", "", "energy ", "matters."]:
            await relay(chunk, False)
        await relay("", True)
        await relay("late", False)
        await relay("", True)

    asyncio.run(run())

    contents = [event["content"] for event in recorder.events]
    assert contents == ["Cheap ", "Cheap energy ", "Cheap energy matters.", "Cheap energy matters."]
    assert [event["complete"] for event in recorder.events] == [False, False, False, True]
    assert recorder.events[-1]["chunk"] == ""
    assert all(event["side"] == "AFFIRMATIVE" and event["round"] == 2 for event in recorder.events)
    for previous, current in zip(contents, contents[1:]):
        assert current.startswith(previous)


def test_emitter_without_sink_still_counts() -> None:
    emitter = EventEmitter(1)

    asyncio.run(emitter.emit(DebateEvent.JUDGING_START, judgeCount=3))

    assert emitter.sequence == 1
