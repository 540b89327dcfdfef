"""Pytest configuration and shared fixtures.

Model calls are served by ``FakeModelManager``, which answers from the prompt
text alone so that two runs over the same debate produce identical arguments
and scores. Failures can be scripted per model id.
"""

import asyncio
import json
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import pytest

from aidebate.config.settings import AppConfig, GenerationConfig, JudgingConfig, ModelConfig
from aidebate.debate_engine.core import DebateEngine
from aidebate.debate_engine.database import DatabaseManager
from aidebate.debate_engine.models import Topic


# =============================================================================
# FAKES
# =============================================================================


def _user_prompt(messages: list[dict[str, str]]) -> str:
    return next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")


class FakeModelManager:
    """Deterministic stand-in for ``ModelManager``.

    Debaters answer with text derived from side and round, the moderator with
    short summaries and evaluations, and judges with JSON scores that favour
    the affirmative side by five points.
    """

    def __init__(self):
        self.stream_calls: list[tuple[str, str]] = []
        self.response_calls: list[tuple[str, str]] = []
        # model_id -> number of stream attempts that raise before one succeeds
        self.stream_failures: dict[str, int] = {}
        # model_id -> number of chunks delivered before the stream breaks
        self.break_after_chunks: dict[str, int] = {}
        self.empty_models: set[str] = set()
        self.failing_judges: set[str] = set()
        self.garbage_judges: set[str] = set()
        self.judge_delay = 0.0

    def debater_text(self, model_id: str, prompt: str) -> str:
        match = re.search(r"Current round: (\d+)", prompt)
        round_number = match.group(1) if match else "?"
        return f"{model_id.capitalize()} case for round {round_number}: evidence matters. Logic wins."

    def moderator_text(self, prompt: str) -> str:
        if "Summarise" in prompt:
            return "Summary: the speaker made one clear point."
        return "Evaluation: well structured and relevant."

    def judge_text(self, model_id: str, prompt: str) -> str:
        criterion = re.search(r"Criterion: (\w+)", prompt)
        if criterion:
            return json.dumps({"score": 80, "feedback": f"{criterion.group(1)} is adequate."})

        round_match = re.search(r"Round: (\d+)", prompt)
        round_number = int(round_match.group(1)) if round_match else 1
        affirmative = "Side being judged: Affirmative" in prompt
        judge_number = int(model_id.rsplit("_", 1)[-1])
        score = 70 + round_number + judge_number + (5 if affirmative else 0)
        return f'```json\n{{"score": {score}, "feedback": "Solid round."}}\n```'

    def _text_for(self, model_id: str, prompt: str) -> str:
        if model_id in ("affirmative", "negative"):
            return self.debater_text(model_id, prompt)
        if model_id == "moderator":
            return self.moderator_text(prompt)
        return self.judge_text(model_id, prompt)

    async def generate_response(self, model_id: str, messages: list[dict[str, str]], **overrides: object) -> str:
        prompt = _user_prompt(messages)
        self.response_calls.append((model_id, prompt))
        if self.judge_delay:
            await asyncio.sleep(self.judge_delay)
        else:
            await asyncio.sleep(0)
        if model_id in self.failing_judges:
            raise RuntimeError(f"{model_id} unavailable")
        if model_id in self.garbage_judges:
            return "I refuse to give a number."
        return self._text_for(model_id, prompt)

    async def generate_response_stream(
        self, model_id: str, messages: list[dict[str, str]], chunk_callback, **overrides: object
    ) -> str:
        prompt = _user_prompt(messages)
        self.stream_calls.append((model_id, prompt))

        if self.stream_failures.get(model_id, 0) > 0:
            self.stream_failures[model_id] -= 1
            raise RuntimeError(f"{model_id} stream failed")
        if model_id in self.empty_models:
            await chunk_callback("", True)
            return ""

        text = self._text_for(model_id, prompt)
        words = text.split(" ")
        chunks = [word + " " for word in words[:-1]] + [words[-1]]
        limit = self.break_after_chunks.get(model_id)
        for index, chunk in enumerate(chunks):
            if limit is not None and index == limit:
                raise ConnectionError(f"{model_id} stream dropped")
            await chunk_callback(chunk, False)
        await chunk_callback("", True)
        return text

    @asynccontextmanager
    async def model_session(self, model_id: str) -> AsyncIterator["FakeModelManager"]:
        yield self

    def debater_calls(self) -> list[tuple[str, str]]:
        return [call for call in self.stream_calls if call[0] in ("affirmative", "negative")]


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class EventRecorder:
    """Event sink collecting every emitted message."""

    def __init__(self):
        self.events: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.events.append(message)

    def types(self) -> list[str]:
        return [event["type"] for event in self.events]

    def of(self, event_type: str) -> list[dict[str, Any]]:
        return [event for event in self.events if event["type"] == event_type]


# =============================================================================
# SHARED FIXTURES - Available to all test modules
# =============================================================================


@pytest.fixture
def sample_debate_topic() -> str:
    """Provide a standard debate topic for testing."""
    return "Should AI be regulated?"


@pytest.fixture
def app_config() -> AppConfig:
    """Configuration with short timeouts and the three required models."""
    return AppConfig(
        models={
            "affirmative": ModelConfig(name="fake-debater", provider="ollama"),
            "negative": ModelConfig(name="fake-debater", provider="ollama"),
            "moderator": ModelConfig(name="fake-moderator", provider="ollama"),
        },
        judging=JudgingConfig(judge_count=3, evaluation_timeout=5.0),
        generation=GenerationConfig(max_attempts=3, backoff_base_seconds=1.0),
    )


@pytest.fixture
def db(tmp_path: Path) -> DatabaseManager:
    return DatabaseManager(tmp_path / "test.db")


@pytest.fixture
def fake_models() -> FakeModelManager:
    return FakeModelManager()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def engine(
    app_config: AppConfig,
    db: DatabaseManager,
    fake_models: FakeModelManager,
    recording_sleep: RecordingSleep,
) -> DebateEngine:
    return DebateEngine(app_config, db, fake_models, sleep=recording_sleep)  # type: ignore[arg-type]


@pytest.fixture
def topic(db: DatabaseManager, sample_debate_topic: str) -> Topic:
    return db.create_topic(Topic(title=sample_debate_topic, description="Scenario topic"))


# =============================================================================
# PYTEST CONFIGURATION HOOKS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
