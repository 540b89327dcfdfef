"""Tests for configuration loading and validation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from aidebate.config.settings import (
    AppConfig,
    CriterionConfig,
    DebateConfig,
    JudgingConfig,
    ModelConfig,
    get_template_config,
)

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "debate_config.example.json"

MODELS = {
    "affirmative": {"name": "qwen2.5:7b"},
    "negative": {"name": "qwen2.5:7b"},
    "moderator": {"name": "llama3.2:3b"},
}


def test_example_config_loads() -> None:
    config = AppConfig.load_from_file(EXAMPLE_CONFIG)

    assert config.debate.rounds == 5
    assert config.judging.judge_count == 3
    assert config.judging.fallback_score == 75.0
    assert config.generation.max_attempts == 3
    assert set(config.models) == {"affirmative", "negative", "moderator"}
    assert config.moderation.banned_words["terrorism"] == "CRITICAL"


def test_defaults_match_debate_rules() -> None:
    config = AppConfig(models={k: ModelConfig(**v) for k, v in MODELS.items()})

    assert config.debate.rounds == 5
    assert config.debate.history_window == 6
    assert config.judging.context_rounds == 2
    assert config.judging.context_chars == 100
    assert [c.name for c in config.judging.criteria] == ["Logic", "Persuasiveness", "Fluency"]
    assert config.speed_delay_seconds("FAST") == 1.0
    assert config.speed_delay_seconds("NORMAL") == 3.0
    assert config.speed_delay_seconds("SLOW") == 5.0


def test_missing_required_model_is_rejected() -> None:
    with pytest.raises(ValidationError):
        AppConfig(models={"affirmative": ModelConfig(name="a"), "negative": ModelConfig(name="b")})


def test_unknown_provider_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ModelConfig(name="gpt", provider="azure")


def test_criterion_weights_must_sum_to_one() -> None:
    with pytest.raises(ValidationError):
        JudgingConfig(
            criteria=[
                CriterionConfig(name="Logic", weight=0.5),
                CriterionConfig(name="Fluency", weight=0.4),
            ]
        )


def test_speed_delays_require_every_speed() -> None:
    with pytest.raises(ValidationError):
        DebateConfig(speed_delays_ms={"FAST": 500, "NORMAL": 1000})


def test_missing_sections_are_reported(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"models": MODELS}), encoding="utf-8")

    with pytest.raises(ValueError, match="Missing required config sections"):
        AppConfig.load_from_file(path)


def test_missing_file_is_reported(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        AppConfig.load_from_file(tmp_path / "absent.json")


def test_save_to_file_writes_yaml(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.yaml"

    get_template_config().save_to_file(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8"))

    assert data["models"]["moderator"]["name"] == "llama3.2:3b"
    assert data["judging"]["judge_count"] == 3

    reloaded = AppConfig.load_from_file(path)
    assert reloaded.judging.judge_models == ["qwen2.5:7b"]
    assert reloaded.system.ollama.num_gpu_layers == -1


def test_moderation_section_is_optional_and_validated() -> None:
    config = AppConfig(models={k: ModelConfig(**v) for k, v in MODELS.items()})
    assert config.moderation.banned_words == {}

    with pytest.raises(ValidationError):
        AppConfig(
            models={k: ModelConfig(**v) for k, v in MODELS.items()},
            moderation={"banned_words": {"violence": "SEVERE"}},
        )
