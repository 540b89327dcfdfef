"""Configuration settings and data models."""

import json
import os
import shutil
from pathlib import Path
from typing import Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

PlaybackSpeedName = Literal["FAST", "NORMAL", "SLOW"]
LanguageCode = Literal["en", "zh"]
PROVIDER_NAMES = frozenset({"ollama", "openrouter"})


class ModelConfig(BaseModel):
    """One model seat: a debater, the moderator or a judge."""

    name: str = Field(..., description="Backend model name, e.g. llama3.2:3b or openai/gpt-4o")
    provider: str = "ollama"
    max_tokens: int = Field(default=300, gt=0)
    temperature: float = Field(default=0.7, ge=0, le=2)

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in PROVIDER_NAMES:
            raise ValueError(f"Unknown provider {v!r}, expected one of {sorted(PROVIDER_NAMES)}")
        return v


class PersonaConfig(BaseModel):
    """Trait set describing how one side argues."""

    personality: str = Field(default="Analytical", description="Debating personality")
    expertise_level: str = Field(default="Expert", description="Claimed expertise level")


class DebateConfig(BaseModel):
    """Debate flow configuration."""

    rounds: int = Field(default=5, ge=1, le=20, description="Number of rounds per session")
    language: LanguageCode = Field(default="en", description="Narration and prompt language")
    playback_speed: PlaybackSpeedName = Field(default="NORMAL", description="Default pacing for new sessions")
    speed_delays_ms: Dict[str, int] = Field(
        default_factory=lambda: {"FAST": 1000, "NORMAL": 3000, "SLOW": 5000},
        description="Pacing delay per playback speed in milliseconds",
    )
    argument_char_limit: int = Field(default=500, description="Soft length budget for arguments")
    summary_char_limit: int = Field(default=200, description="Soft length budget for moderator summaries")
    evaluation_char_limit: int = Field(default=300, description="Soft length budget for moderator evaluations")
    history_window: int = Field(default=6, description="Number of previous arguments shown to debaters")

    @field_validator("speed_delays_ms")
    @classmethod
    def validate_speed_delays(cls, v: Dict[str, int]) -> Dict[str, int]:
        missing = {"FAST", "NORMAL", "SLOW"} - set(v)
        if missing:
            raise ValueError(f"speed_delays_ms is missing entries for: {sorted(missing)}")
        if any(delay < 0 for delay in v.values()):
            raise ValueError("speed_delays_ms values must be non-negative")
        return v


class RubricWeights(BaseModel):
    """Weights describing the holistic round rubric shown to judges."""

    argument_quality: float = 0.40
    rebuttal_effectiveness: float = 0.30
    rhetorical_impact: float = 0.20
    strategic_positioning: float = 0.10


class CriterionConfig(BaseModel):
    """A weighted criterion for per-argument scoring."""

    name: str
    weight: float = Field(..., gt=0, le=1)
    max_score: float = Field(default=100.0, gt=0)
    description: str = ""


def default_criteria() -> List[CriterionConfig]:
    return [
        CriterionConfig(name="Logic", weight=0.40, description="Soundness of reasoning and evidence"),
        CriterionConfig(name="Persuasiveness", weight=0.35, description="Ability to convince the audience"),
        CriterionConfig(name="Fluency", weight=0.25, description="Clarity and flow of expression"),
    ]


class JudgingConfig(BaseModel):
    """Judging system configuration."""

    judge_count: int = Field(default=3, ge=1, le=9, description="Judges scoring each round")
    judge_models: List[str] = Field(
        default=[], description="Models to use for AI judging, cycled across judges"
    )
    judge_provider: Optional[str] = Field(
        default=None, description="Provider for the judge models"
    )
    fallback_score: float = Field(default=75.0, ge=0, le=100)
    fallback_feedback: str = Field(default="Evaluation error, default score applied")
    evaluation_timeout: float = Field(default=60.0, gt=0, description="Seconds before a judge task is abandoned")
    max_concurrent_evaluations: int = Field(default=6, ge=1)
    context_rounds: int = Field(default=2, ge=0, description="Previous rounds summarised for judges")
    context_chars: int = Field(default=100, ge=1, description="Characters kept per previous argument")
    rubric: RubricWeights = Field(default_factory=RubricWeights)
    criteria: List[CriterionConfig] = Field(default_factory=default_criteria)
    criterion_fallback_ratio: float = Field(
        default=0.6, ge=0, le=1, description="Share of max score used when a criterion judgement fails"
    )

    @field_validator("criteria")
    @classmethod
    def validate_weights(cls, v: List[CriterionConfig]) -> List[CriterionConfig]:
        total = sum(criterion.weight for criterion in v)
        if v and abs(total - 1.0) > 1e-6:
            raise ValueError(f"Criterion weights must sum to 1.0, got {total}")
        return v


class GenerationConfig(BaseModel):
    """Retry behaviour of the text-generation service."""

    max_attempts: int = Field(default=3, ge=1, description="Attempts before falling back")
    backoff_base_seconds: float = Field(
        default=1.0, ge=0, description="Retry waits backoff_base_seconds * 2**attempt"
    )
    moderator_instruction: Optional[str] = Field(
        default=None, description="Extra instruction passed to every debater prompt"
    )


class OllamaConfig(BaseModel):
    """Request options forwarded to a local Ollama server; None leaves Ollama's default."""

    num_gpu_layers: Optional[int] = Field(default=None, description="Layers offloaded to GPU, -1 for all")
    main_gpu: Optional[int] = None
    num_thread: Optional[int] = None
    keep_alive: Optional[str] = Field(default="5m", description="Time a model stays loaded between turns")
    repeat_penalty: Optional[float] = 1.1


class OpenRouterConfig(BaseModel):
    """Hosted-model access through OpenRouter."""

    api_key: Optional[str] = Field(default=None, description="Falls back to OPENROUTER_API_KEY")
    base_url: str = "https://openrouter.ai/api/v1"
    site_url: Optional[str] = Field(default=None, description="Sent as HTTP-Referer")
    app_name: Optional[str] = Field(default="AI Debate Arena", description="Sent as X-Title")
    timeout: int = Field(default=60, gt=0, description="Seconds per request")

    def resolved_api_key(self) -> Optional[str]:
        return self.api_key or os.environ.get("OPENROUTER_API_KEY")


class SystemConfig(BaseModel):
    """Infrastructure settings: model backends, storage, logging."""

    ollama_base_url: str = "http://localhost:11434"
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    openrouter: OpenRouterConfig = Field(default_factory=OpenRouterConfig)
    database_path: str = Field(default="aidebate.db", description="SQLite database file")
    moderation_cache_ttl_seconds: int = Field(
        default=300, ge=0, description="How long the banned-term list is cached"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


SeverityName = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]


class ModerationConfig(BaseModel):
    """Banned terms loaded into the sensitive word list at startup."""

    banned_words: Dict[str, SeverityName] = Field(
        default_factory=dict, description="Word to severity; HIGH and CRITICAL reject a topic"
    )


REQUIRED_SECTIONS = ("debate", "models", "judging", "system")


class AppConfig(BaseModel):
    """Complete application configuration."""

    debate: DebateConfig = Field(default_factory=DebateConfig)
    models: Dict[str, ModelConfig]
    judging: JudgingConfig = Field(default_factory=JudgingConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)
    moderation: ModerationConfig = Field(default_factory=ModerationConfig)

    @field_validator("models")
    @classmethod
    def validate_models(cls, v: Dict[str, ModelConfig]) -> Dict[str, ModelConfig]:
        missing = {"affirmative", "negative", "moderator"} - set(v)
        if missing:
            raise ValueError(f"Config must define models for: {sorted(missing)}")
        return v

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Read a JSON or YAML config; ``generation`` and ``moderation`` are optional."""
        if not config_path.is_file():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        text = config_path.read_text(encoding="utf-8")
        if config_path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
        missing = [section for section in REQUIRED_SECTIONS if section not in data]
        if missing:
            raise ValueError(f"Missing required config sections: {missing}")
        return cls.model_validate(data)

    def save_to_file(self, config_path: Path) -> None:
        """Write the explicitly set values as YAML."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(
            yaml.safe_dump(self.model_dump(exclude_unset=True), sort_keys=False, indent=2),
            encoding="utf-8",
        )

    def speed_delay_seconds(self, speed: str) -> float:
        """Pacing delay for a playback speed name, in seconds."""
        return self.debate.speed_delays_ms[speed] / 1000.0


def get_default_config() -> AppConfig:
    """Load ``debate_config.json`` (or ``$AIDEBATE_CONFIG``), creating it on first run."""
    config_path = Path(os.environ.get("AIDEBATE_CONFIG", "debate_config.json"))
    if not config_path.exists():
        example_path = Path("debate_config.example.json")
        if example_path.exists():
            shutil.copy2(example_path, config_path)
        else:
            config_path.write_text(get_template_config().model_dump_json(indent=2), encoding="utf-8")
    return AppConfig.load_from_file(config_path)


def get_template_config() -> AppConfig:
    """Starter configuration for a single machine running Ollama."""
    debater = {"name": "qwen2.5:7b", "provider": "ollama", "max_tokens": 400}
    return AppConfig(
        debate=DebateConfig(rounds=5, language="en", playback_speed="NORMAL"),
        models={
            "affirmative": ModelConfig(**debater, temperature=0.7),
            "negative": ModelConfig(**debater, temperature=0.8),
            "moderator": ModelConfig(name="llama3.2:3b", provider="ollama", max_tokens=200, temperature=0.5),
        },
        judging=JudgingConfig(judge_count=3, judge_models=["qwen2.5:7b"], judge_provider="ollama"),
        generation=GenerationConfig(max_attempts=3, backoff_base_seconds=1.0),
        system=SystemConfig(
            ollama=OllamaConfig(num_gpu_layers=-1),
            database_path="aidebate.db",
        ),
    )
