"""Routing of model ids (debaters, moderator, judges) to provider backends."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, TypeAlias

from aidebate.config.settings import AppConfig, ModelConfig, SystemConfig

from .providers.base_model_provider import BaseModelProvider, ChunkCallback
from .providers.providers import ProviderFactory

MessageList: TypeAlias = list[dict[str, str]]

DEBATER_MODEL_IDS = {"AFFIRMATIVE": "affirmative", "NEGATIVE": "negative"}
MODERATOR_MODEL_ID = "moderator"

logger = logging.getLogger(__name__)


def judge_model_id(judge_number: int) -> str:
    return f"judge_{judge_number}"


class ModelManager:
    """Resolves a model id to its config and a shared provider instance.

    One provider instance is created per provider name and reused by every
    model registered against it.
    """

    def __init__(self, system_config: SystemConfig):
        self._system_config = system_config
        self._configs: dict[str, ModelConfig] = {}
        self._backends: dict[str, BaseModelProvider] = {}

    def _backend(self, provider: str) -> BaseModelProvider:
        if provider not in self._backends:
            self._backends[provider] = ProviderFactory.create_provider(provider, self._system_config)
        return self._backends[provider]

    def _lookup(self, model_id: str) -> tuple[ModelConfig, BaseModelProvider]:
        config = self._configs.get(model_id)
        if config is None:
            raise ValueError(f"Model {model_id} not registered")
        return config, self._backend(config.provider)

    def register_model(self, model_id: str, config: ModelConfig) -> None:
        backend = self._backend(config.provider)
        if not backend.accepts(config):
            raise ValueError(f"{backend.name} cannot serve model config for {model_id}")
        self._configs[model_id] = config
        logger.info(f"Registered {model_id}: {config.name} via {config.provider}")

    def is_registered(self, model_id: str) -> bool:
        return model_id in self._configs

    async def generate_response(self, model_id: str, messages: MessageList, **overrides: Any) -> str:
        config, backend = self._lookup(model_id)
        text = await backend.generate_response(config, messages, **overrides)
        logger.debug(f"{model_id} produced {len(text)} chars")
        return text

    async def generate_response_stream(
        self, model_id: str, messages: MessageList, chunk_callback: ChunkCallback, **overrides: Any
    ) -> str:
        """Stream a reply for ``model_id``.

        ``chunk_callback`` receives ``(delta, False)`` per piece and ``("", True)``
        at the end, whether or not the backend streams natively.
        """
        config, backend = self._lookup(model_id)
        text = await backend.generate_response_stream(config, messages, chunk_callback, **overrides)
        mode = "streamed" if backend.streaming else "single-chunk"
        logger.debug(f"{model_id} produced {len(text)} chars ({mode})")
        return text

    @asynccontextmanager
    async def model_session(self, model_id: str) -> AsyncIterator[ModelManager]:
        """Scope a group of calls to one registered model."""
        self._lookup(model_id)
        logger.debug(f"Session opened for {model_id}")
        try:
            yield self
        finally:
            logger.debug(f"Session closed for {model_id}")


def build_model_manager(config: AppConfig) -> ModelManager:
    """Register the debaters, the moderator and one model per judge seat.

    Judge seats cycle through ``judging.judge_models``; with none configured
    every judge borrows the moderator's model.
    """
    manager = ModelManager(config.system)
    for model_id, model_config in config.models.items():
        manager.register_model(model_id, model_config)

    judging = config.judging
    if not judging.judge_models:
        logger.warning("No judge models configured, judges will use the moderator model")

    for judge_number in range(1, judging.judge_count + 1):
        if judging.judge_models:
            judge_config = ModelConfig(
                name=judging.judge_models[(judge_number - 1) % len(judging.judge_models)],
                provider=judging.judge_provider or "ollama",
                max_tokens=600,
                temperature=0.3,
            )
        else:
            judge_config = config.models[MODERATOR_MODEL_ID]
        manager.register_model(judge_model_id(judge_number), judge_config)

    return manager
