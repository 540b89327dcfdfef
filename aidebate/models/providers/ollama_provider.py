import logging
from typing import TYPE_CHECKING, Any

from openai import AsyncOpenAI

from .base_model_provider import BaseModelProvider, ChunkCallback

if TYPE_CHECKING:
    from aidebate.config.settings import ModelConfig, SystemConfig

logger = logging.getLogger(__name__)

# OllamaConfig field -> Ollama request option
_OLLAMA_OPTIONS = {
    "keep_alive": "keep_alive",
    "repeat_penalty": "repeat_penalty",
    "num_gpu_layers": "num_gpu",
    "num_thread": "num_thread",
    "main_gpu": "main_gpu",
}


class OllamaProvider(BaseModelProvider):
    """Local models served by Ollama through its OpenAI-compatible API."""

    name = "ollama"
    streaming = True

    def __init__(self, system_config: "SystemConfig"):
        super().__init__(system_config)
        self._client = AsyncOpenAI(
            base_url=f"{system_config.ollama_base_url}/v1",
            api_key="ollama",  # ignored by Ollama
            timeout=120.0,  # first request may load the model
        )
        ollama_config = system_config.ollama
        self._extra_body = {
            option: getattr(ollama_config, field)
            for field, option in _OLLAMA_OPTIONS.items()
            if getattr(ollama_config, field) is not None
        }

    def _request(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], overrides: dict[str, Any]
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": model_config.name,
            "messages": messages,
            **self.sampling_params(model_config, overrides),
        }
        if self._extra_body:
            request["extra_body"] = self._extra_body
        return request

    async def generate_response(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], **overrides: Any
    ) -> str:
        try:
            completion = await self._client.chat.completions.create(
                **self._request(model_config, messages, overrides)
            )
        except Exception as e:
            logger.error(f"Ollama generation failed for {model_config.name}: {e}")
            raise

        text = (completion.choices[0].message.content or "").strip()
        logger.debug(f"Ollama model {model_config.name} returned {len(text)} chars")
        return text

    async def generate_response_stream(
        self,
        model_config: "ModelConfig",
        messages: list[dict[str, str]],
        chunk_callback: ChunkCallback,
        **overrides: Any,
    ) -> str:
        parts: list[str] = []
        try:
            stream = await self._client.chat.completions.create(
                **self._request(model_config, messages, overrides), stream=True
            )
            async for event in stream:
                if not event.choices:
                    continue
                choice = event.choices[0]
                if choice.delta.content:
                    parts.append(choice.delta.content)
                    await chunk_callback(choice.delta.content, False)
                if choice.finish_reason:
                    break
        except Exception as e:
            logger.error(
                f"Ollama stream from {model_config.name} failed after {len(parts)} chunks: {e}"
            )
            raise

        await chunk_callback("", True)
        return "".join(parts)
