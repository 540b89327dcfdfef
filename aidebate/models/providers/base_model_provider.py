"""Common contract for text-generation backends used by debaters, moderator and judges."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Callable, ClassVar

if TYPE_CHECKING:
    from aidebate.config.settings import ModelConfig, SystemConfig

ChunkCallback = Callable[[str, bool], Awaitable[None]]


class BaseModelProvider(ABC):
    """A backend able to answer chat-style prompts for a configured model.

    Subclasses set ``name`` to the value used in ``ModelConfig.provider``.
    Providers that can stream set ``streaming = True`` and override
    ``generate_response_stream``; the others are streamed as one chunk.
    """

    name: ClassVar[str]
    streaming: ClassVar[bool] = False

    def __init__(self, system_config: "SystemConfig"):
        self.system_config = system_config

    def accepts(self, model_config: "ModelConfig") -> bool:
        return model_config.provider == self.name

    @staticmethod
    def sampling_params(model_config: "ModelConfig", overrides: dict[str, Any]) -> dict[str, Any]:
        """Token limit and temperature, with per-call overrides applied."""
        return {
            "max_tokens": overrides.get("max_tokens", model_config.max_tokens),
            "temperature": overrides.get("temperature", model_config.temperature),
        }

    @abstractmethod
    async def generate_response(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], **overrides: Any
    ) -> str:
        """Return the full reply text."""

    async def generate_response_stream(
        self,
        model_config: "ModelConfig",
        messages: list[dict[str, str]],
        chunk_callback: ChunkCallback,
        **overrides: Any,
    ) -> str:
        """Deliver the reply through ``chunk_callback`` and return it.

        The callback gets ``(delta, False)`` per content piece and a final
        ``("", True)``. Without native streaming the whole reply is one piece.
        """
        text = await self.generate_response(model_config, messages, **overrides)
        if text:
            await chunk_callback(text, False)
        await chunk_callback("", True)
        return text
