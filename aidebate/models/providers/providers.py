from typing import TYPE_CHECKING

from .base_model_provider import BaseModelProvider
from .ollama_provider import OllamaProvider
from .open_router_provider import OpenRouterProvider

if TYPE_CHECKING:
    from aidebate.config.settings import SystemConfig


class ProviderFactory:
    """Maps ``ModelConfig.provider`` names to provider classes."""

    _registry: dict[str, type[BaseModelProvider]] = {
        provider.name: provider for provider in (OllamaProvider, OpenRouterProvider)
    }

    @classmethod
    def create_provider(cls, name: str, system_config: "SystemConfig") -> BaseModelProvider:
        try:
            provider_class = cls._registry[name]
        except KeyError:
            raise ValueError(
                f"Unknown provider: {name}. Known providers: {sorted(cls._registry)}"
            ) from None
        return provider_class(system_config)
