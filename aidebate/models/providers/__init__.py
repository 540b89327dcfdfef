"""Backends that turn chat prompts into debate text."""

from .base_model_provider import BaseModelProvider
from .exceptions import ProviderRateLimitError
from .providers import ProviderFactory

__all__ = ["BaseModelProvider", "ProviderFactory", "ProviderRateLimitError"]
