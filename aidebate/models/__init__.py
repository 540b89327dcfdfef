"""Text-generation model management."""

from .manager import ModelManager, build_model_manager

__all__ = ["ModelManager", "build_model_manager"]
