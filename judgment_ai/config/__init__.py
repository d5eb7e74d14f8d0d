"""Configuration package."""

from .settings import CoreSettings
from .llm import LLMSettings
from .extraction import (
    DEFAULT_CONFIDENCE_WEIGHTS,
    ExecutionStrategy,
    ExtractionSettings,
    ModelErrorPolicy,
)


def get_settings() -> CoreSettings:
    """Get application settings instance.

    Returns:
        CoreSettings: Application settings loaded from environment
    """
    return CoreSettings()


# Global settings instance
settings = get_settings()

__all__ = [
    "CoreSettings",
    "LLMSettings",
    "ExtractionSettings",
    "ExecutionStrategy",
    "ModelErrorPolicy",
    "DEFAULT_CONFIDENCE_WEIGHTS",
    "get_settings",
    "settings",
]
