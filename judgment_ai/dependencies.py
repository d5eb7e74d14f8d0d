"""Centralized dependency injection for FastAPI application.

Services are built per request from settings, so tests can replace any of
them through app.dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends

from judgment_ai.config import ExtractionSettings, LLMSettings
from judgment_ai.core.chat_client import ModelInvoker
from judgment_ai.core.unified_llm import create_model_client_from_settings
from judgment_ai.services.analysis.dispute_analyzer import DisputeAnalyzer
from judgment_ai.services.extraction.orchestrator import ExtractionOrchestrator


def get_llm_settings() -> LLMSettings:
    return LLMSettings()


def get_extraction_settings() -> ExtractionSettings:
    return ExtractionSettings()


def get_model_invoker(
    llm_settings: Annotated[LLMSettings, Depends(get_llm_settings)]
) -> ModelInvoker:
    """Get the model client for the configured provider.

    Raises:
        ConfigurationError: If the provider's API key is missing
    """
    return create_model_client_from_settings(llm_settings)


def get_extraction_orchestrator(
    invoker: Annotated[ModelInvoker, Depends(get_model_invoker)],
    llm_settings: Annotated[LLMSettings, Depends(get_llm_settings)],
    extraction_settings: Annotated[ExtractionSettings, Depends(get_extraction_settings)],
) -> ExtractionOrchestrator:
    """Get an extraction orchestrator for one request.

    Args:
        invoker: Model client from dependency injection
        llm_settings: LLM settings
        extraction_settings: Extraction settings

    Returns:
        ExtractionOrchestrator: Orchestrator bound to the invoker
    """
    return ExtractionOrchestrator.from_settings(
        invoker=invoker,
        llm_settings=llm_settings,
        extraction_settings=extraction_settings,
    )


def get_dispute_analyzer(
    invoker: Annotated[ModelInvoker, Depends(get_model_invoker)],
    llm_settings: Annotated[LLMSettings, Depends(get_llm_settings)],
    extraction_settings: Annotated[ExtractionSettings, Depends(get_extraction_settings)],
) -> DisputeAnalyzer:
    """Get a dispute analyzer for one request."""
    return DisputeAnalyzer.from_settings(
        invoker=invoker,
        llm_settings=llm_settings,
        extraction_settings=extraction_settings,
    )
