"""Model client factory.

Selects API key, model and endpoint for the configured provider and returns a
ModelInvoker. All supported providers speak the chat completions protocol.
"""

from enum import Enum
from typing import Union

from judgment_ai.config.llm import LLMSettings
from judgment_ai.core.chat_client import ChatCompletionClient, ModelOptions
from judgment_ai.core.exceptions import ConfigurationError
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    DEEPSEEK = "deepseek"
    OPENROUTER = "openrouter"
    OLLAMA = "ollama"


def create_model_client(
    provider: Union[str, LLMProvider],
    api_key: str,
    model: str,
    base_url: str,
    timeout: int = 90,
    max_retries: int = 2,
    retry_delay: int = 2,
) -> ChatCompletionClient:
    """Create a chat completion client for a provider.

    Args:
        provider: LLM provider to use
        api_key: API key (ignored by Ollama)
        model: Model name to use
        base_url: Chat completions URL
        timeout: Request timeout in seconds
        max_retries: Maximum transport attempts
        retry_delay: Base delay for exponential backoff

    Returns:
        ChatCompletionClient instance

    Raises:
        ConfigurationError: If a hosted provider has no API key
    """
    provider_enum = LLMProvider(provider.lower() if isinstance(provider, str) else provider)
    api_key = api_key.strip() if isinstance(api_key, str) else api_key

    if provider_enum != LLMProvider.OLLAMA and not api_key:
        raise ConfigurationError(
            f"api key required when provider='{provider_enum.value}'. "
            f"Please set {provider_enum.value.upper()}_API_KEY environment variable."
        )

    LOGGER.info(f"Creating model client for provider {provider_enum.value} (model: {model})")

    return ChatCompletionClient(
        # Ollama ignores the key but the header is still sent
        api_key=api_key or "ollama",
        model=model,
        base_url=base_url,
        timeout=timeout,
        max_retries=max_retries,
        retry_delay=retry_delay,
    )


def create_model_client_from_settings(settings: LLMSettings) -> ChatCompletionClient:
    """Create a model client from LLM settings.

    Args:
        settings: Loaded LLMSettings

    Returns:
        ChatCompletionClient configured for settings.llm_provider

    Raises:
        ConfigurationError: If the provider is unknown or its key is missing
    """
    try:
        provider = LLMProvider(settings.llm_provider.lower())
    except ValueError as e:
        raise ConfigurationError(f"Unsupported provider: {settings.llm_provider}", original_error=e)

    if provider == LLMProvider.DEEPSEEK:
        api_key, model, url = settings.deepseek_api_key, settings.deepseek_model, settings.deepseek_api_url
    elif provider == LLMProvider.OPENROUTER:
        api_key, model, url = settings.openrouter_api_key, settings.openrouter_model, settings.openrouter_api_url
    else:
        api_key, model, url = "", settings.ollama_model, settings.ollama_api_url

    return create_model_client(
        provider=provider,
        api_key=api_key,
        model=model,
        base_url=url,
        timeout=settings.llm_timeout_seconds,
        max_retries=settings.llm_max_retries,
        retry_delay=settings.llm_retry_delay,
    )


def model_options_from_settings(settings: LLMSettings) -> ModelOptions:
    """Build per-call generation options from LLM settings."""
    return ModelOptions(
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )


def model_name_from_settings(settings: LLMSettings) -> str:
    """Return the model name for the configured provider."""
    provider = settings.llm_provider.lower()
    if provider == LLMProvider.OPENROUTER.value:
        return settings.openrouter_model
    if provider == LLMProvider.OLLAMA.value:
        return settings.ollama_model
    return settings.deepseek_model


def call_budget_from_settings(settings: LLMSettings) -> float:
    """Upper bound in seconds for one model call including client retries."""
    attempts = max(1, settings.llm_max_retries)
    backoff = settings.llm_retry_delay * (2 ** (attempts - 1) - 1)
    return float(settings.llm_timeout_seconds * attempts + backoff)
