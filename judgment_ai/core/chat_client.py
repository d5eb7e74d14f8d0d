"""Chat-completions model client.

Defines the model-invocation contract used by the extraction pipeline and an
implementation for OpenAI-compatible chat completion endpoints (DeepSeek,
OpenRouter, Ollama).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

from judgment_ai.core.base_llm_client import BaseLLMClient
from judgment_ai.core.exceptions import ModelError, ModelErrorKind
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ModelOptions:
    """Per-call generation options."""
    temperature: float = 0.3
    max_tokens: int = 4000


@dataclass(frozen=True)
class ModelResponse:
    """Raw text returned by the model.

    Attributes:
        content: Message content, never empty
        model: Model name reported by the provider
        usage: Token usage block, if the provider sent one
    """
    content: str
    model: str = ""
    usage: Dict[str, Any] = field(default_factory=dict)


class ModelInvoker(ABC):
    """Contract for anything that can answer a prompt pair."""

    @abstractmethod
    async def invoke_model(
        self,
        system_prompt: str,
        user_prompt: str,
        options: ModelOptions,
    ) -> ModelResponse:
        """Send one prompt pair to the model.

        Raises:
            ModelError: On timeout, auth, rate-limit, transport failure or an
                empty response
        """


class ChatCompletionClient(ModelInvoker):
    """Client for OpenAI-compatible `/chat/completions` endpoints."""

    def __init__(
        self,
        api_key: str,
        model: str = "deepseek-chat",
        base_url: str = "https://api.deepseek.com/v1/chat/completions",
        timeout: int = 90,
        max_retries: int = 2,
        retry_delay: int = 2,
    ):
        """Initialize chat completion client.

        Args:
            api_key: Provider API key
            model: Model name to use (e.g., "deepseek-chat")
            base_url: Full chat completions URL
            timeout: Request timeout in seconds
            max_retries: Maximum transport attempts
            retry_delay: Base delay for exponential backoff
        """
        self.model = model
        self.base_url = base_url
        self.timeout = timeout

        self.client = BaseLLMClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            retry_delay=retry_delay,
        )

        LOGGER.info(f"Initialized chat completion client with model {self.model}")

    def _build_messages(self, system_prompt: str, user_prompt: str) -> List[Dict[str, str]]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        return messages

    async def invoke_model(
        self,
        system_prompt: str,
        user_prompt: str,
        options: ModelOptions,
    ) -> ModelResponse:
        """Generate a completion for one prompt pair.

        Args:
            system_prompt: System instruction
            user_prompt: User message
            options: Temperature and token budget

        Returns:
            ModelResponse with non-empty content

        Raises:
            ModelError: If the call fails or the provider returns no content
        """
        payload = {
            "model": self.model,
            "messages": self._build_messages(system_prompt, user_prompt),
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }

        response = await self.client.call_api(payload=payload)

        choices = response.get("choices") if isinstance(response, dict) else None
        if not choices:
            LOGGER.error(f"Unexpected chat completion response format: {str(response)[:500]}")
            raise ModelError(
                "Invalid response format from chat completion API",
                kind=ModelErrorKind.TRANSPORT,
            )

        message = choices[0].get("message") or {}
        content = message.get("content") or ""

        if not content.strip():
            LOGGER.warning("Empty response from chat completion API", extra={"model": self.model})
            raise ModelError(
                "Model returned empty content",
                kind=ModelErrorKind.EMPTY_RESPONSE,
            )

        return ModelResponse(
            content=content,
            model=response.get("model", self.model),
            usage=response.get("usage") or {},
        )
