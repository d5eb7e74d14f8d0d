"""Test model client factory and chat completion client."""

import pytest
from unittest.mock import AsyncMock, patch

import httpx

from judgment_ai.config.llm import LLMSettings
from judgment_ai.core.base_llm_client import BaseLLMClient
from judgment_ai.core.chat_client import ChatCompletionClient, ModelOptions
from judgment_ai.core.exceptions import ConfigurationError, ModelError, ModelErrorKind
from judgment_ai.core.unified_llm import (
    LLMProvider,
    call_budget_from_settings,
    create_model_client,
    create_model_client_from_settings,
    model_name_from_settings,
)

URL = "https://api.deepseek.com/v1/chat/completions"


def http_response(status_code, **kwargs):
    return httpx.Response(status_code, request=httpx.Request("POST", URL), **kwargs)


def test_create_model_client_factory():
    """Test factory function for a hosted provider."""
    client = create_model_client(
        provider="DeepSeek",
        api_key="test_key",
        model="deepseek-chat",
        base_url=URL,
        timeout=30,
        max_retries=3,
    )

    assert isinstance(client, ChatCompletionClient)
    assert client.model == "deepseek-chat"
    assert client.client.max_retries == 3
    assert client.client.timeout == 30


def test_create_model_client_requires_key():
    """Test that hosted providers need an API key."""
    with pytest.raises(ConfigurationError):
        create_model_client(provider=LLMProvider.OPENROUTER, api_key="  ", model="m", base_url=URL)


def test_ollama_needs_no_key():
    """Test that Ollama works without an API key."""
    settings = LLMSettings(llm_provider="ollama")

    client = create_model_client_from_settings(settings)

    assert client.model == settings.ollama_model
    assert client.base_url == settings.ollama_api_url


def test_unsupported_provider():
    """Test that an unknown provider is a configuration error."""
    with pytest.raises(ConfigurationError):
        create_model_client_from_settings(LLMSettings(llm_provider="gemini"))


def test_model_name_and_call_budget():
    """Test derived settings."""
    settings = LLMSettings(
        llm_provider="openrouter",
        llm_timeout_seconds=30,
        llm_max_retries=3,
        llm_retry_delay=2,
    )

    assert model_name_from_settings(settings) == settings.openrouter_model
    # 3 attempts of 30s plus 2s and 4s of backoff
    assert call_budget_from_settings(settings) == 96.0


@pytest.mark.asyncio
async def test_invoke_model_success():
    """Test a completion round trip through the client."""
    client = ChatCompletionClient(api_key="test_key", model="deepseek-chat", base_url=URL)
    api_response = {
        "model": "deepseek-chat-v3",
        "choices": [{"message": {"role": "assistant", "content": "{\"summary\": \"ok\"}"}}],
        "usage": {"total_tokens": 12},
    }

    with patch.object(client.client, "call_api", AsyncMock(return_value=api_response)) as mock_call:
        response = await client.invoke_model("system", "Task: facts", ModelOptions(temperature=0.1, max_tokens=100))

    assert response.content == "{\"summary\": \"ok\"}"
    assert response.model == "deepseek-chat-v3"
    assert response.usage == {"total_tokens": 12}
    payload = mock_call.call_args.kwargs["payload"]
    assert payload["messages"][0] == {"role": "system", "content": "system"}
    assert payload["messages"][1] == {"role": "user", "content": "Task: facts"}
    assert payload["temperature"] == 0.1
    assert payload["max_tokens"] == 100


@pytest.mark.asyncio
@pytest.mark.parametrize("api_response,kind", [
    ({"choices": [{"message": {"content": "   "}}]}, ModelErrorKind.EMPTY_RESPONSE),
    ({"choices": []}, ModelErrorKind.TRANSPORT),
    ({"error": "overloaded"}, ModelErrorKind.TRANSPORT),
])
async def test_invoke_model_bad_responses(api_response, kind):
    """Test that unusable completions become ModelErrors."""
    client = ChatCompletionClient(api_key="test_key", base_url=URL)

    with patch.object(client.client, "call_api", AsyncMock(return_value=api_response)):
        with pytest.raises(ModelError) as exc_info:
            await client.invoke_model("", "prompt", ModelOptions())

    assert exc_info.value.kind == kind


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code,kind,attempts", [
    (401, ModelErrorKind.AUTH, 1),
    (403, ModelErrorKind.AUTH, 1),
    (400, ModelErrorKind.TRANSPORT, 1),
    (429, ModelErrorKind.RATE_LIMIT, 2),
    (503, ModelErrorKind.TRANSPORT, 2),
])
async def test_http_errors_map_to_kinds(status_code, kind, attempts):
    """Test HTTP status handling and retry counts."""
    client = BaseLLMClient(api_key="test_key", base_url=URL, max_retries=2, retry_delay=0)
    mock_post = AsyncMock(return_value=http_response(status_code, text="error"))

    with patch.object(httpx.AsyncClient, "post", mock_post):
        with pytest.raises(ModelError) as exc_info:
            await client.call_api(payload={})

    assert exc_info.value.kind == kind
    assert mock_post.await_count == attempts


@pytest.mark.asyncio
async def test_timeouts_are_retried():
    """Test that timeouts retry and then surface as TIMEOUT."""
    client = BaseLLMClient(api_key="test_key", base_url=URL, max_retries=3, retry_delay=0)
    mock_post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

    with patch.object(httpx.AsyncClient, "post", mock_post):
        with pytest.raises(ModelError) as exc_info:
            await client.call_api(payload={})

    assert exc_info.value.kind == ModelErrorKind.TIMEOUT
    assert mock_post.await_count == 3


@pytest.mark.asyncio
async def test_retry_recovers():
    """Test that a transient failure followed by success returns the body."""
    client = BaseLLMClient(api_key="test_key", base_url=URL, max_retries=2, retry_delay=0)
    mock_post = AsyncMock(side_effect=[
        httpx.ConnectError("reset"),
        http_response(200, json={"choices": []}),
    ])

    with patch.object(httpx.AsyncClient, "post", mock_post):
        result = await client.call_api(payload={})

    assert result == {"choices": []}


@pytest.mark.asyncio
async def test_undecodable_body():
    """Test that a non-JSON body is a transport error."""
    client = BaseLLMClient(api_key="test_key", base_url=URL, max_retries=1, retry_delay=0)
    mock_post = AsyncMock(return_value=http_response(200, text="<html>gateway</html>"))

    with patch.object(httpx.AsyncClient, "post", mock_post):
        with pytest.raises(ModelError) as exc_info:
            await client.call_api(payload={})

    assert exc_info.value.kind == ModelErrorKind.TRANSPORT
