"""Language-model provider settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """LLM provider and invocation settings."""

    # LLM Provider Configuration
    llm_provider: str = Field(
        default="deepseek",
        description="LLM provider to use: 'deepseek', 'openrouter' or 'ollama'"
    )

    # DeepSeek API Configuration
    deepseek_api_key: str = Field(
        default="",
        description="DeepSeek API key (required if llm_provider='deepseek')"
    )
    deepseek_api_url: str = Field(
        default="https://api.deepseek.com/v1/chat/completions",
        description="DeepSeek chat completions URL"
    )
    deepseek_model: str = Field(
        default="deepseek-chat",
        description="DeepSeek model name"
    )

    # OpenRouter API Configuration
    openrouter_api_key: str = Field(
        default="",
        description="OpenRouter API key (required if llm_provider='openrouter')"
    )
    openrouter_api_url: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions",
        description="OpenRouter API base URL"
    )
    openrouter_model: str = Field(
        default="deepseek/deepseek-chat",
        description="OpenRouter model name"
    )

    # Ollama Configuration (OpenAI-compatible endpoint)
    ollama_api_url: str = Field(
        default="http://localhost:11434/v1/chat/completions",
        description="Ollama OpenAI-compatible chat completions URL"
    )
    ollama_model: str = Field(
        default="qwen3:8b",
        description="Ollama model name"
    )

    # Invocation Configuration
    llm_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for extraction calls"
    )
    llm_max_tokens: int = Field(
        default=4000,
        gt=0,
        description="Maximum completion tokens per call"
    )
    llm_timeout_seconds: int = Field(
        default=90,
        gt=0,
        description="Time budget for a single model call in seconds"
    )
    llm_max_retries: int = Field(
        default=2,
        ge=1,
        description="Transport-level attempts inside the HTTP client"
    )
    llm_retry_delay: int = Field(
        default=2,
        ge=0,
        description="Base delay in seconds for exponential backoff"
    )

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parent.parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
