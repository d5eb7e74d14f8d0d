"""Health check API endpoints."""

from fastapi import APIRouter

from judgment_ai.config import LLMSettings, settings
from judgment_ai.core.unified_llm import LLMProvider
from judgment_ai.models.response.response import HealthCheckResponse
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health check endpoint",
    description="Check if the service is running and a model provider is configured",
    operation_id="get_service_health_status",
)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint.

    Reports "degraded" when the selected hosted provider has no API key.
    """
    llm_settings = LLMSettings()
    provider = llm_settings.llm_provider.lower()

    configured = True
    if provider == LLMProvider.DEEPSEEK.value:
        configured = bool(llm_settings.deepseek_api_key)
    elif provider == LLMProvider.OPENROUTER.value:
        configured = bool(llm_settings.openrouter_api_key)

    if not configured:
        LOGGER.warning(f"No API key configured for provider {provider}")

    return HealthCheckResponse(
        status="healthy" if configured else "degraded",
        version=settings.app_version,
        service=settings.app_name,
        llm_provider=provider,
    )
