from typing import Optional

from pydantic import BaseModel, Field


class HealthCheckResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Service status
        version: Application version
        service: Service name
        llm_provider: Configured model provider
    """

    status: str = Field(
        default="healthy",
        description="Service health status",
        examples=["healthy", "degraded"],
    )
    version: str = Field(
        ...,
        description="Application version",
        examples=["0.1.0"],
    )
    service: str = Field(
        ...,
        description="Service name",
        examples=["Judgment AI - structured extraction for legal judgments"],
    )
    llm_provider: str = Field(
        default="",
        description="Configured language-model provider",
        examples=["deepseek"],
    )


class ErrorResponse(BaseModel):
    """Error response model.

    Attributes:
        error: Error type/category
        message: Human-readable error message
        task: Extraction task the error is attributed to, for model errors
        kind: Model failure category, for model errors
    """

    error: str = Field(
        ...,
        description="Error type or category",
        examples=["ModelError", "EmptyDocumentError"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["API Timeout after 2 attempts"],
    )
    task: Optional[str] = Field(
        default=None,
        description="Failed extraction task",
        examples=["facts"],
    )
    kind: Optional[str] = Field(
        default=None,
        description="Model failure category",
        examples=["timeout", "auth", "rate_limit", "transport", "empty_response"],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": "ModelError",
                    "message": "API Timeout after 2 attempts",
                    "task": "facts",
                    "kind": "timeout",
                }
            ]
        }
    }
