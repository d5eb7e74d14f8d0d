"""Pydantic request models for extraction API endpoints."""

from pydantic import BaseModel, Field


class JudgmentTextRequest(BaseModel):
    """Request model carrying one judgment.

    Attributes:
        text: Full judgment text
    """

    text: str = Field(
        ...,
        description="Full text of the judgment (UTF-8)",
        examples=["北京市第一中级人民法院\n民事判决书\n(2024)京01民初123号\n……"],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "text": "北京市第一中级人民法院\n民事判决书\n(2024)京01民初123号\n经审理查明，……\n本院认为，……\n判决如下：……",
                }
            ]
        }
    }
