"""Extraction pipeline settings."""

from enum import Enum
from pathlib import Path
from typing import Dict, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExecutionStrategy(str, Enum):
    """How the four extraction tasks are scheduled."""
    CONCURRENT = "concurrent"
    SEQUENTIAL = "sequential"


class ModelErrorPolicy(str, Enum):
    """What a ModelError in one task does to the whole record."""
    RAISE = "raise"
    DEFAULT = "default"


# Heuristic point values, not a statistical estimate. Keys name the checks
# performed by ConfidenceScorer; values must sum to 100.
DEFAULT_CONFIDENCE_WEIGHTS: Dict[str, int] = {
    "facts_summary": 20,
    "facts_timeline": 15,
    "evidence_items": 20,
    "evidence_chain_analysis": 15,
    "reasoning_legal_basis": 15,
    "reasoning_judgment": 15,
}


class ExtractionSettings(BaseSettings):
    """Settings for section location, orchestration and scoring."""

    execution_strategy: ExecutionStrategy = Field(
        default=ExecutionStrategy.CONCURRENT,
        description="Run the extraction tasks concurrently or one after another"
    )
    model_error_policy: ModelErrorPolicy = Field(
        default=ModelErrorPolicy.RAISE,
        description="Propagate a task's ModelError or substitute the task default"
    )
    confidence_weights: Dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_CONFIDENCE_WEIGHTS),
        description="Confidence policy table (points per satisfied check)"
    )
    basic_info_max_chars: int = Field(
        default=2000,
        gt=0,
        description="Characters of the document sent for basic-info extraction"
    )
    section_max_chars: int = Field(
        default=12000,
        gt=0,
        description="Characters of a located section sent to the model"
    )
    dispute_strategies: List[str] = Field(
        default_factory=lambda: ["full_text", "focused"],
        description="Prompting strategies merged by the dispute analyzer"
    )

    @field_validator("confidence_weights")
    @classmethod
    def validate_confidence_weights(cls, v: Dict[str, int]) -> Dict[str, int]:
        """Ensure the policy table names known checks and sums to 100."""
        unknown = sorted(set(v) - set(DEFAULT_CONFIDENCE_WEIGHTS))
        if unknown:
            raise ValueError(f"Unknown confidence checks: {unknown}")
        if any(points < 0 for points in v.values()):
            raise ValueError("Confidence weights must be non-negative")
        if sum(v.values()) != 100:
            raise ValueError(f"Confidence weights must sum to 100, got {sum(v.values())}")
        return v

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parent.parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
