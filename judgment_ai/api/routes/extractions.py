"""Judgment extraction API endpoints."""

from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, status

from judgment_ai.dependencies import get_dispute_analyzer, get_extraction_orchestrator
from judgment_ai.models.request.extraction import JudgmentTextRequest
from judgment_ai.models.response.response import ErrorResponse
from judgment_ai.schemas.legal_record import StructuredLegalRecord
from judgment_ai.services.analysis.dispute_analyzer import DisputeAnalyzer
from judgment_ai.services.extraction.orchestrator import ExtractionOrchestrator
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    422: {"description": "Empty judgment text", "model": ErrorResponse},
    500: {"description": "Model provider not configured", "model": ErrorResponse},
    502: {"description": "Model call failed", "model": ErrorResponse},
}


@router.post(
    "/extractions",
    status_code=status.HTTP_200_OK,
    response_model=StructuredLegalRecord,
    response_model_by_alias=True,
    responses=_ERROR_RESPONSES,
    summary="Extract a structured record from a judgment",
    description="Run basic-info, facts, evidence and reasoning extraction and return one fully-populated record.",
    operation_id="extract_judgment_record",
)
async def extract_record(
    request: JudgmentTextRequest,
    orchestrator: Annotated[ExtractionOrchestrator, Depends(get_extraction_orchestrator)],
) -> StructuredLegalRecord:
    """Extract a StructuredLegalRecord.

    Args:
        request: Judgment text
        orchestrator: Orchestrator from dependency injection

    Returns:
        StructuredLegalRecord: Record with every field populated
    """
    LOGGER.info("Received extraction request", extra={"text_length": len(request.text)})
    return await orchestrator.extract_record(request.text)


@router.post(
    "/disputes",
    status_code=status.HTTP_200_OK,
    responses=_ERROR_RESPONSES,
    summary="Analyze dispute focuses of a judgment",
    description="Run every configured prompting strategy and merge the dispute focuses they find.",
    operation_id="analyze_judgment_disputes",
)
async def analyze_disputes(
    request: JudgmentTextRequest,
    analyzer: Annotated[DisputeAnalyzer, Depends(get_dispute_analyzer)],
) -> Dict[str, Any]:
    """Analyze dispute focuses.

    Args:
        request: Judgment text
        analyzer: Dispute analyzer from dependency injection

    Returns:
        dict: Merged dispute response (success, disputes, claimBasisMappings,
            metadata, warnings)
    """
    LOGGER.info("Received dispute analysis request", extra={"text_length": len(request.text)})
    merged = await analyzer.analyze(request.text)
    return merged.to_dict()
