"""Judgment extraction pipeline."""

from .confidence import ConfidenceScorer
from .field_extractor import FieldExtractor
from .orchestrator import ExtractionOrchestrator
from .response_merger import (
    DISPUTE_COLLECTIONS,
    EntityCollection,
    MergedEntity,
    MergedRecordSet,
    ResponseMerger,
)
from .section_locator import DEFAULT_BOUNDARY_KEYWORDS, SectionLocator
from .tasks import TASK_DEFINITIONS, TASK_ORDER, ExtractionTask, TaskDefinition

__all__ = [
    "ConfidenceScorer",
    "DEFAULT_BOUNDARY_KEYWORDS",
    "DISPUTE_COLLECTIONS",
    "EntityCollection",
    "ExtractionOrchestrator",
    "ExtractionTask",
    "FieldExtractor",
    "MergedEntity",
    "MergedRecordSet",
    "ResponseMerger",
    "SectionLocator",
    "TASK_DEFINITIONS",
    "TASK_ORDER",
    "TaskDefinition",
]
