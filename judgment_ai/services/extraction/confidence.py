"""Heuristic confidence score for an extracted record.

The score is a weighted count of sub-parts filled from real model output.
It is not a statistical estimate; the weights are a tunable policy table
(see ExtractionSettings.confidence_weights).
"""

from typing import Callable, Dict, Mapping, Optional

from judgment_ai.config.extraction import DEFAULT_CONFIDENCE_WEIGHTS
from judgment_ai.core.exceptions import ConfigurationError
from judgment_ai.services.extraction.tasks import ExtractionTask
from judgment_ai.services.normalization.response_normalizer import ValidationOutcome

Outcomes = Mapping[ExtractionTask, ValidationOutcome]


def _non_empty_text(outcome: ValidationOutcome, field: str) -> bool:
    value = outcome.value.get(field)
    return isinstance(value, str) and bool(value.strip()) and not outcome.was_defaulted(field)


def _non_empty_list(outcome: ValidationOutcome, field: str) -> bool:
    value = outcome.value.get(field)
    return isinstance(value, list) and len(value) > 0


def _supplied(outcome: ValidationOutcome, field: str) -> bool:
    return not outcome.was_defaulted(field)


_CHECKS: Dict[str, Callable[[Outcomes], bool]] = {
    "facts_summary": lambda o: _non_empty_text(o[ExtractionTask.FACTS], "summary"),
    "facts_timeline": lambda o: _non_empty_list(o[ExtractionTask.FACTS], "timeline"),
    "evidence_items": lambda o: _non_empty_list(o[ExtractionTask.EVIDENCE], "items"),
    "evidence_chain_analysis": lambda o: _supplied(o[ExtractionTask.EVIDENCE], "chainAnalysis"),
    "reasoning_legal_basis": lambda o: _non_empty_list(o[ExtractionTask.REASONING], "legalBasis"),
    "reasoning_judgment": lambda o: _non_empty_text(o[ExtractionTask.REASONING], "judgment"),
}


class ConfidenceScorer:
    """Scores task outcomes on a 0-100 scale."""

    def __init__(self, weights: Optional[Mapping[str, int]] = None):
        """Initialize the scorer.

        Args:
            weights: Points per check; defaults to DEFAULT_CONFIDENCE_WEIGHTS

        Raises:
            ConfigurationError: If checks are unknown, weights are negative or
                they do not sum to 100
        """
        weights = dict(DEFAULT_CONFIDENCE_WEIGHTS if weights is None else weights)

        unknown = sorted(set(weights) - set(_CHECKS))
        if unknown:
            raise ConfigurationError(f"Unknown confidence checks: {unknown}")
        if any(points < 0 for points in weights.values()):
            raise ConfigurationError("Confidence weights must be non-negative")
        if sum(weights.values()) != 100:
            raise ConfigurationError(f"Confidence weights must sum to 100, got {sum(weights.values())}")

        self.weights = weights

    def evaluate(self, outcomes: Outcomes) -> Dict[str, bool]:
        """Return which checks the outcomes satisfy."""
        return {name: _CHECKS[name](outcomes) for name in self.weights}

    def score(self, outcomes: Outcomes) -> int:
        """Sum the points of every satisfied check."""
        return sum(self.weights[name] for name, passed in self.evaluate(outcomes).items() if passed)
