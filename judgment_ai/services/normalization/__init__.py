"""Response normalization."""

from .response_normalizer import (
    RepairAction,
    RepairKind,
    ResponseNormalizer,
    ValidationOutcome,
)

__all__ = ["RepairAction", "RepairKind", "ResponseNormalizer", "ValidationOutcome"]
