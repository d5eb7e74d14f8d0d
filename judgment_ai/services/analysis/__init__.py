"""Dispute analysis services."""

from .dispute_analyzer import DisputeAnalyzer

__all__ = ["DisputeAnalyzer"]
