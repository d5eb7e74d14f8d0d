"""Document preprocessing."""

from .text_processor import (
    Document,
    DocumentStats,
    Section,
    detect_sections,
    prepare_document,
    normalize_text,
    process_judgment_text,
)

__all__ = [
    "Document",
    "DocumentStats",
    "Section",
    "detect_sections",
    "prepare_document",
    "normalize_text",
    "process_judgment_text",
]
