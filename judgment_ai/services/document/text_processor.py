"""Judgment text preprocessing.

Normalizes raw judgment text (line endings, spacing, page-footer noise) and
detects the conventional headings of a Chinese court judgment so that later
stages work on stable character offsets.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Pattern, Sequence, Tuple, Union

from judgment_ai.core.exceptions import EmptyDocumentError
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Canonical order of judgment sections. A section ends where the nearest
# later-starting detected section begins.
SECTION_ORDER: Tuple[str, ...] = (
    "header",
    "parties",
    "claims",
    "trial",
    "facts",
    "arguments",
    "evidence",
    "reasoning",
    "judgment",
    "ending",
)

SECTION_PATTERNS: Dict[str, Tuple[Pattern, ...]] = {
    "parties": (
        re.compile(r"^(?:上诉人|被上诉人|原告|被告|第三人|申请人|被申请人|申请执行人|被执行人)"),
        re.compile(r"^法定代表人[:：]"),
    ),
    "claims": (
        re.compile(r"^(?:上诉人|被上诉人).*(?:请求|诉讼请求|上诉请求|主张)"),
        re.compile(r"^(?:原告|被告).*?(?:请求|诉称|主张)"),
        re.compile(r"^诉讼请求[:：]"),
    ),
    "trial": (
        re.compile(r"^本案立案后"),
        re.compile(r"^本院立案后"),
        re.compile(r"^依法组成合议庭"),
        re.compile(r"^本案现已审理终结"),
        re.compile(r"^依照法定程序"),
    ),
    "facts": (
        re.compile(r"^经审理查明"),
        re.compile(r"^本院查明"),
        re.compile(r"^查明"),
        re.compile(r"^经查明"),
        re.compile(r"^一审法院认定的事实"),
    ),
    "arguments": (
        re.compile(r"^(?:上诉人|被上诉人).*(?:理由|辩称|抗辩|答辩)"),
        re.compile(r"^上诉理由[:：]"),
        re.compile(r"^被上诉人辩称"),
        re.compile(r"^原审被告辩称"),
        re.compile(r"^(?:被告|原审被告|第三人).*?(?:辩称|答辩称)"),
    ),
    "evidence": (
        re.compile(r"^证据[:：]"),
        re.compile(r"^证据[一二三四五六七八九十]+[:：]"),
        re.compile(r"^质证意见"),
        re.compile(r"^经质证"),
        re.compile(r"^上述事实.*证据"),
    ),
    "reasoning": (
        re.compile(r"^本院认为"),
        re.compile(r"^经本院审理认为"),
        re.compile(r"^本院审理后认为"),
        re.compile(r"^合议庭认为"),
    ),
    "judgment": (
        re.compile(r"^判决如下"),
        re.compile(r"^裁定如下"),
        re.compile(r"^决定如下"),
        re.compile(r"^综上所述，根据.*判决如下"),
        re.compile(r"^依照.*(?:判决|裁定)如下"),
    ),
    "ending": (
        re.compile(r"^本判决为终审判决"),
        re.compile(r"^本裁定为终审裁定"),
        re.compile(r"^审判长"),
        re.compile(r"^审判员"),
        re.compile(r"^人民陪审员"),
        re.compile(r"^书记员"),
        re.compile(r"^\d{4}年\d{1,2}月\d{1,2}日$"),
    ),
}

_PAGE_NOISE = (
    re.compile(r"^第\s*[\d一二三四五六七八九十百千万]+\s*[页頁]$"),
    re.compile(r"^第\s*\d+\s*[页頁]\s*[/／]?\s*共\s*\d+\s*[页頁]$"),
    re.compile(r"^——+\s*\d+\s*——+$"),
    re.compile(r"^-+\s*\d+\s*-+$"),
    re.compile(r"^Page\s+\d+(?:\s+of\s+\d+)?$", re.IGNORECASE),
)
_CJK_GAP = re.compile(r"(?<=[一-鿿])[ \t]+(?=[一-鿿])")
_MULTI_SPACE = re.compile(r" {2,}")


@dataclass(frozen=True)
class Section:
    """A contiguous region of the normalized document.

    Attributes:
        name: Logical section name (facts, reasoning, ...)
        start: Start offset into the normalized text (inclusive)
        end: End offset into the normalized text (exclusive)
        text: normalized_text[start:end]
        found: False when no heading matched and the section is the whole
            document fallback
        degenerate: True when the section had to be clamped to the end of
            the document because boundary headings appear out of order
        matched_keyword: Heading keyword that opened the section
    """
    name: str
    start: int
    end: int
    text: str
    found: bool = True
    degenerate: bool = False
    matched_keyword: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return not self.found

    def __len__(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class DocumentStats:
    original_length: int
    normalized_length: int
    section_count: int


@dataclass(frozen=True)
class Document:
    """One judgment, immutable once produced.

    Attributes:
        raw_text: Text as received
        normalized_text: Canonicalized text all offsets refer to
        sections: Detected sections keyed by name; missing keys are absent
            sections
        stats: Length and section statistics
    """
    raw_text: str
    normalized_text: str
    sections: Mapping[str, Section] = field(default_factory=lambda: MappingProxyType({}))
    stats: Optional[DocumentStats] = None

    @classmethod
    def from_text(cls, raw_text: str) -> "Document":
        """Normalize raw text and detect its sections."""
        return process_judgment_text(raw_text)

    @property
    def is_blank(self) -> bool:
        return not self.normalized_text.strip()

    def get_section(self, name: str) -> Optional[Section]:
        """Return the detected section `name`, or None if it is absent."""
        return self.sections.get(name)

    def __len__(self) -> int:
        return len(self.normalized_text)


def process_judgment_text(raw_text: str) -> Document:
    """Normalize text and detect key sections.

    Args:
        raw_text: Judgment text as received

    Returns:
        Document with normalized text, detected sections and stats
    """
    raw_text = raw_text or ""
    normalized = normalize_text(raw_text)
    sections = detect_sections(normalized)

    stats = DocumentStats(
        original_length=len(raw_text),
        normalized_length=len(normalized),
        section_count=len(sections),
    )

    LOGGER.debug(
        "Processed judgment text",
        extra={
            "original_length": stats.original_length,
            "normalized_length": stats.normalized_length,
            "sections": list(sections),
        }
    )

    return Document(
        raw_text=raw_text,
        normalized_text=normalized,
        sections=MappingProxyType(sections),
        stats=stats,
    )


def normalize_text(raw: str) -> str:
    """Canonicalize judgment text.

    - Unify line breaks and spaces (CRLF, full-width space, tabs)
    - Drop page header/footer lines ("第1页", "—— 2 ——", "Page 3")
    - Re-join CJK headings split by spaces ("民 事 判 决 书")
    - Collapse space runs, trim lines, keep at most one blank line

    Args:
        raw: Raw text

    Returns:
        Normalized text
    """
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("　", " ").replace("\t", " ")

    kept_lines = []
    for line in text.split("\n"):
        trimmed = line.strip()
        if trimmed and any(pattern.match(trimmed) for pattern in _PAGE_NOISE):
            continue
        kept_lines.append(line)
    text = "\n".join(kept_lines)

    text = _CJK_GAP.sub("", text)
    text = _MULTI_SPACE.sub(" ", text)

    normalized_lines: List[str] = []
    previous_blank = False
    for line in text.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            if not previous_blank:
                normalized_lines.append("")
                previous_blank = True
            continue
        normalized_lines.append(trimmed)
        previous_blank = False

    return "\n".join(normalized_lines).strip()


def detect_sections(normalized: str) -> Dict[str, Section]:
    """Locate judgment sections by line-anchored heading patterns.

    Args:
        normalized: Output of normalize_text

    Returns:
        Mapping of section name to Section, in SECTION_ORDER; only detected
        sections are present
    """
    if not normalized:
        return {}

    lines = normalized.split("\n")
    line_offsets = _line_offsets(lines)

    start_lines: Dict[str, int] = {"header": 0}
    for index, line in enumerate(lines):
        for label in SECTION_ORDER[1:]:
            if label in start_lines:
                continue
            if any(pattern.search(line) for pattern in SECTION_PATTERNS[label]):
                start_lines[label] = index
                break

    sections: Dict[str, Section] = {}
    for label in SECTION_ORDER:
        start_line = start_lines.get(label)
        if start_line is None:
            continue

        later_starts = [line for line in start_lines.values() if line > start_line]
        end_line = min(later_starts) if later_starts else len(lines)

        start = line_offsets[start_line]
        end = line_offsets[end_line] - 1 if end_line < len(lines) else len(normalized)
        chunk = normalized[start:end]
        stripped = chunk.strip()
        if not stripped:
            continue

        # Keep offsets pointing at the trimmed text
        start += len(chunk) - len(chunk.lstrip())
        end = start + len(stripped)
        sections[label] = Section(
            name=label,
            start=start,
            end=end,
            text=stripped,
            matched_keyword=lines[start_line][:12],
        )

    return sections


def _line_offsets(lines: Sequence[str]) -> List[int]:
    """Character offset at which each line starts, plus one past the end."""
    offsets = []
    position = 0
    for line in lines:
        offsets.append(position)
        position += len(line) + 1
    offsets.append(position)
    return offsets


def prepare_document(document: Union[Document, str]) -> Document:
    """Accept raw text or a Document and reject blank input.

    Raises:
        EmptyDocumentError: If the text is empty or whitespace-only
    """
    if not isinstance(document, Document):
        document = process_judgment_text(document or "")
    if document.is_blank:
        raise EmptyDocumentError("Judgment text is empty")
    return document
