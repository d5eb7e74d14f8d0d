"""Keyword-based section localization."""

from typing import Iterable, Sequence, Tuple, Union

from judgment_ai.services.document.text_processor import Document, Section
from judgment_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Headings that conventionally follow a facts/evidence/reasoning block
DEFAULT_BOUNDARY_KEYWORDS: Tuple[str, ...] = (
    "本院认为",
    "综上所述",
    "判决如下",
    "裁定如下",
    "审判长",
    "审判员",
    "书记员",
)


class SectionLocator:
    """Finds the region of a judgment most likely to answer one task.

    The section starts at the first occurrence of the highest-priority
    keyword present and ends at the nearest boundary heading after that
    keyword. When no keyword matches, the whole document is returned with
    found=False so callers always have text to work with.
    """

    def __init__(self, boundary_keywords: Iterable[str] = DEFAULT_BOUNDARY_KEYWORDS):
        self.boundary_keywords = tuple(boundary_keywords)

    def locate(
        self,
        document: Union[Document, str],
        keywords: Sequence[str],
        name: str = "section",
    ) -> Section:
        """Locate a section.

        Args:
            document: Document, or already-normalized text
            keywords: Candidate headings in priority order
            name: Logical name stored on the returned Section

        Returns:
            Section with offsets into the normalized text
        """
        text = document.normalized_text if isinstance(document, Document) else document

        for keyword in keywords:
            if not keyword:
                continue
            start = text.find(keyword)
            if start == -1:
                continue

            end = self._find_boundary(text, start + len(keyword))
            degenerate = False
            if end is None:
                end = len(text)
                degenerate = self._has_boundary_before(text, start)
                if degenerate:
                    LOGGER.warning(
                        f"Section '{name}' has boundary headings only before its start; "
                        f"using document end",
                        extra={"section": name, "keyword": keyword, "start": start}
                    )

            LOGGER.debug(
                f"Located section '{name}' via '{keyword}'",
                extra={"section": name, "start": start, "end": end, "length": end - start}
            )
            return Section(
                name=name,
                start=start,
                end=end,
                text=text[start:end],
                found=True,
                degenerate=degenerate,
                matched_keyword=keyword,
            )

        LOGGER.debug(
            f"No keyword matched for section '{name}', falling back to full document",
            extra={"section": name, "length": len(text)}
        )
        return Section(name=name, start=0, end=len(text), text=text, found=False)

    def _find_boundary(self, text: str, offset: int):
        positions = [
            position
            for position in (text.find(boundary, offset) for boundary in self.boundary_keywords)
            if position != -1
        ]
        return min(positions) if positions else None

    def _has_boundary_before(self, text: str, start: int) -> bool:
        return any(0 <= text.find(boundary) < start for boundary in self.boundary_keywords)
