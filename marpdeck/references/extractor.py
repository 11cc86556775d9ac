"""
Citation extraction from presentation content.

Finds ``[@id]`` groups in every string of a slide's content (recursively),
structured ``source: "@id"`` values, and speaker notes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from marpdeck.core.models import Presentation, Slide
from marpdeck.references.formatter import CITATION_BRACKET_PATTERN, SINGLE_CITATION_PATTERN

SOURCE_CITATION_PATTERN = re.compile(r"^@([\w-]+)$")


@dataclass
class ExtractedCitation:
    id: str
    start: int
    end: int
    locator: Optional[str] = None


class CitationExtractor:

    def extract(self, text: str) -> List[ExtractedCitation]:
        """All citations of all bracket groups in ``text``."""
        citations = []
        for group in CITATION_BRACKET_PATTERN.finditer(text):
            for m in SINGLE_CITATION_PATTERN.finditer(group.group(1)):
                locator = (m.group(2) or "").strip() or None
                citations.append(
                    ExtractedCitation(id=m.group(1), start=group.start(), end=group.end(), locator=locator)
                )
        return citations

    def extract_from_slide(self, slide: Slide) -> List[ExtractedCitation]:
        """Citations of one slide, first occurrence of each id only."""
        found: List[ExtractedCitation] = []
        self._walk(slide.content, found)
        if slide.notes:
            found.extend(self.extract(slide.notes))
        return _first_per_id(found)

    def extract_from_presentation(self, presentation: Presentation) -> List[ExtractedCitation]:
        found: List[ExtractedCitation] = []
        for slide in presentation.slides:
            found.extend(self.extract_from_slide(slide))
        return _first_per_id(found)

    @staticmethod
    def unique_ids(citations: Iterable[ExtractedCitation]) -> List[str]:
        """Citation ids in order of first appearance."""
        return list(dict.fromkeys(c.id for c in citations))

    def _walk(self, value: Any, found: List[ExtractedCitation]) -> None:
        if isinstance(value, str):
            source = SOURCE_CITATION_PATTERN.match(value)
            if source:
                found.append(ExtractedCitation(id=source.group(1), start=0, end=len(value)))
            else:
                found.extend(self.extract(value))
        elif isinstance(value, list):
            for item in value:
                self._walk(item, found)
        elif isinstance(value, dict):
            for item in value.values():
                self._walk(item, found)


def _first_per_id(citations: List[ExtractedCitation]) -> List[ExtractedCitation]:
    seen = set()
    unique = []
    for citation in citations:
        if citation.id not in seen:
            seen.add(citation.id)
            unique.append(citation)
    return unique
