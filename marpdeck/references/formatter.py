"""
Citation formatting.

Inline form:  ``(Smith et al., 2024; PMID: 12345678)``
Text form:    ``[@smith2024, p. 4; @doe2023]`` groups inside free text are
              replaced by the inline form of each citation.

Unknown ids never fail a call: they render as ``[id]`` so the author sees
which citation is missing in the compiled deck.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from marpdeck.references.csl import (
    CSLItem,
    format_full_entry,
    get_authors,
    get_first_author_family,
    get_identifier,
    get_year,
    is_japanese_authors,
)
from marpdeck.references.source import ReferenceSource

logger = logging.getLogger(__name__)

# [@id], [@id, p. 42], [@id1; @id2, ch. 3]
CITATION_BRACKET_PATTERN = re.compile(
    r"\[(@[\w-]+(?:,\s*[^;\]]+)?(?:;\s*@[\w-]+(?:,\s*[^;\]]+)?)*)\]"
)
SINGLE_CITATION_PATTERN = re.compile(r"@([\w-]+)(?:,\s*([^;\]]+))?")

BIBLIOGRAPHY_SORTS = ("citation-order", "author", "year")


@dataclass
class FormatterConfig:
    """Inline citation formatting options."""
    max_authors: int = 2
    et_al: str = "et al."
    et_al_ja: str = "ほか"
    separator_ja: str = "・"
    author_sep: str = ", "
    identifier_sep: str = "; "
    multi_sep: str = ", "


def unknown_citation(ref_id: str) -> str:
    return f"[{ref_id}]"


class CitationFormatter:
    """Formats citations against a :class:`ReferenceSource`."""

    def __init__(self, source: ReferenceSource, config: Optional[FormatterConfig] = None):
        self.source = source
        self.config = config or FormatterConfig()

    async def format_inline(self, ref_id: str) -> str:
        ref_id = ref_id.lstrip("@")
        item = await self.source.get_by_id(ref_id)
        if item is None:
            logger.debug("Citation not found: %s", ref_id)
            return unknown_citation(ref_id)
        return self.format_inline_item(item)

    async def format_full(self, ref_id: str) -> str:
        ref_id = ref_id.lstrip("@")
        item = await self.source.get_by_id(ref_id)
        if item is None:
            return unknown_citation(ref_id)
        return format_full_entry(item)

    async def expand_citations(self, text: str) -> str:
        """Replace every citation group in ``text`` with inline citations."""
        groups = list(CITATION_BRACKET_PATTERN.finditer(text))
        if not groups:
            return text

        ids = []
        for group in groups:
            ids.extend(m.group(1) for m in SINGLE_CITATION_PATTERN.finditer(group.group(1)))
        items = await self.source.get_by_ids(list(dict.fromkeys(ids)))

        def replace(group: re.Match) -> str:
            rendered = []
            for m in SINGLE_CITATION_PATTERN.finditer(group.group(1)):
                item = items.get(m.group(1))
                rendered.append(
                    self.format_inline_item(item) if item is not None else unknown_citation(m.group(1))
                )
            return self.config.multi_sep.join(rendered)

        return CITATION_BRACKET_PATTERN.sub(replace, text)

    # -- item formatting ---------------------------------------------------

    def format_inline_item(self, item: CSLItem) -> str:
        author = self.format_author_inline(item)
        year = get_year(item)
        identifier = get_identifier(item)
        if identifier:
            return f"({author}{self.config.author_sep}{year}{self.config.identifier_sep}{identifier})"
        return f"({author}{self.config.author_sep}{year})"

    def format_author_inline(self, item: CSLItem) -> str:
        authors = get_authors(item)
        if not authors:
            return "Unknown"

        japanese = is_japanese_authors(authors)
        if len(authors) == 1:
            return authors[0]["family"]
        if len(authors) <= self.config.max_authors:
            separator = self.config.separator_ja if japanese else " & "
            return separator.join(a["family"] for a in authors)
        suffix = self.config.et_al_ja if japanese else f" {self.config.et_al}"
        return f"{authors[0]['family']}{suffix}"


def sort_items(items: List[CSLItem], sort: str) -> List[CSLItem]:
    """Order items for a bibliography (``citation-order`` keeps input order)."""
    if sort not in BIBLIOGRAPHY_SORTS:
        raise ValueError(f"Invalid sort {sort!r}, must be one of {BIBLIOGRAPHY_SORTS}")
    if sort == "author":
        return sorted(items, key=get_first_author_family)
    if sort == "year":
        return sorted(items, key=get_year)
    return list(items)
