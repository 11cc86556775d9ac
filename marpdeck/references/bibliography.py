"""Bibliography generation from the citation ids collected in a deck."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from marpdeck.references.csl import CSLItem, format_full_entry, get_authors, get_year
from marpdeck.references.formatter import sort_items
from marpdeck.references.source import ReferenceSource

logger = logging.getLogger(__name__)


@dataclass
class BibliographyResult:
    entries: List[str] = field(default_factory=list)
    items: List[CSLItem] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)


class BibliographyGenerator:
    def __init__(self, source: ReferenceSource):
        self.source = source

    async def generate(self, citation_ids: List[str], sort: str = "citation-order") -> BibliographyResult:
        """
        Format bibliography entries for the given ids.

        Args:
            citation_ids: Ids in citation order (duplicates ignored)
            sort: citation-order | author | year

        Returns:
            BibliographyResult with formatted entries, the items found
            and the ids that are unknown to the source
        """
        unique_ids = list(dict.fromkeys(citation_ids))
        if not unique_ids:
            return BibliographyResult()

        found = await self.source.get_by_ids(unique_ids)
        missing = [i for i in unique_ids if i not in found]
        items = sort_items([found[i] for i in unique_ids if i in found], sort)

        if missing:
            logger.debug("Bibliography: %d reference(s) not found", len(missing))
        return BibliographyResult(
            entries=[format_full_entry(item) for item in items],
            items=items,
            missing=missing,
        )


def to_template_reference(item: CSLItem) -> Dict[str, Any]:
    """CSL item → the ``references`` entry shape of the bibliography template."""
    authors = []
    for a in get_authors(item):
        given = a.get("given")
        authors.append(f"{a['family']}, {given[0]}." if given else a["family"])

    ref: Dict[str, Any] = {"id": item["id"], "title": item.get("title", "")}
    optional: Dict[str, Optional[Any]] = {
        "authors": authors or None,
        "year": get_year(item) or None,
        "journal": item.get("container-title"),
        "volume": item.get("volume"),
        "pages": item.get("page"),
        "doi": item.get("DOI"),
        "url": item.get("URL"),
    }
    ref.update({k: v for k, v in optional.items() if v is not None})
    return ref
