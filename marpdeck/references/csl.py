"""
Helpers over CSL-JSON items.

Items are plain dictionaries as exported by reference managers::

    {"id": "smith2024", "author": [{"family": "Smith", "given": "John"}],
     "issued": {"date-parts": [[2024]]}, "title": "...", "PMID": "12345678",
     "container-title": "Nature", "volume": "1", "issue": "2", "page": "3-4"}
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

CSLItem = Dict[str, Any]

JAPANESE_PATTERN = re.compile(r"[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FAF]")


def get_year(item: CSLItem) -> int:
    """First year of ``issued.date-parts``; 0 when unknown."""
    try:
        return int(item["issued"]["date-parts"][0][0])
    except (KeyError, IndexError, TypeError, ValueError):
        return 0


def get_identifier(item: CSLItem) -> Optional[str]:
    """``PMID: ...`` preferred over ``DOI: ...``."""
    if item.get("PMID"):
        return f"PMID: {item['PMID']}"
    if item.get("DOI"):
        return f"DOI: {item['DOI']}"
    return None


def get_authors(item: CSLItem) -> List[Dict[str, str]]:
    return [a for a in item.get("author") or [] if a.get("family")]


def get_first_author_family(item: CSLItem) -> str:
    authors = get_authors(item)
    return authors[0]["family"] if authors else ""


def is_japanese_authors(authors: List[Dict[str, str]]) -> bool:
    return bool(authors) and bool(JAPANESE_PATTERN.search(authors[0]["family"]))


def format_authors_full(authors: List[Dict[str, str]], japanese: bool) -> str:
    """
    Japanese: 田中太郎, 山田花子
    English:  Smith, J., Johnson, A., & Williams, B.
    """
    if not authors:
        return "Unknown"

    if japanese:
        return ", ".join(f"{a['family']}{a.get('given', '')}" for a in authors)

    def initial(a: Dict[str, str]) -> str:
        given = a.get("given")
        return f"{given[0]}." if given else ""

    if len(authors) == 1:
        return f"{authors[0]['family']}, {initial(authors[0])}"

    formatted = [f"{a['family']}, {initial(a)}" for a in authors[:-1]]
    formatted.append(f"& {authors[-1]['family']}, {initial(authors[-1])}")
    return ", ".join(formatted)


def format_full_entry(item: CSLItem) -> str:
    """Full bibliography entry: authors (year). title. *journal*, vol(issue), pages. id"""
    authors = get_authors(item)
    japanese = is_japanese_authors(authors)
    parts = [format_authors_full(authors, japanese), f"({get_year(item)})."]

    if item.get("title"):
        parts.append(f"{item['title']}.")

    journal = item.get("container-title")
    if journal:
        if not japanese:
            journal = f"*{journal}*"
        location = ""
        if item.get("volume"):
            location = f"{item['volume']}({item['issue']})" if item.get("issue") else str(item["volume"])
        if item.get("page"):
            location = f"{location}, {item['page']}" if location else str(item["page"])
        parts.append(f"{journal}, {location}." if location else f"{journal}.")

    identifier = get_identifier(item)
    if identifier:
        parts.append(identifier)

    return " ".join(parts)
