"""
Reference sources: where CSL items come from.

The pipeline only needs id lookups. ``ReferenceSource`` is the abstract,
asynchronous interface (a reference-manager process, a web API, ...);
``InMemoryReferenceSource`` serves items already loaded, e.g. from a
CSL-JSON export.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from marpdeck.references.csl import CSLItem

logger = logging.getLogger(__name__)


class ReferenceSource(ABC):

    @abstractmethod
    async def get_by_id(self, ref_id: str) -> Optional[CSLItem]:
        """Return the item with this id, or None if unknown."""

    async def get_by_ids(self, ref_ids: Iterable[str]) -> Dict[str, CSLItem]:
        """Return the known items among ``ref_ids``, keyed by id."""
        items: Dict[str, CSLItem] = {}
        for ref_id in ref_ids:
            item = await self.get_by_id(ref_id)
            if item is not None:
                items[ref_id] = item
        return items

    async def is_available(self) -> bool:
        return True


class InMemoryReferenceSource(ReferenceSource):
    """Reference source backed by a list of CSL-JSON items."""

    def __init__(self, items: Iterable[CSLItem] = ()):
        self.items: Dict[str, CSLItem] = {}
        for item in items:
            self.add(item)

    @classmethod
    def from_json(cls, text: str) -> "InMemoryReferenceSource":
        data = json.loads(text)
        if isinstance(data, dict):
            data = [data]
        return cls(data)

    def add(self, item: CSLItem) -> None:
        if not item.get("id"):
            raise ValueError("CSL item without 'id'")
        self.items[item["id"]] = item

    async def get_by_id(self, ref_id: str) -> Optional[CSLItem]:
        return self.items.get(ref_id)

    async def get_by_ids(self, ref_ids: Iterable[str]) -> Dict[str, CSLItem]:
        return {i: self.items[i] for i in ref_ids if i in self.items}
