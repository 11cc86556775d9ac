"""
Icon registry: icon sources, aliases and rendering defaults.

Registry YAML::

    sources:
      - name: material-icons
        type: web-font
        prefix: mi
      - name: heroicons
        type: svg-inline
        prefix: hero
        url: https://unpkg.com/heroicons/24/outline/{name}.svg
    aliases:
      home: "mi:home"
    defaults:
      size: 24px
      color: currentColor

Icons are referenced as ``prefix:name`` or through an alias.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

IconSourceType = Literal["web-font", "svg-inline", "svg-sprite", "local-svg"]


class IconSource(BaseModel):
    name: str
    type: IconSourceType
    prefix: str
    url: Optional[str] = None
    path: Optional[str] = None
    render: Optional[str] = None        # jinja2 template for web-font markup


class IconDefaults(BaseModel):
    size: str = "24px"
    color: str = "currentColor"


class IconRegistry(BaseModel):
    sources: List[IconSource] = Field(default_factory=list)
    aliases: Dict[str, str] = Field(default_factory=dict)
    colors: Dict[str, str] = Field(default_factory=dict)
    defaults: IconDefaults = Field(default_factory=IconDefaults)

    @classmethod
    def from_yaml(cls, text: str) -> "IconRegistry":
        return cls.model_validate(yaml.safe_load(text) or {})

    @classmethod
    def load(cls, path: Union[str, Path]) -> "IconRegistry":
        registry = cls.from_yaml(Path(path).read_text(encoding="utf-8"))
        logger.info(
            "Loaded icon registry from %s: %d sources, %d aliases",
            path, len(registry.sources), len(registry.aliases),
        )
        return registry

    def resolve_alias(self, name_or_alias: str) -> str:
        return self.aliases.get(name_or_alias, name_or_alias)

    def resolve_color(self, color: Optional[str]) -> Optional[str]:
        """Map a named palette color (``colors:``) to its value."""
        if color is None:
            return None
        return self.colors.get(color, color)

    @staticmethod
    def parse_reference(reference: str) -> Optional[Tuple[str, str]]:
        """Split ``prefix:name``; None if either part is missing."""
        prefix, sep, name = reference.partition(":")
        if not sep or not prefix or not name:
            return None
        return prefix, name

    def get_source(self, prefix: str) -> Optional[IconSource]:
        for source in self.sources:
            if source.prefix == prefix:
                return source
        return None
