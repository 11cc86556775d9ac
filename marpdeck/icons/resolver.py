"""
Icon resolution.

``IconResolver`` is the asynchronous collaborator the transformer calls
once per ``icons.render(...)`` occurrence. ``RegistryIconResolver`` renders
web-font and sprite icons directly from the registry; SVG sources
(``local-svg``, ``svg-inline``) need their markup fetched, which is
delegated to an injected ``svg_loader`` coroutine (fetching and caching
live outside this package).
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional

from jinja2 import Environment

from marpdeck.errors import IconError
from marpdeck.icons.registry import IconRegistry, IconSource

logger = logging.getLogger(__name__)

SvgLoader = Callable[[IconSource, str], Awaitable[str]]


class IconResolver(ABC):
    """Renders an icon reference to inline markup."""

    @abstractmethod
    async def render(self, name: str, options: Optional[Dict[str, Any]] = None) -> str:
        """
        Args:
            name: ``prefix:name`` reference or alias
            options: Optional ``size``, ``color`` and ``class``

        Returns:
            HTML/SVG markup

        Raises:
            IconError: If the icon cannot be resolved
        """


class RegistryIconResolver(IconResolver):
    """Resolves icons through an :class:`IconRegistry`."""

    def __init__(self, registry: IconRegistry, svg_loader: Optional[SvgLoader] = None):
        self.registry = registry
        self.svg_loader = svg_loader
        self._env = Environment(autoescape=False)

    async def render(self, name: str, options: Optional[Dict[str, Any]] = None) -> str:
        options = options or {}
        resolved = self.registry.resolve_alias(name)
        parsed = self.registry.parse_reference(resolved)
        if parsed is None:
            raise IconError(
                f'Invalid icon reference format: "{resolved}". Expected format: "prefix:name"'
            )
        prefix, icon_name = parsed

        source = self.registry.get_source(prefix)
        if source is None:
            raise IconError(f'Unknown icon source prefix: "{prefix}"')

        defaults = self.registry.defaults
        size = str(options.get("size") or defaults.size)
        color = self.registry.resolve_color(options.get("color")) or defaults.color
        extra_class = options.get("class")

        if source.type == "web-font":
            return self._render_web_font(source, icon_name, size, color, extra_class)
        if source.type == "svg-sprite":
            return self._render_sprite(source, icon_name, size, color, extra_class)

        if self.svg_loader is None:
            raise IconError(
                f'Icon source "{source.name}" ({source.type}) requires an SVG loader'
            )
        svg = await self.svg_loader(source, icon_name)
        return process_svg(svg, _class_name(icon_name, extra_class), size, color)

    def _render_web_font(
        self, source: IconSource, name: str, size: str, color: str, extra_class: Optional[str]
    ) -> str:
        style = f"font-size: {size}; color: {color};"
        class_name = _class_name(name, extra_class)
        if source.render:
            return self._env.from_string(source.render).render(
                name=name, style=style, size=size, color=color, **{"class": class_name}
            )
        return f'<span class="{class_name}" style="{style}">{name}</span>'

    @staticmethod
    def _render_sprite(
        source: IconSource, name: str, size: str, color: str, extra_class: Optional[str]
    ) -> str:
        return (
            f'<svg class="{_class_name(name, extra_class)}" width="{size}" height="{size}" fill="{color}">\n'
            f'  <use xlink:href="{source.url or ""}#{name}"/>\n'
            f"</svg>"
        )


def process_svg(svg: str, class_name: str, size: str, color: str) -> str:
    """Apply class, size and color to SVG markup."""
    processed = svg.strip()

    for attr, value in (("class", class_name), ("width", size), ("height", size)):
        pattern = re.compile(rf'\s{attr}="[^"]*"')
        if pattern.search(processed.split(">", 1)[0]):
            processed = pattern.sub(f' {attr}="{value}"', processed, count=1)
        else:
            processed = processed.replace("<svg", f'<svg {attr}="{value}"', 1)

    if color != "currentColor":
        processed = processed.replace('fill="currentColor"', f'fill="{color}"')
    return processed


def _class_name(name: str, extra_class: Optional[str]) -> str:
    class_name = f"icon icon-{name}"
    return f"{class_name} {extra_class}" if extra_class else class_name
