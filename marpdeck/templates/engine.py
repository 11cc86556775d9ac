"""
Template engine: jinja2 rendering of slide templates.

The engine is a pure, synchronous string renderer. Output mixes raw HTML
and MARP Markdown, so nothing is escaped unless the template asks for it
(``| escape``); values returned by helper callables (``icons.render``,
``refs.cite``) are spliced in verbatim.

Undefined names and None values render as the empty string, including
chained lookups such as ``{{ content.image.caption }}`` when ``image`` is
missing. Attribute access on a mapping only looks at its keys, so
``content.items`` is the slide's ``items`` field (or undefined) and never
``dict.items``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict

from jinja2 import ChainableUndefined, Environment, TemplateError
from jinja2.filters import do_default

from marpdeck.errors import TemplateRenderError

logger = logging.getLogger(__name__)


class SlideEnvironment(Environment):
    """jinja2 environment resolving ``mapping.key`` against keys only."""

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except (KeyError, TypeError):
                return self.undefined(obj=obj, name=attribute)
        return super().getattr(obj, attribute)


def _default(value: Any, default_value: Any = "", boolean: bool = False) -> Any:
    """``default`` filter that also replaces YAML nulls."""
    if value is None:
        return default_value
    return do_default(value, default_value, boolean)


def _finalize(value: Any) -> Any:
    return "" if value is None else value


class TemplateEngine:
    """Renders template text against a context of data and helpers."""

    def __init__(self):
        self.env = SlideEnvironment(
            autoescape=False,               # HTML output for MARP
            undefined=ChainableUndefined,
            trim_blocks=True,               # block tags do not leave blank lines
            lstrip_blocks=True,
            finalize=_finalize,             # YAML nulls print as nothing
        )
        self._register_filters()

    def _register_filters(self) -> None:
        self.env.filters["default"] = _default
        self.env.filters["d"] = _default

    def render(self, template: str, context: Dict[str, Any]) -> str:
        """
        Render template text in a single synchronous pass.

        Args:
            template: jinja2 template text
            context: Variables and helper objects exposed to the template

        Returns:
            Rendered text

        Raises:
            TemplateRenderError: If the template has a syntax or runtime error
        """
        try:
            return self.env.from_string(template).render(context)
        except TemplateError as e:
            raise TemplateRenderError(f"Template rendering failed: {e}", details=e) from e
