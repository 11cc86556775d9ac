"""
MARP Markdown assembly.

Output layout::

    ---
    marp: true
    title: ...
    author: ...          (if set)
    date: ...            (if set)
    theme: ...           (if include_theme and meta.theme)
    <extra entries>
    style: |             (if template CSS was collected)
      ...
    ---

    <slide 1>

    <!--
    speaker notes of slide 1
    -->

    ---

    <slide 2>
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from marpdeck.core.models import PresentationMeta

SLIDE_SEPARATOR = "\n\n---\n\n"
STYLE_INDENT = "  "

_NEEDS_QUOTES = re.compile(r"[:#\[\]{}|>]")


@dataclass
class RenderOptions:
    include_theme: bool = True
    notes: Optional[Dict[int, str]] = None                   # slide index -> notes
    additional_front_matter: Optional[Dict[str, Any]] = None
    template_css: Optional[str] = None


def format_front_matter_value(value: Any) -> str:
    """Encode a scalar for the front matter block."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value)
    if _NEEDS_QUOTES.search(text):
        escaped = text.replace('"', '\\"')
        return f'"{escaped}"'
    return text


class Renderer:
    """Assembles front matter and slide bodies into one document."""

    def render(
        self,
        slides: List[str],
        meta: PresentationMeta,
        options: Optional[RenderOptions] = None,
    ) -> str:
        options = options or RenderOptions()
        header = self.render_front_matter(meta, options)
        if not slides:
            return header

        notes = options.notes or {}
        bodies = []
        for index, body in enumerate(slides):
            note = (notes.get(index) or "").strip()
            bodies.append(f"{body}\n\n<!--\n{note}\n-->" if note else body)

        return header + "\n\n" + SLIDE_SEPARATOR.join(bodies)

    def render_front_matter(self, meta: PresentationMeta, options: RenderOptions) -> str:
        lines = ["---", "marp: true", f"title: {format_front_matter_value(meta.title)}"]

        if meta.author:
            lines.append(f"author: {format_front_matter_value(meta.author)}")
        if meta.date:
            lines.append(f"date: {format_front_matter_value(meta.date)}")
        if options.include_theme and meta.theme:
            lines.append(f"theme: {format_front_matter_value(meta.theme)}")

        for key, value in (options.additional_front_matter or {}).items():
            lines.append(f"{key}: {format_front_matter_value(value)}")

        if options.template_css:
            lines.append("style: |")
            for css_line in options.template_css.split("\n"):
                lines.append(f"{STYLE_INDENT}{css_line}" if css_line else "")

        lines.append("---")
        return "\n".join(lines)
