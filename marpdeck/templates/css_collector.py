"""Collects the CSS fragments of the templates used by a deck."""

from __future__ import annotations

from typing import Iterable

from marpdeck.templates.loader import TemplateLoader


class CSSCollector:
    def __init__(self, loader: TemplateLoader):
        self.loader = loader

    def collect(self, template_names: Iterable[str]) -> str:
        """
        Combine the CSS of the given templates.

        Each template contributes once, in order of first use; blocks are
        separated by a blank line. Unknown names and templates without CSS
        are skipped.
        """
        blocks = []
        for name in dict.fromkeys(template_names):
            template = self.loader.get(name)
            if template is not None and template.css:
                blocks.append(template.css.strip("\n"))
        return "\n\n".join(blocks)
