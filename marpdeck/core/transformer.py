"""
Slide transformation: template expansion with asynchronous helpers.

Template rendering is synchronous, but icons and citations need
asynchronous collaborators. Each slide is transformed in two phases:

1. Render: the ``icons`` and ``refs`` helpers exposed to the template only
   record the request in a per-slide :class:`PendingOperations` and return
   a unique placeholder token (``___ICON_PLACEHOLDER_0___``).
2. Resolve: every recorded request is resolved through its collaborator
   (concurrently per namespace) and each placeholder is replaced by
   its own result.

Requests are never deduplicated: two identical ``icons.render`` calls make
two resolver calls, so a collaborator failure surfaces at every occurrence.
Any resolution failure cancels the requests still in flight and aborts
the slide (and the deck).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from marpdeck.core.models import Presentation, PresentationMeta, Slide
from marpdeck.errors import ContentValidationError, TemplateNotFoundError
from marpdeck.icons.resolver import IconResolver
from marpdeck.references.formatter import CitationFormatter
from marpdeck.templates.engine import TemplateEngine
from marpdeck.templates.loader import TemplateLoader

logger = logging.getLogger(__name__)

ICON_PLACEHOLDER = "___ICON_PLACEHOLDER_{}___"
CITE_PLACEHOLDER = "___REFS_CITE_PLACEHOLDER_{}___"
EXPAND_PLACEHOLDER = "___REFS_EXPAND_PLACEHOLDER_{}___"


@dataclass
class TransformContext:
    """Position of a slide within its presentation."""
    meta: PresentationMeta
    slide_index: int
    total_slides: int


@dataclass
class IconRequest:
    name: str
    options: Optional[Dict[str, Any]] = None


@dataclass
class PendingOperations:
    """
    Requests recorded while rendering one slide.

    Each namespace numbers its requests from 0; the placeholder prefixes
    differ, so ids may repeat across namespaces.
    """
    icons: Dict[int, IconRequest] = field(default_factory=dict)
    cites: Dict[int, str] = field(default_factory=dict)
    expands: Dict[int, str] = field(default_factory=dict)

    def add_icon(self, name: str, options: Optional[Dict[str, Any]]) -> str:
        op_id = len(self.icons)
        self.icons[op_id] = IconRequest(name=name, options=options)
        return ICON_PLACEHOLDER.format(op_id)

    def add_cite(self, ref_id: str) -> str:
        op_id = len(self.cites)
        self.cites[op_id] = ref_id
        return CITE_PLACEHOLDER.format(op_id)

    def add_expand(self, text: str) -> str:
        op_id = len(self.expands)
        self.expands[op_id] = text
        return EXPAND_PLACEHOLDER.format(op_id)

    @property
    def empty(self) -> bool:
        return not (self.icons or self.cites or self.expands)


class IconsHelper:
    """``icons`` object exposed to templates."""

    def __init__(self, pending: PendingOperations):
        self._pending = pending

    def render(self, name: str, options: Optional[Dict[str, Any]] = None, **kwargs: Any) -> str:
        if kwargs:
            options = {**(options or {}), **kwargs}
        return self._pending.add_icon(str(name), dict(options) if options else None)


class RefsHelper:
    """``refs`` object exposed to templates."""

    def __init__(self, pending: PendingOperations):
        self._pending = pending

    def cite(self, ref_id: str) -> str:
        return self._pending.add_cite(str(ref_id))

    def expand(self, text: Any) -> str:
        return self._pending.add_expand("" if text is None else str(text))


class Transformer:
    """Turns slides into MARP Markdown bodies."""

    def __init__(
        self,
        engine: TemplateEngine,
        loader: TemplateLoader,
        icon_resolver: IconResolver,
        citation_formatter: CitationFormatter,
    ):
        self.engine = engine
        self.loader = loader
        self.icon_resolver = icon_resolver
        self.citation_formatter = citation_formatter

    async def transform(self, slide: Slide, context: TransformContext) -> str:
        """
        Transform one slide into its rendered body.

        Raw slides are returned verbatim (no validation, no class
        directive, no trimming).

        Raises:
            TemplateNotFoundError: If the slide's template is not registered
            ContentValidationError: If the content fails the template schema
            TemplateRenderError: If the template itself fails to render
            Exception: Whatever the icon resolver or citation formatter raise
        """
        if slide.is_raw:
            return slide.raw or ""

        template = self.loader.get(slide.template)
        if template is None:
            raise TemplateNotFoundError(
                f'Template "{slide.template}" not found',
                slide=slide,
                slide_index=context.slide_index,
            )

        validation = self.loader.validate_content(slide.template, slide.content)
        if not validation.valid:
            raise ContentValidationError(
                f'Content validation failed for template "{slide.template}": '
                + "; ".join(validation.errors),
                slide=slide,
                details=validation.errors,
                slide_index=context.slide_index,
            )

        pending = PendingOperations()
        render_context = {
            "content": slide.content,
            "meta": {
                "title": context.meta.title,
                "author": context.meta.author,
                "theme": context.meta.theme,
            },
            "slide": {
                "index": context.slide_index,
                "total": context.total_slides,
            },
            "icons": IconsHelper(pending),
            "refs": RefsHelper(pending),
        }
        rendered = self.engine.render(template.output, render_context)

        if not pending.empty:
            logger.debug(
                "Slide %d: resolving %d icon(s), %d cite(s), %d expand(s)",
                context.slide_index, len(pending.icons), len(pending.cites), len(pending.expands),
            )
            rendered = await self._resolve(rendered, pending)

        if slide.css_class:
            rendered = f"<!-- _class: {slide.css_class} -->\n{rendered}"

        return rendered.strip()

    async def transform_all(self, presentation: Presentation, max_parallel: int = 1) -> List[str]:
        """
        Transform every slide, preserving presentation order.

        Args:
            presentation: Parsed presentation
            max_parallel: Slides transformed concurrently (1 = sequential)

        Returns:
            One rendered body per slide
        """
        total = len(presentation.slides)

        def context_for(index: int) -> TransformContext:
            return TransformContext(meta=presentation.meta, slide_index=index, total_slides=total)

        if max_parallel <= 1:
            bodies = []
            for index, slide in enumerate(presentation.slides):
                bodies.append(await self.transform(slide, context_for(index)))
            return bodies

        semaphore = asyncio.Semaphore(max_parallel)

        async def bounded(index: int, slide: Slide) -> str:
            async with semaphore:
                return await self.transform(slide, context_for(index))

        return await _gather_or_cancel([bounded(i, s) for i, s in enumerate(presentation.slides)])

    async def _resolve(self, rendered: str, pending: PendingOperations) -> str:
        """Resolve every pending request and substitute its placeholder."""
        icons = await _gather(
            pending.icons,
            lambda request: self.icon_resolver.render(request.name, request.options),
        )
        cites = await _gather(pending.cites, self.citation_formatter.format_inline)
        expands = await _gather(pending.expands, self.citation_formatter.expand_citations)

        # Outer to inner: an expand argument may carry cite or icon tokens
        for template, resolved in (
            (EXPAND_PLACEHOLDER, expands),
            (CITE_PLACEHOLDER, cites),
            (ICON_PLACEHOLDER, icons),
        ):
            for op_id, value in resolved.items():
                rendered = rendered.replace(template.format(op_id), value)
        return rendered


async def _gather(requests: Dict[int, Any], resolve: Callable[[Any], Awaitable[str]]) -> Dict[int, str]:
    if not requests:
        return {}
    ids = list(requests)
    results = await _gather_or_cancel([resolve(requests[i]) for i in ids])
    return dict(zip(ids, results))


async def _gather_or_cancel(aws: List[Awaitable[Any]]) -> List[Any]:
    """
    Like ``asyncio.gather`` but the first failure cancels the other tasks.

    Results come back in input order. When several tasks fail, the
    exception of the earliest one in input order is raised.
    """
    if not aws:
        return []
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]
