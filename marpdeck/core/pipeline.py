"""
End-to-end compilation pipeline.

Stages:
    1. parse          source text -> Presentation
    2. citations      collect citation ids in order of first use
    3. references     look the ids up (unknown ids become warnings)
    4. bibliography   fill ``bibliography`` slides with ``autoGenerate: true``
    5. transform      slides -> rendered bodies
    6. render         front matter + bodies + notes + collected template CSS

Reference lookups never fail the run: an unavailable or failing reference
source only adds warnings. Any other stage failure is raised as
:class:`PipelineError` chained to the original error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from marpdeck.config import DeckConfig
from marpdeck.core.models import Presentation, Slide
from marpdeck.core.parser import Parser
from marpdeck.core.renderer import Renderer, RenderOptions
from marpdeck.core.transformer import Transformer
from marpdeck.errors import PipelineError
from marpdeck.icons.registry import IconRegistry
from marpdeck.icons.resolver import IconResolver, RegistryIconResolver
from marpdeck.references.bibliography import BibliographyGenerator, to_template_reference
from marpdeck.references.extractor import CitationExtractor
from marpdeck.references.formatter import CitationFormatter, FormatterConfig
from marpdeck.references.source import InMemoryReferenceSource, ReferenceSource
from marpdeck.templates.css_collector import CSSCollector
from marpdeck.templates.engine import TemplateEngine
from marpdeck.templates.loader import TemplateLoader

logger = logging.getLogger(__name__)

BIBLIOGRAPHY_TEMPLATE = "bibliography"


@dataclass
class PipelineResult:
    output: str
    citations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    slide_count: int = 0


class Pipeline:
    """
    Compiles presentation sources to MARP Markdown.

    Example:
        pipeline = Pipeline(load_config())
        pipeline.initialize()
        markdown = await pipeline.run("talk.yaml")
    """

    def __init__(
        self,
        config: Optional[DeckConfig] = None,
        icon_resolver: Optional[IconResolver] = None,
        reference_source: Optional[ReferenceSource] = None,
    ):
        self.config = config or DeckConfig()
        self.parser = Parser()
        self.engine = TemplateEngine()
        self.loader = TemplateLoader()
        self.reference_source = reference_source or InMemoryReferenceSource()
        self.icon_registry = IconRegistry()
        self._default_icon_resolver = icon_resolver is None
        self.icon_resolver = icon_resolver or RegistryIconResolver(self.icon_registry)

        fmt = self.config.references.format
        self.citation_formatter = CitationFormatter(
            self.reference_source,
            FormatterConfig(
                max_authors=fmt.max_authors,
                et_al=fmt.et_al,
                et_al_ja=fmt.et_al_ja,
                author_sep=fmt.author_sep,
                identifier_sep=fmt.identifier_sep,
            ),
        )
        self.citation_extractor = CitationExtractor()
        self.bibliography_generator = BibliographyGenerator(self.reference_source)
        self.transformer = Transformer(
            self.engine, self.loader, self.icon_resolver, self.citation_formatter
        )
        self.renderer = Renderer()
        self.css_collector = CSSCollector(self.loader)
        self.warnings: List[str] = []

    def initialize(self) -> None:
        """Apply the log level, then load built-in and custom templates and the icon registry if configured."""
        logging.getLogger("marpdeck").setLevel(self.config.logging.level)
        try:
            self.loader.load_builtin(self.config.templates.builtin)
            if self.config.templates.custom:
                self.loader.load_custom(self.config.templates.custom)
            if self.config.icons.registry:
                self.icon_registry = IconRegistry.load(self.config.icons.registry)
                if self._default_icon_resolver:
                    self.icon_resolver = RegistryIconResolver(self.icon_registry)
                    self.transformer.icon_resolver = self.icon_resolver
        except Exception as e:
            raise PipelineError(f"Failed to initialize pipeline: {e}", stage="initialize") from e

    # -- entry points ------------------------------------------------------

    async def run(self, input_path: Union[str, Path]) -> str:
        return (await self.run_with_result(input_path)).output

    async def run_text(self, text: str) -> str:
        return (await self.run_text_with_result(text)).output

    async def run_with_result(self, input_path: Union[str, Path]) -> PipelineResult:
        """Compile a source file and report citations, warnings and slide count."""
        self.warnings = []
        try:
            presentation = self.parser.parse_file(input_path)
        except Exception as e:
            raise PipelineError(f"Failed to parse source file: {e}", stage="parse") from e
        return await self._compile(presentation)

    async def run_text_with_result(self, text: str) -> PipelineResult:
        self.warnings = []
        try:
            presentation = self.parser.parse(text)
        except Exception as e:
            raise PipelineError(f"Failed to parse source: {e}", stage="parse") from e
        return await self._compile(presentation)

    # -- stages ------------------------------------------------------------

    async def _compile(self, presentation: Presentation) -> PipelineResult:
        citation_ids = self._collect_citations(presentation)
        self.warnings.extend(await self._resolve_references(presentation, citation_ids))
        presentation = await self._process_bibliography(presentation, citation_ids)
        slides = await self._transform(presentation)
        output = self._render(slides, presentation)

        for warning in self.warnings:
            logger.warning(warning)
        logger.info(
            "Compiled %d slide(s), %d citation(s), %d warning(s)",
            len(presentation.slides), len(citation_ids), len(self.warnings),
        )
        return PipelineResult(
            output=output,
            citations=citation_ids,
            warnings=list(self.warnings),
            slide_count=len(presentation.slides),
        )

    def _collect_citations(self, presentation: Presentation) -> List[str]:
        citations = self.citation_extractor.extract_from_presentation(presentation)
        return self.citation_extractor.unique_ids(citations)

    def _references_enabled(self, presentation: Presentation) -> bool:
        settings = presentation.meta.references
        return self.config.references.enabled and (settings is None or settings.enabled)

    async def _resolve_references(self, presentation: Presentation, ids: List[str]) -> List[str]:
        """Warnings for cited ids the reference source cannot resolve."""
        if not ids or not self._references_enabled(presentation):
            return []

        if not await self.reference_source.is_available():
            return ["Reference source is not available; citations are left unresolved"]

        try:
            items = await self.reference_source.get_by_ids(ids)
        except Exception as e:
            return [f"Failed to resolve references: {e}"]

        return [f"Reference not found: {ref_id}" for ref_id in ids if ref_id not in items]

    async def _process_bibliography(self, presentation: Presentation, ids: List[str]) -> Presentation:
        if not ids or not self._references_enabled(presentation):
            return presentation
        if not any(_is_auto_bibliography(s) for s in presentation.slides):
            return presentation
        if not await self.reference_source.is_available():
            return presentation

        try:
            slides = [
                await self._generate_bibliography(slide, ids) if _is_auto_bibliography(slide) else slide
                for slide in presentation.slides
            ]
        except Exception as e:
            self.warnings.append(f"Failed to auto-generate bibliography: {e}")
            return presentation
        return presentation.model_copy(update={"slides": slides})

    async def _generate_bibliography(self, slide: Slide, ids: List[str]) -> Slide:
        sort = slide.content.get("sort") or "citation-order"
        result = await self.bibliography_generator.generate(ids, sort=sort)
        for ref_id in result.missing:
            self.warnings.append(f"Bibliography: reference not found: {ref_id}")

        content = {
            **slide.content,
            "references": [to_template_reference(item) for item in result.items],
            "_autoGenerated": True,
            "_generatedEntries": result.entries,
        }
        return slide.model_copy(update={"content": content})

    async def _transform(self, presentation: Presentation) -> List[str]:
        try:
            return await self.transformer.transform_all(
                presentation, max_parallel=self.config.output.max_parallel
            )
        except Exception as e:
            raise PipelineError(f"Failed to transform slides: {e}", stage="transform") from e

    def _render(self, slides: List[str], presentation: Presentation) -> str:
        try:
            notes = {i: s.notes for i, s in enumerate(presentation.slides) if s.notes}
            css = self.css_collector.collect(s.template for s in presentation.slides)
            options = RenderOptions(
                include_theme=self.config.output.include_theme,
                notes=notes,
                template_css=css or None,
            )
            return self.renderer.render(slides, presentation.meta, options)
        except Exception as e:
            raise PipelineError(f"Failed to render output: {e}", stage="render") from e


def _is_auto_bibliography(slide: Slide) -> bool:
    return slide.template == BIBLIOGRAPHY_TEMPLATE and slide.content.get("autoGenerate") is True
