"""
End-to-end tests for the compilation pipeline.
"""

import logging
from unittest.mock import AsyncMock

import pytest

from marpdeck.config import DeckConfig, LoggingConfig, TemplatesConfig
from marpdeck.core.pipeline import Pipeline
from marpdeck.errors import PipelineError
from marpdeck.references.source import InMemoryReferenceSource


def custom_config(custom_dir, **kwargs) -> DeckConfig:
    config = DeckConfig(**kwargs)
    config.templates = TemplatesConfig(custom=str(custom_dir))
    return config


@pytest.fixture
def custom_dir(template_dir, template_writer, title_template):
    """Custom tree overriding ``title`` with ``# {{ content.title }}``."""
    template_writer(template_dir, "title.yaml", title_template)
    return template_dir


@pytest.fixture
def pipeline(custom_dir, reference_source, icon_resolver):
    p = Pipeline(custom_config(custom_dir), icon_resolver=icon_resolver, reference_source=reference_source)
    p.initialize()
    return p


class TestEndToEnd:
    """Tests for compiling whole decks."""

    @pytest.mark.asyncio
    async def test_minimal_deck(self, pipeline):
        """Header first, then the body with no separator in between."""
        source = "meta:\n  title: T\nslides:\n  - template: title\n    content:\n      title: Hello\n"

        output = await pipeline.run_text(source)

        assert output.startswith("---\nmarp: true\ntitle: T\ntheme: default\n")
        assert output.endswith("---\n\n# Hello")
        assert output.count("# Hello") == 1

    @pytest.mark.asyncio
    async def test_no_slides(self, pipeline):
        output = await pipeline.run_text("meta:\n  title: T\n")

        assert output == "---\nmarp: true\ntitle: T\ntheme: default\n---"

    @pytest.mark.asyncio
    async def test_run_from_file(self, pipeline, tmp_path):
        path = tmp_path / "deck.yaml"
        path.write_text("meta:\n  title: T\nslides:\n  - template: raw\n    raw: '# Raw'\n", encoding="utf-8")

        assert (await pipeline.run(path)).endswith("---\n\n# Raw")

    @pytest.mark.asyncio
    async def test_builtin_templates_with_css_and_notes(self, pipeline):
        source = """\
meta:
  title: "Deck: one"
slides:
  - template: bullet-list
    notes: Remember the intro
    content:
      title: Agenda
      items: ["Context [@smith2024]", Results]
  - template: section
    content:
      title: Part
      number: 2
"""
        output = await pipeline.run_text(source)

        assert 'title: "Deck: one"' in output
        assert "style: |\n  section.section {" in output
        assert "- Context (Smith, 2024; PMID: 12345678)" in output
        assert "<!--\nRemember the intro\n-->" in output
        assert output.count("\n\n---\n\n") == 1
        assert '<span class="section-number">2</span>\n# Part' in output

    @pytest.mark.asyncio
    async def test_icons_resolved(self, pipeline, icon_resolver):
        source = """\
meta: {title: T}
slides:
  - template: icon-grid
    content:
      items:
        - {icon: "mi:home", label: Home}
        - {icon: "mi:home", label: Again}
"""
        output = await pipeline.run_text(source)

        assert output.count("<i>mi:home</i>") == 2
        assert icon_resolver.render.await_count == 2


class TestReferences:
    """Tests for citation collection and bibliography generation."""

    @pytest.mark.asyncio
    async def test_citations_and_warnings(self, pipeline):
        source = """\
meta: {title: T}
slides:
  - template: bullet-list
    content:
      title: Evidence
      items: ["[@smith2024] and [@unknown]"]
"""
        result = await pipeline.run_text_with_result(source)

        assert result.citations == ["smith2024", "unknown"]
        assert result.warnings == ["Reference not found: unknown"]
        assert result.slide_count == 1
        assert "(Smith, 2024; PMID: 12345678) and [unknown]" in result.output

    @pytest.mark.asyncio
    async def test_bibliography_auto_generate(self, pipeline):
        source = """\
meta: {title: T}
slides:
  - template: bullet-list
    content:
      title: Evidence
      items: ["[@smith2024; @lee2020]"]
  - template: bibliography
    content:
      autoGenerate: true
      sort: year
"""
        output = await pipeline.run_text(source)

        lee = output.index("- Lee, A., Kim, B., & Park, C. (2020).")
        smith = output.index("- Smith, J. (2024).")
        assert lee < smith
        assert "## References" in output

    @pytest.mark.asyncio
    async def test_references_disabled_in_meta(self, pipeline):
        source = """\
meta:
  title: T
  references: {enabled: false}
slides:
  - template: bullet-list
    content:
      title: Evidence
      items: ["[@unknown]"]
"""
        result = await pipeline.run_text_with_result(source)

        assert result.warnings == []
        assert result.citations == ["unknown"]

    @pytest.mark.asyncio
    async def test_unavailable_source_is_a_warning(self, custom_dir, icon_resolver):
        source = AsyncMock(spec=InMemoryReferenceSource)
        source.is_available.return_value = False
        source.get_by_id.return_value = None
        source.get_by_ids.return_value = {}
        pipeline = Pipeline(custom_config(custom_dir), icon_resolver=icon_resolver, reference_source=source)
        pipeline.initialize()

        result = await pipeline.run_text_with_result(
            "meta: {title: T}\nslides:\n  - template: title\n    content: {title: '[@x]'}\n"
        )

        assert len(result.warnings) == 1
        assert "not available" in result.warnings[0]


class TestPipelineErrors:
    """Tests for stage-tagged failures."""

    @pytest.mark.asyncio
    async def test_parse_stage(self, pipeline):
        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run_text("meta: {}\n")

        assert exc_info.value.stage == "parse"
        assert exc_info.value.cause_kind == "Validation"

    @pytest.mark.asyncio
    async def test_syntax_error_kind(self, pipeline):
        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run_text("meta:\n\ttitle: T\n")

        assert exc_info.value.cause_kind == "Syntax"

    @pytest.mark.asyncio
    async def test_transform_stage(self, pipeline):
        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run_text("meta: {title: T}\nslides:\n  - template: nope\n")

        assert exc_info.value.stage == "transform"
        assert exc_info.value.cause_kind == "TemplateNotFound"
        assert "nope" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_content_validation(self, pipeline):
        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run_text("meta: {title: T}\nslides:\n  - template: bullet-list\n    content: {title: x}\n")

        assert exc_info.value.cause_kind == "ContentValidation"
        assert "items: Required" in exc_info.value.__cause__.details

    def test_initialize_missing_custom_dir(self, tmp_path):
        pipeline = Pipeline(custom_config(tmp_path / "missing"))

        with pytest.raises(PipelineError) as exc_info:
            pipeline.initialize()

        assert exc_info.value.stage == "initialize"
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    @pytest.mark.asyncio
    async def test_parallel_transform(self, custom_dir, reference_source, icon_resolver):
        config = custom_config(custom_dir)
        config.output.max_parallel = 4
        pipeline = Pipeline(config, icon_resolver=icon_resolver, reference_source=reference_source)
        pipeline.initialize()
        slides = "".join(f"  - template: title\n    content: {{title: S{i}}}\n" for i in range(6))

        output = await pipeline.run_text(f"meta: {{title: T}}\nslides:\n{slides}")

        positions = [output.index(f"# S{i}") for i in range(6)]
        assert positions == sorted(positions)


class TestInitialize:
    """Tests for Pipeline.initialize."""

    @pytest.fixture
    def package_logger(self):
        logger = logging.getLogger("marpdeck")
        level = logger.level
        yield logger
        logger.setLevel(level)

    def test_applies_configured_log_level(self, package_logger, custom_dir):
        config = custom_config(custom_dir, logging=LoggingConfig(level="debug"))

        Pipeline(config).initialize()

        assert package_logger.level == logging.DEBUG
        assert logging.getLogger("marpdeck.core.transformer").getEffectiveLevel() == logging.DEBUG

    def test_default_level_is_info(self, package_logger, custom_dir):
        Pipeline(custom_config(custom_dir)).initialize()

        assert package_logger.level == logging.INFO
