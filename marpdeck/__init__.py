"""
marpdeck: YAML slide sources compiled to MARP Markdown

Compiles a presentation description (metadata + ordered slides, each bound
to a named template) into a single MARP Markdown document.

Stage 1, Parsing (deterministic):
    core.parser:          YAML → Presentation (pydantic, defaults applied)

Stage 2, Templating (synchronous render + asynchronous resolution):
    templates.validators: restricted JSON Schema → content validator
    templates.loader:     named template definitions, custom overrides built-in
    templates.engine:     jinja2 rendering, helpers spliced verbatim
    core.transformer:     per-slide expansion, icon/citation placeholders

Stage 3, Rendering (deterministic):
    core.renderer:        front matter + slide bodies + speaker notes
    core.pipeline:        end-to-end orchestration
"""

__version__ = "0.1.0"

from marpdeck.errors import (
    ContentValidationError,
    IconError,
    MarpDeckError,
    ParseError,
    PipelineError,
    TemplateDefinitionError,
    TemplateNotFoundError,
    TemplateRenderError,
    TransformError,
    ValidationError,
)

__all__ = [
    "ContentValidationError",
    "IconError",
    "MarpDeckError",
    "ParseError",
    "PipelineError",
    "TemplateDefinitionError",
    "TemplateNotFoundError",
    "TemplateRenderError",
    "TransformError",
    "ValidationError",
    "__version__",
]
