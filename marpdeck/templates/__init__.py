"""Template registry, content schema validation and rendering."""

from marpdeck.templates.css_collector import CSSCollector
from marpdeck.templates.engine import TemplateEngine
from marpdeck.templates.loader import TemplateDefinition, TemplateLoader
from marpdeck.templates.validators import ValidationResult, compile_schema, validate_with_schema

__all__ = [
    "CSSCollector",
    "TemplateDefinition",
    "TemplateEngine",
    "TemplateLoader",
    "ValidationResult",
    "compile_schema",
    "validate_with_schema",
]
