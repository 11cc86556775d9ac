"""
Template registry: loads named template definitions from YAML.

A template file declares::

    name: bullet-list
    description: Bulleted list with a title
    category: basic
    schema:            # restricted JSON Schema for slide content
      type: object
      required: [title, items]
      properties: ...
    output: |          # jinja2 template text
      ## {{ content.title }}
      ...
    css: |             # optional, collected into the deck front matter
      ...
    example: {...}     # optional sample content

Definitions live in a name → definition map. Later loads replace earlier
ones with the same name (last write wins, no merging), which is how a
custom tree overrides the built-in tree: ``load_builtin()`` then
``load_custom(path)``. Loading is atomic per file only: an invalid file
raises, templates registered before it stay registered.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field

from marpdeck.errors import TemplateDefinitionError
from marpdeck.templates.validators import ValidationResult, compile_schema

logger = logging.getLogger(__name__)

BUILTIN_TEMPLATES_DIR = Path(__file__).parent / "builtin"
TEMPLATE_SUFFIXES = (".yaml", ".yml")


class TemplateDefinition(BaseModel):
    """A validated template declaration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    description: str
    category: str
    content_schema: Dict[str, Any] = Field(alias="schema")
    output: str = Field(min_length=1)
    example: Optional[Dict[str, Any]] = None
    css: Optional[str] = None


class TemplateLoader:
    """
    Loads and manages template definitions.

    Each registered definition gets its content schema compiled once; the
    transformer validates slides through :meth:`validate_content`.
    """

    def __init__(self):
        self.templates: Dict[str, TemplateDefinition] = {}
        self._validators: Dict[str, Callable[[Any], ValidationResult]] = {}

    # -- loading -----------------------------------------------------------

    def load_from_string(self, text: str, source: str = "<string>") -> TemplateDefinition:
        """
        Parse, validate and register one template declaration.

        Raises:
            TemplateDefinitionError: If the YAML is malformed or the
                declaration fails the definition schema. Nothing is
                registered in that case.
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise TemplateDefinitionError(
                f"Invalid template definition in {source}: malformed YAML", details=str(e)
            ) from e

        try:
            template = TemplateDefinition.model_validate(data)
        except pydantic.ValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" if err["loc"] else err["msg"]
                for err in e.errors()
            ]
            raise TemplateDefinitionError(
                f"Invalid template definition in {source}: {', '.join(errors)}", details=errors
            ) from e

        try:
            validator = compile_schema(template.content_schema)
        except re.error as e:
            raise TemplateDefinitionError(
                f"Invalid template definition in {source}: schema: bad pattern ({e})",
                details=[str(e)],
            ) from e

        if template.name in self.templates:
            logger.debug("Template %r overridden by %s", template.name, source)
        self.templates[template.name] = template
        self._validators[template.name] = validator
        return template

    def load_from_file(self, path: Union[str, Path]) -> TemplateDefinition:
        """Load a template from a YAML file."""
        path = Path(path)
        template = self.load_from_string(path.read_text(encoding="utf-8"), source=str(path))
        logger.debug("Loaded template: %s from %s", template.name, path)
        return template

    def load_directory(self, directory: Union[str, Path]) -> List[TemplateDefinition]:
        """
        Load every ``*.yaml`` / ``*.yml`` file under ``directory`` (recursive).

        Entries are visited in sorted order, files and subdirectories
        interleaved, depth first.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"Template directory not found: {directory}")

        loaded: List[TemplateDefinition] = []
        for entry in sorted(directory.iterdir()):
            if entry.is_dir():
                loaded.extend(self.load_directory(entry))
            elif entry.is_file() and entry.suffix in TEMPLATE_SUFFIXES:
                loaded.append(self.load_from_file(entry))
        return loaded

    def load_builtin(self, directory: Optional[Union[str, Path]] = None) -> List[TemplateDefinition]:
        """Load the built-in templates (packaged set if no directory is given)."""
        loaded = self.load_directory(directory or BUILTIN_TEMPLATES_DIR)
        logger.info("Loaded %d built-in templates", len(loaded))
        return loaded

    def load_custom(self, directory: Union[str, Path]) -> List[TemplateDefinition]:
        """Load custom templates; same-named built-in templates are replaced."""
        loaded = self.load_directory(directory)
        logger.info("Loaded %d custom templates from %s", len(loaded), directory)
        return loaded

    # -- lookup ------------------------------------------------------------

    def get(self, name: str) -> Optional[TemplateDefinition]:
        return self.templates.get(name)

    def list(self) -> List[TemplateDefinition]:
        return list(self.templates.values())

    def list_by_category(self, category: str) -> List[TemplateDefinition]:
        return [t for t in self.templates.values() if t.category == category]

    def categories(self) -> List[str]:
        """Distinct categories in registration order."""
        return list(dict.fromkeys(t.category for t in self.templates.values()))

    def validate_content(self, name: str, content: Any) -> ValidationResult:
        """Validate slide content against the named template's schema."""
        validator = self._validators.get(name)
        if validator is None:
            return ValidationResult(valid=False, errors=[f"Template {name!r} not found"])
        return validator(content)
