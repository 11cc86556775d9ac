"""
Presentation parser: YAML source → validated Presentation.

Two failure kinds are kept apart:
- ParseError (Syntax): the text is not well-formed YAML (tabs used for
  indentation, unclosed flow collections, ...). Carries the YAML error.
- ValidationError (Validation): well-formed YAML that does not match the
  presentation schema (missing ``meta.title``, slides that are not
  mappings, ...). Carries per-field ``{"path", "message"}`` records.

``parse_with_line_info`` additionally walks the composed YAML node tree to
record the 1-based line of every slide entry, information that does not
survive validation and defaulting.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import pydantic
import yaml

from marpdeck.core.models import Presentation, PresentationWithLines
from marpdeck.errors import ParseError, ValidationError

logger = logging.getLogger(__name__)


def format_validation_issues(exc: pydantic.ValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into ``{"path": "meta.title", "message": ...}``."""
    issues = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err.get("loc", ()))
        issues.append({"path": path, "message": err.get("msg", "Invalid value")})
    return issues


class Parser:
    """Parses presentation YAML into :class:`Presentation` objects."""

    def parse(self, text: str) -> Presentation:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParseError("Failed to parse YAML", details=e) from e

        return self._validate(data, Presentation)

    def parse_file(self, path: Union[str, Path]) -> Presentation:
        return self.parse(self._read(path))

    def parse_with_line_info(self, text: str) -> PresentationWithLines:
        node, data = self._compose(text)
        slide_lines = _slide_lines(node)
        presentation = self._validate(data, Presentation)
        return PresentationWithLines(
            meta=presentation.meta,
            slides=presentation.slides,
            slide_lines=slide_lines,
        )

    def parse_file_with_line_info(self, path: Union[str, Path]) -> PresentationWithLines:
        return self.parse_with_line_info(self._read(path))

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _read(path: Union[str, Path]) -> str:
        path = Path(path)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ParseError(f"File not found: {path}") from e
        except OSError as e:
            raise ParseError(f"Failed to read file: {path}", details=e) from e

    @staticmethod
    def _compose(text: str) -> Tuple[Optional[yaml.Node], Any]:
        """Compose the node tree and construct data from it in one pass."""
        loader = yaml.SafeLoader(text)
        try:
            node = loader.get_single_node()
            data = loader.construct_document(node) if node is not None else None
        except yaml.YAMLError as e:
            raise ParseError("Failed to parse YAML", details=e) from e
        finally:
            loader.dispose()
        return node, data

    @staticmethod
    def _validate(data: Any, model: type) -> Presentation:
        try:
            presentation = model.model_validate(data)
        except pydantic.ValidationError as e:
            issues = format_validation_issues(e)
            logger.debug("Presentation failed validation: %s", issues)
            raise ValidationError("Schema validation failed", details=issues) from e

        logger.debug(
            "Parsed presentation %r with %d slide(s)",
            presentation.meta.title,
            len(presentation.slides),
        )
        return presentation


def _slide_lines(node: Optional[yaml.Node]) -> List[int]:
    """1-based start line of each item of the top-level ``slides`` sequence."""
    if not isinstance(node, yaml.MappingNode):
        return []
    for key_node, value_node in node.value:
        if isinstance(key_node, yaml.ScalarNode) and key_node.value == "slides":
            if isinstance(value_node, yaml.SequenceNode):
                return [item.start_mark.line + 1 for item in value_node.value]
            return []
    return []
