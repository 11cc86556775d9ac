"""
Error hierarchy for marpdeck.

Every error carries a ``kind`` tag so callers can decide how to report it
(e.g. re-parse with line information for Syntax/Validation errors).

Parse boundary:      ParseError (Syntax), ValidationError (Validation)
Template boundary:   TemplateDefinitionError, TemplateRenderError
Transform boundary:  TemplateNotFoundError, ContentValidationError
Collaborators:       IconError (citation lookups never fail on unknown ids)
Orchestration:       PipelineError (wraps any of the above with a stage)
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class MarpDeckError(Exception):
    """Base class for all marpdeck errors."""

    kind: str = "Error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.details is not None:
            d["details"] = self.details if isinstance(
                self.details, (list, dict, str, int, float, bool)
            ) else str(self.details)
        return d


class ParseError(MarpDeckError):
    """Source text is not well-formed YAML (or could not be read)."""

    kind = "Syntax"


class ValidationError(MarpDeckError):
    """Well-formed source that does not match the presentation schema.

    ``details`` is a list of ``{"path": ..., "message": ...}`` records.
    """

    kind = "Validation"

    @property
    def field_errors(self) -> list:
        errors = []
        for issue in self.details or []:
            path = issue.get("path", "")
            errors.append(f"{path}: {issue['message']}" if path else issue["message"])
        return errors


class TemplateDefinitionError(MarpDeckError):
    """A template declaration failed the definition-level schema."""

    kind = "TemplateDefinition"


class TemplateRenderError(MarpDeckError):
    """The template engine rejected a template (syntax or runtime error)."""

    kind = "Render"


class TransformError(MarpDeckError):
    """Base class for per-slide transformation failures."""

    kind = "Transform"

    def __init__(
        self,
        message: str,
        slide: Optional[Any] = None,
        details: Optional[Any] = None,
        slide_index: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.slide = slide
        self.slide_index = slide_index


class TemplateNotFoundError(TransformError):
    kind = "TemplateNotFound"


class ContentValidationError(TransformError):
    """Slide content does not satisfy its template's schema."""

    kind = "ContentValidation"


class IconError(MarpDeckError):
    kind = "Icon"


class PipelineError(MarpDeckError):
    """Failure of one pipeline stage; the original error is ``__cause__``."""

    kind = "Pipeline"

    def __init__(self, message: str, stage: str, details: Optional[Any] = None):
        super().__init__(message, details)
        self.stage = stage

    @property
    def cause_kind(self) -> Optional[str]:
        cause = self.__cause__
        if isinstance(cause, MarpDeckError):
            return cause.kind
        return None

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["stage"] = self.stage
        if self.cause_kind:
            d["cause_kind"] = self.cause_kind
        return d
