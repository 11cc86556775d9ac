"""
Data models for parsed presentations.

Pydantic models give the source schema its defaults (``theme``, ``slides``,
``content``, references settings) and its structured validation errors.
All models are frozen: a Presentation is owned by the parse call that
created it and never mutated afterwards.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_THEME = "default"
DEFAULT_CITATION_STYLE = "author-year-pmid"
RAW_TEMPLATE = "raw"


class ReferencesSettings(BaseModel):
    """Per-presentation citation settings (``meta.references``)."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    style: str = DEFAULT_CITATION_STYLE


class PresentationMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    author: Optional[str] = None
    date: Optional[str] = None
    theme: str = DEFAULT_THEME
    references: Optional[ReferencesSettings] = None

    @field_validator("date", mode="before")
    @classmethod
    def _date_to_str(cls, value: Any) -> Any:
        # YAML turns unquoted 2024-01-15 into a date object
        if isinstance(value, (dt.date, dt.datetime)):
            return value.isoformat()
        return value


class Slide(BaseModel):
    """One slide entry.

    ``content`` is an open mapping: only the fields declared by the slide's
    template schema are checked (at transform time), everything else passes
    through to the template untouched. For ``template: raw`` the ``raw``
    text is the slide body and ``content`` is ignored.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    template: str
    content: Dict[str, Any] = Field(default_factory=dict)
    css_class: Optional[str] = Field(default=None, alias="class")
    notes: Optional[str] = None
    raw: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _null_content(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def is_raw(self) -> bool:
        return self.template == RAW_TEMPLATE


class Presentation(BaseModel):
    model_config = ConfigDict(frozen=True)

    meta: PresentationMeta
    slides: List[Slide] = Field(default_factory=list)


class PresentationWithLines(Presentation):
    """Presentation plus the 1-based source line of each slide entry."""

    slide_lines: List[int] = Field(default_factory=list)
