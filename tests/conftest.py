"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import AsyncMock

import pytest

from marpdeck.core.models import PresentationMeta
from marpdeck.references.formatter import CitationFormatter
from marpdeck.references.source import InMemoryReferenceSource
from marpdeck.templates.engine import TemplateEngine
from marpdeck.templates.loader import TemplateLoader


def write_template(directory: Path, filename: str, body: str) -> Path:
    """Write a template YAML file, creating parent directories."""
    path = directory / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


TITLE_TEMPLATE = """\
name: title
description: Title slide
category: basic
schema:
  type: object
  required: [title]
  properties:
    title:
      type: string
    subtitle:
      type: string
output: |
  # {{ content.title }}
"""


@pytest.fixture
def csl_items() -> List[Dict[str, Any]]:
    """Sample CSL-JSON items."""
    return [
        {
            "id": "smith2024",
            "author": [{"family": "Smith", "given": "John"}],
            "issued": {"date-parts": [[2024]]},
            "title": "A study of slides",
            "container-title": "Journal of Decks",
            "volume": "12",
            "issue": "3",
            "page": "45-67",
            "PMID": "12345678",
        },
        {
            "id": "doe2023",
            "author": [
                {"family": "Doe", "given": "Jane"},
                {"family": "Roe", "given": "Rick"},
            ],
            "issued": {"date-parts": [[2023]]},
            "title": "Another study",
            "DOI": "10.1000/xyz",
        },
        {
            "id": "lee2020",
            "author": [
                {"family": "Lee", "given": "Ann"},
                {"family": "Kim", "given": "Bo"},
                {"family": "Park", "given": "Chan"},
            ],
            "issued": {"date-parts": [[2020]]},
            "title": "Third study",
        },
        {
            "id": "tanaka2022",
            "author": [
                {"family": "田中", "given": "太郎"},
                {"family": "山田", "given": "花子"},
                {"family": "佐藤", "given": "次郎"},
            ],
            "issued": {"date-parts": [[2022]]},
            "title": "日本語の研究",
            "container-title": "日本医学雑誌",
        },
    ]


@pytest.fixture
def reference_source(csl_items) -> InMemoryReferenceSource:
    return InMemoryReferenceSource(csl_items)


@pytest.fixture
def citation_formatter(reference_source) -> CitationFormatter:
    return CitationFormatter(reference_source)


@pytest.fixture
def icon_resolver() -> AsyncMock:
    """Icon resolver whose render returns ``<i>name</i>``."""
    resolver = AsyncMock()
    resolver.render.side_effect = lambda name, options=None: f"<i>{name}</i>"
    return resolver


@pytest.fixture
def engine() -> TemplateEngine:
    return TemplateEngine()


@pytest.fixture
def loader() -> TemplateLoader:
    return TemplateLoader()


@pytest.fixture
def builtin_loader() -> TemplateLoader:
    loader = TemplateLoader()
    loader.load_builtin()
    return loader


@pytest.fixture
def meta() -> PresentationMeta:
    return PresentationMeta(title="Test Deck", author="Ann Author")


@pytest.fixture
def template_dir(tmp_path) -> Path:
    """Empty directory for template trees."""
    directory = tmp_path / "templates"
    directory.mkdir()
    return directory


@pytest.fixture
def template_writer():
    """The ``write_template(directory, filename, body)`` helper."""
    return write_template


@pytest.fixture
def title_template() -> str:
    """YAML declaration of a minimal ``title`` template."""
    return TITLE_TEMPLATE
