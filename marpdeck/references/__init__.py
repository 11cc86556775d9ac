"""Citations: extraction, formatting and bibliography generation over CSL-JSON items."""

from marpdeck.references.bibliography import BibliographyGenerator, BibliographyResult
from marpdeck.references.extractor import CitationExtractor, ExtractedCitation
from marpdeck.references.formatter import CitationFormatter, FormatterConfig
from marpdeck.references.source import InMemoryReferenceSource, ReferenceSource

__all__ = [
    "BibliographyGenerator",
    "BibliographyResult",
    "CitationExtractor",
    "CitationFormatter",
    "ExtractedCitation",
    "FormatterConfig",
    "InMemoryReferenceSource",
    "ReferenceSource",
]
