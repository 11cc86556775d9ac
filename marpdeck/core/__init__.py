"""
marpdeck.core: parsing, transformation and rendering.

The pipeline lives in :mod:`marpdeck.core.pipeline`; it is not imported
here because it pulls in every collaborator package.
"""

from marpdeck.core.models import (
    Presentation,
    PresentationMeta,
    PresentationWithLines,
    ReferencesSettings,
    Slide,
)
from marpdeck.core.parser import Parser

__all__ = [
    "Parser",
    "Presentation",
    "PresentationMeta",
    "PresentationWithLines",
    "ReferencesSettings",
    "Slide",
]
