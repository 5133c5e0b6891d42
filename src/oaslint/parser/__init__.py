"""Document parsing, reference resolution and text location."""

from .document import SpecDocument, SpecLoader, parse
from .locator import Fallback, PositionLocator, ScanCursor, TextRange
from .refs import RefResolver

__all__ = [
    "SpecDocument",
    "SpecLoader",
    "parse",
    "RefResolver",
    "PositionLocator",
    "ScanCursor",
    "TextRange",
    "Fallback",
]
