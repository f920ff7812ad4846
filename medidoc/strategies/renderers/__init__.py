"""Concrete document renderer implementations."""

from medidoc.strategies.renderers.docx import DocxRenderer
from medidoc.strategies.renderers.text import PlainTextRenderer

__all__ = [
    "DocxRenderer",
    "PlainTextRenderer",
]
