"""Abstract interfaces for pluggable strategies."""

from medidoc.interfaces.record_store import BaseRecordStore
from medidoc.interfaces.renderer import BaseDocumentRenderer, RenderError, RenderMetadata

__all__ = [
    "BaseRecordStore",
    "BaseDocumentRenderer",
    "RenderError",
    "RenderMetadata",
]
