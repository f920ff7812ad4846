"""Rendering sink interface.

A renderer turns a finished document into an output file. It consumes
either a V1 title plus substituted text, or a V2 list of builder elements
with their sanitized values.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from medidoc.strategies.builder.models import BuilderElement


class RenderError(RuntimeError):
    """Raised when a document cannot be written."""


@dataclass(frozen=True)
class RenderMetadata:
    """Header information printed on every rendered document.

    Attributes:
        title: Document name shown as the heading.
        clinic_name: Optional clinic line under the heading.
        doctor_name: Optional doctor line.
        date: Human-readable date of the document.
    """

    title: str
    clinic_name: str | None = None
    doctor_name: str | None = None
    date: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


class BaseDocumentRenderer(ABC):
    """Abstract base class for document rendering strategies."""

    @property
    @abstractmethod
    def extension(self) -> str:
        """File extension of rendered output, including the dot."""

    @property
    @abstractmethod
    def media_type(self) -> str:
        """MIME type of rendered output."""

    @abstractmethod
    def render_text(self, metadata: RenderMetadata, content: str, output_path: Path) -> Path:
        """Render a V1 document whose body is already substituted text.

        Args:
            metadata: Heading information.
            content: The substituted document body.
            output_path: Destination file.

        Returns:
            The path written.

        Raises:
            RenderError: If the file cannot be produced.
        """

    @abstractmethod
    def render_form(
        self,
        metadata: RenderMetadata,
        elements: list[BuilderElement],
        values: dict[str, Any],
        output_path: Path,
    ) -> Path:
        """Render a V2 document from its schema elements and values.

        Raises:
            RenderError: If the file cannot be produced.
        """
