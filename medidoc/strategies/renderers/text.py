"""Plain-text renderer.

Writes UTF-8 ``.txt`` files. Also provides the element-to-row mapping the
other renderers share.
"""

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from medidoc.interfaces.renderer import BaseDocumentRenderer, RenderError, RenderMetadata
from medidoc.strategies.builder.models import BuilderElement, ElementType

logger = logging.getLogger(__name__)

DIVIDER_LINE = "_" * 60


def display_value(value: Any) -> str:
    """Format a sanitized field value for print."""
    match value:
        case None:
            return ""
        case bool():
            return "Yes" if value else "No"
        case float() if value.is_integer():
            return str(int(value))
        case _:
            return str(value)


def form_rows(
    elements: list[BuilderElement], values: dict[str, Any]
) -> Iterator[tuple[ElementType, BuilderElement, str]]:
    """Yield ``(type, element, printable value)`` in schema order."""
    for element in elements:
        match element.type:
            case ElementType.DIVIDER | ElementType.HEADER:
                yield element.type, element, ""
            case _:
                yield element.type, element, display_value(values.get(element.name))


def header_lines(metadata: RenderMetadata) -> list[str]:
    lines = [metadata.title]
    if metadata.clinic_name:
        lines.append(metadata.clinic_name)
    if metadata.doctor_name:
        lines.append(metadata.doctor_name)
    if metadata.date:
        lines.append(f"Date: {metadata.date}")
    return lines


class PlainTextRenderer(BaseDocumentRenderer):
    """Renders documents as plain text."""

    @property
    def extension(self) -> str:
        return ".txt"

    @property
    def media_type(self) -> str:
        return "text/plain"

    def render_text(self, metadata: RenderMetadata, content: str, output_path: Path) -> Path:
        body = "\n".join([*header_lines(metadata), DIVIDER_LINE, "", content])
        return self._write(body, output_path)

    def render_form(
        self,
        metadata: RenderMetadata,
        elements: list[BuilderElement],
        values: dict[str, Any],
        output_path: Path,
    ) -> Path:
        lines = [*header_lines(metadata), DIVIDER_LINE, ""]

        for element_type, element, text in form_rows(elements, values):
            match element_type:
                case ElementType.HEADER:
                    lines.extend(["", element.label.upper()])
                case ElementType.DIVIDER:
                    lines.append(DIVIDER_LINE)
                case ElementType.PARAGRAPH:
                    lines.extend([f"{element.label}:", text])
                case _:
                    lines.append(f"{element.label}: {text}")

        return self._write("\n".join(lines), output_path)

    def _write(self, body: str, output_path: Path) -> Path:
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(body + "\n", encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write text document: {e}", exc_info=True)
            raise RenderError(f"Failed to write {output_path}: {e}") from e

        logger.info(f"Rendered text document: {output_path}")
        return output_path
