"""Word document renderer.

Uses python-docx to build an A4 document with the default template
typography: Helvetica 12pt, 1.5 line spacing and fixed page margins.
"""

import logging
import re
from pathlib import Path
from typing import Any

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Mm, Pt

from medidoc.interfaces.renderer import BaseDocumentRenderer, RenderError, RenderMetadata
from medidoc.strategies.builder.models import BuilderElement, ElementType
from medidoc.strategies.renderers.text import DIVIDER_LINE, form_rows
from medidoc.strategies.template_engine.models import DEFAULT_STYLES, TemplateStyles

logger = logging.getLogger(__name__)

A4_WIDTH = Mm(210)
A4_HEIGHT = Mm(297)

_ALIGNMENT = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "right": WD_ALIGN_PARAGRAPH.RIGHT,
}

_HEADING_LEVEL = {"large": 1, "medium": 2, "small": 3}

# Characters XML 1.0 cannot carry; python-docx refuses them.
_XML_INVALID = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def xml_safe(text: str) -> str:
    return _XML_INVALID.sub("", text)


class DocxRenderer(BaseDocumentRenderer):
    """Renders documents to ``.docx`` files."""

    def __init__(self, styles: TemplateStyles | None = None) -> None:
        self._styles = styles or DEFAULT_STYLES

    @property
    def extension(self) -> str:
        return ".docx"

    @property
    def media_type(self) -> str:
        return "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

    def render_text(self, metadata: RenderMetadata, content: str, output_path: Path) -> Path:
        doc = self._new_document(metadata)

        for line in content.splitlines():
            doc.add_paragraph(xml_safe(line))

        return self._save(doc, output_path)

    def render_form(
        self,
        metadata: RenderMetadata,
        elements: list[BuilderElement],
        values: dict[str, Any],
        output_path: Path,
    ) -> Path:
        doc = self._new_document(metadata)

        for element_type, element, text in form_rows(elements, values):
            match element_type:
                case ElementType.HEADER:
                    level = _HEADING_LEVEL.get(element.properties.font_size or "medium", 2)
                    heading = doc.add_heading(xml_safe(element.label), level=level)
                    if element.properties.alignment:
                        heading.alignment = _ALIGNMENT[element.properties.alignment]
                case ElementType.DIVIDER:
                    doc.add_paragraph(DIVIDER_LINE)
                case ElementType.PARAGRAPH:
                    doc.add_paragraph().add_run(f"{xml_safe(element.label)}:").bold = True
                    for line in text.splitlines() or [""]:
                        doc.add_paragraph(xml_safe(line))
                case _:
                    paragraph = doc.add_paragraph()
                    paragraph.add_run(f"{xml_safe(element.label)}: ").bold = True
                    paragraph.add_run(xml_safe(text))

        return self._save(doc, output_path)

    def _new_document(self, metadata: RenderMetadata):
        doc = Document()

        section = doc.sections[0]
        section.page_width = A4_WIDTH
        section.page_height = A4_HEIGHT
        if self._styles.page_margins:
            top, right, bottom, left = self._styles.page_margins
            section.top_margin = Pt(top)
            section.right_margin = Pt(right)
            section.bottom_margin = Pt(bottom)
            section.left_margin = Pt(left)

        normal = doc.styles["Normal"]
        if self._styles.font_family:
            normal.font.name = self._styles.font_family
        if self._styles.font_size:
            normal.font.size = Pt(self._styles.font_size)
        if self._styles.line_height:
            normal.paragraph_format.line_spacing = self._styles.line_height

        title = doc.add_heading(xml_safe(metadata.title), level=0)
        title.alignment = WD_ALIGN_PARAGRAPH.CENTER

        for line in (metadata.clinic_name, metadata.doctor_name):
            if line:
                doc.add_paragraph(xml_safe(line)).alignment = WD_ALIGN_PARAGRAPH.CENTER
        if metadata.date:
            dated = doc.add_paragraph(f"Date: {xml_safe(metadata.date)}")
            dated.alignment = WD_ALIGN_PARAGRAPH.RIGHT

        return doc

    def _save(self, doc, output_path: Path) -> Path:
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            doc.save(str(output_path))
        except Exception as e:
            logger.error(f"Failed to save Word document: {e}", exc_info=True)
            raise RenderError(f"Failed to save {output_path}: {e}") from e

        logger.info(f"Rendered Word document: {output_path}")
        return output_path
