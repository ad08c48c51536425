"""Microsoft Word (.docx) file handler."""

import io
import logging

from docx import Document
from docx.shared import Emu, Pt, RGBColor

from miaobi.formats.base import ExportError, FormatHandler
from miaobi.formatting.ir import (
    BODY_FONT_SIZE_PT,
    DocumentParagraph,
    ImageRun,
    RenderedDocument,
    TextRun,
)

logger = logging.getLogger(__name__)

# Word measures drawings in EMU; one CSS pixel at 96 DPI is 9525 EMU
EMU_PER_PIXEL = 9525


def pixels_to_emu(pixels: float) -> Emu:
    """Convert a pixel length at 96 DPI to EMU."""
    return Emu(int(round(pixels * EMU_PER_PIXEL)))


class DOCXHandler(FormatHandler):
    """Handler for Microsoft Word (.docx) files.

    Uses python-docx with run-level formatting: size, bold, italic and
    colour for text runs, in-memory pictures for image runs.
    """

    @property
    def extension(self) -> str:
        return ".docx"

    @property
    def media_type(self) -> str:
        return "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

    def render(self, document: RenderedDocument) -> bytes:
        """Pack the document into .docx bytes."""
        try:
            doc = self._build(document)
            buffer = io.BytesIO()
            doc.save(buffer)
        except Exception as e:
            raise ExportError(f"Failed to build Word document: {e}") from e

        data = buffer.getvalue()
        logger.debug(
            "Packed %d paragraph(s), %d image(s) into %d bytes",
            len(document.paragraphs),
            document.image_count,
            len(data),
        )
        return data

    def _build(self, document: RenderedDocument):
        doc = Document()

        # Set default font
        font = doc.styles["Normal"].font
        font.size = Pt(BODY_FONT_SIZE_PT)

        title = document.metadata.get("title")
        if title:
            doc.core_properties.title = str(title)

        for paragraph in document.paragraphs:
            self._add_paragraph(doc, paragraph)

        return doc

    def _add_paragraph(self, doc, paragraph: DocumentParagraph) -> None:
        para = doc.add_paragraph()
        para.paragraph_format.space_after = Pt(paragraph.space_after_pt)

        for run_data in paragraph.runs:
            if isinstance(run_data, ImageRun):
                self._add_image(para, run_data)
            else:
                self._add_text(para, run_data)

    def _add_text(self, para, run_data: TextRun) -> None:
        run = para.add_run(run_data.text)
        run.bold = run_data.bold
        run.italic = run_data.italic
        run.font.size = Pt(run_data.size_pt)
        if run_data.color:
            run.font.color.rgb = RGBColor.from_string(run_data.color)

    def _add_image(self, para, run_data: ImageRun) -> None:
        run = para.add_run()
        run.add_picture(
            io.BytesIO(run_data.image.data),
            width=pixels_to_emu(run_data.width),
            height=pixels_to_emu(run_data.height),
        )
        if run_data.alt_text:
            # python-docx has no setter for the picture description
            for doc_pr in run.element.xpath(".//wp:docPr"):
                doc_pr.set("descr", run_data.alt_text)
