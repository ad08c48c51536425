"""Tests for the Word format handler."""

import io
from pathlib import Path

import pytest
from docx import Document
from docx.shared import Pt, RGBColor

from miaobi.formats.base import ExportError
from miaobi.formats.docx_handler import DOCXHandler, pixels_to_emu
from miaobi.formatting.ir import (
    DocumentParagraph,
    ImageRun,
    LoadedImage,
    RenderedDocument,
    TextRun,
    TextStyle,
)


def load(data: bytes):
    return Document(io.BytesIO(data))


class TestDOCXHandler:
    """Tests for the DOCX handler."""

    @pytest.fixture
    def handler(self) -> DOCXHandler:
        return DOCXHandler()

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("report", "report.docx"),
            ("report.docx", "report.docx"),
            ("REPORT.DOCX", "REPORT.DOCX"),
            ("notes.md", "notes.md.docx"),
            ("我的文章", "我的文章.docx"),
        ],
    )
    def test_ensure_extension(self, handler: DOCXHandler, name: str, expected: str):
        """Test that .docx is appended only when missing."""
        assert handler.ensure_extension(name) == expected

    def test_pixels_to_emu(self):
        """Test the 96 DPI pixel conversion."""
        assert pixels_to_emu(96) == 914400
        assert pixels_to_emu(1.5) == 14288

    def test_text_runs(self, handler: DOCXHandler):
        """Test size, bold and colour on text runs."""
        document = RenderedDocument(
            paragraphs=[
                DocumentParagraph(
                    runs=[
                        TextRun(text="plain "),
                        TextRun(text="marker", style=TextStyle.BOLD, color="FF0000"),
                    ]
                )
            ]
        )

        doc = load(handler.render(document))
        runs = doc.paragraphs[0].runs

        assert doc.paragraphs[0].text == "plain marker"
        assert runs[0].font.size == Pt(12)
        assert runs[1].bold is True
        assert runs[1].font.color.rgb == RGBColor(0xFF, 0x00, 0x00)
        assert doc.paragraphs[0].paragraph_format.space_after == Pt(6)

    def test_blank_paragraphs_preserved(self, handler: DOCXHandler):
        """Test that empty paragraphs survive packing."""
        document = RenderedDocument(
            paragraphs=[
                DocumentParagraph(runs=[TextRun("a")]),
                DocumentParagraph(runs=[TextRun("")]),
                DocumentParagraph(runs=[TextRun("c")]),
            ]
        )

        doc = load(handler.render(document))

        assert [p.text for p in doc.paragraphs] == ["a", "", "c"]

    def test_image_run_embedded_at_display_size(self, handler: DOCXHandler, png_bytes):
        """Test that images are embedded with their scaled size."""
        loaded = LoadedImage(url="u", data=png_bytes(1100, 400), width=1100, height=400)
        document = RenderedDocument(
            paragraphs=[
                DocumentParagraph(
                    runs=[ImageRun(image=loaded, width=550, height=200, alt_text="chart")]
                )
            ]
        )

        doc = load(handler.render(document))

        assert len(doc.inline_shapes) == 1
        shape = doc.inline_shapes[0]
        assert shape.width == pixels_to_emu(550)
        assert shape.height == pixels_to_emu(200)
        assert doc.element.xpath("//wp:docPr")[0].get("descr") == "chart"

    def test_title_metadata(self, handler: DOCXHandler):
        """Test that the title lands in the core properties."""
        document = RenderedDocument(metadata={"title": "我的文章"})

        doc = load(handler.render(document))

        assert doc.core_properties.title == "我的文章"

    def test_corrupt_image_is_export_error(self, handler: DOCXHandler):
        """Test that packing failures surface as ExportError."""
        bogus = LoadedImage(url="u", data=b"not an image", width=1, height=1)
        document = RenderedDocument(
            paragraphs=[DocumentParagraph(runs=[ImageRun(image=bogus, width=1, height=1)])]
        )

        with pytest.raises(ExportError):
            handler.render(document)

    def test_write_appends_extension(self, handler: DOCXHandler, tmp_path: Path):
        """Test that write saves to <name>.docx."""
        document = RenderedDocument(paragraphs=[DocumentParagraph(runs=[TextRun("x")])])

        written = handler.write(document, tmp_path / "out" / "article")

        assert written == tmp_path / "out" / "article.docx"
        assert load(written.read_bytes()).paragraphs[0].text == "x"

    def test_write_failure_is_export_error(self, handler: DOCXHandler, tmp_path: Path):
        """Test that an unwritable target raises ExportError."""
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        document = RenderedDocument(paragraphs=[DocumentParagraph(runs=[TextRun("x")])])

        with pytest.raises(ExportError):
            handler.write(document, blocker / "nested" / "article")
