"""Tests for the document assembler."""

import pytest

from miaobi.core.assembler import (
    DEFAULT_MAX_IMAGE_WIDTH,
    DocumentAssembler,
    fallback_text,
    scale_to_width,
)
from miaobi.formatting.ir import (
    FALLBACK_COLOR,
    ImageRun,
    ImageSpan,
    LoadedImage,
    TextRun,
    TextSpan,
)
from miaobi.formatting.parser import LineSegmenter


def image(width: int, height: int) -> LoadedImage:
    return LoadedImage(url="u", data=b"", width=width, height=height)


class TestScaleToWidth:
    """Tests for aspect-preserving scaling."""

    @pytest.mark.parametrize("size", [(100, 80), (550, 300), (1, 1)])
    def test_small_images_keep_natural_size(self, size):
        """Test that images at or under the limit are untouched."""
        assert scale_to_width(*size, max_width=550) == size

    @pytest.mark.parametrize("size", [(1100, 600), (551, 1000), (4000, 3)])
    def test_wide_images_scale_to_max(self, size):
        """Test that wide images are scaled down with the same ratio."""
        width, height = scale_to_width(*size, max_width=550)

        assert width == 550
        assert height / width == pytest.approx(size[1] / size[0])

    def test_never_upscales(self):
        """Test that the displayed width never exceeds the limit."""
        for natural in range(1, 2000, 37):
            width, _ = scale_to_width(natural, 100, max_width=550)
            assert width <= 550


class TestDocumentAssembler:
    """Tests for the DocumentAssembler class."""

    @pytest.fixture
    def assembler(self) -> DocumentAssembler:
        return DocumentAssembler()

    def test_default_max_width(self, assembler: DocumentAssembler):
        """Test that the page-width default is 550 pixels."""
        assert assembler.max_image_width == DEFAULT_MAX_IMAGE_WIDTH == 550

    def test_text_runs_use_body_size(self, assembler: DocumentAssembler):
        """Test that text spans become 12pt plain runs."""
        paragraph = assembler.build_paragraph([TextSpan("hello")])

        assert paragraph.runs == [TextRun(text="hello", size_pt=12.0)]

    def test_image_run_is_scaled(self, assembler: DocumentAssembler):
        """Test that resolved images become scaled image runs."""
        paragraph = assembler.build_paragraph(
            [ImageSpan(alt_text="big", url="u", image=image(1100, 400))]
        )
        run = paragraph.runs[0]

        assert isinstance(run, ImageRun)
        assert (run.width, run.height) == (550, 200)
        assert run.alt_text == "big"

    def test_missing_image_becomes_visible_fallback(self, assembler: DocumentAssembler):
        """Test that unresolved images render as bold red markers."""
        paragraph = assembler.build_paragraph([ImageSpan(alt_text="x", url="u")])
        run = paragraph.runs[0]

        assert isinstance(run, TextRun)
        assert run.text == fallback_text("x") == " [Image: x] "
        assert run.bold is True
        assert run.color == FALLBACK_COLOR
        assert run.is_fallback is True

    def test_failed_image_scenario(self, assembler: DocumentAssembler):
        """Test the text / fallback / text paragraph for a failed fetch."""
        segmenter = LineSegmenter({})
        document = assembler.assemble(
            segmenter.segment_text("Hello ![x](http://bad.url/a.png) World")
        )

        assert len(document.paragraphs) == 1
        runs = document.paragraphs[0].runs
        assert len(runs) == 3
        assert runs[0].text == "Hello "
        assert runs[1].is_fallback and "x" in runs[1].text
        assert runs[2].text == " World"

    def test_empty_input_gives_one_empty_paragraph(self, assembler: DocumentAssembler):
        """Test that an empty string still produces a paragraph."""
        document = assembler.assemble(LineSegmenter().segment_text(""))

        assert len(document.paragraphs) == 1
        assert document.paragraphs[0].is_empty

    def test_paragraphs_follow_line_order(self, assembler: DocumentAssembler):
        """Test one paragraph per line, blank lines preserved."""
        text = "first\n\nthird\nfourth"
        document = assembler.assemble(LineSegmenter().segment_text(text))

        assert [p.plain_text for p in document.paragraphs] == [
            "first",
            "",
            "third",
            "fourth",
        ]
        assert {p.space_after_pt for p in document.paragraphs} == {6.0}

    def test_counts(self, assembler: DocumentAssembler):
        """Test image and fallback counters on the document."""
        segmenter = LineSegmenter({"ok": image(10, 10)})
        document = assembler.assemble(
            segmenter.segment_text("![a](ok) ![b](gone)\n![c](ok)")
        )

        assert document.image_count == 2
        assert document.fallback_count == 1
