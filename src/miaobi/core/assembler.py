"""Convert segmented lines into a render-ready document."""

from typing import Iterable

from miaobi.formatting.ir import (
    BODY_FONT_SIZE_PT,
    FALLBACK_COLOR,
    PARAGRAPH_SPACE_AFTER_PT,
    DocumentParagraph,
    ImageRun,
    ImageSpan,
    LoadedImage,
    RenderedDocument,
    Run,
    Span,
    TextRun,
    TextStyle,
)

# Roughly the printable width of an A4/Letter page at 96 DPI
DEFAULT_MAX_IMAGE_WIDTH = 550


def scale_to_width(width: float, height: float, max_width: float) -> tuple[float, float]:
    """Fit an image into max_width, preserving its aspect ratio.

    Images at or under the limit keep their natural size; wider images are
    scaled down so their width equals max_width.
    """
    if width > max_width:
        ratio = max_width / width
        return max_width, height * ratio
    return width, height


def fallback_text(alt_text: str) -> str:
    """Visible marker for an image that failed to load."""
    return f" [Image: {alt_text}] "


class DocumentAssembler:
    """Build a RenderedDocument from lines of spans."""

    def __init__(
        self,
        max_image_width: float = DEFAULT_MAX_IMAGE_WIDTH,
        font_size_pt: float = BODY_FONT_SIZE_PT,
        space_after_pt: float = PARAGRAPH_SPACE_AFTER_PT,
    ) -> None:
        self.max_image_width = max_image_width
        self.font_size_pt = font_size_pt
        self.space_after_pt = space_after_pt

    def assemble(
        self,
        lines: Iterable[list[Span]],
        metadata: dict | None = None,
    ) -> RenderedDocument:
        """Assemble one paragraph per line, in input order."""
        document = RenderedDocument(metadata=metadata or {})
        for spans in lines:
            document.add_paragraph(self.build_paragraph(spans))
        return document

    def build_paragraph(self, spans: list[Span]) -> DocumentParagraph:
        """Convert the spans of one line into a paragraph of runs."""
        runs: list[Run] = []
        for span in spans:
            if not isinstance(span, ImageSpan):
                runs.append(TextRun(text=span.text, size_pt=self.font_size_pt))
            elif span.image is not None:
                runs.append(self.image_run(span.image, span.alt_text))
            else:
                runs.append(
                    TextRun(
                        text=fallback_text(span.alt_text),
                        style=TextStyle.BOLD,
                        size_pt=self.font_size_pt,
                        color=FALLBACK_COLOR,
                        is_fallback=True,
                    )
                )
        return DocumentParagraph(runs=runs, space_after_pt=self.space_after_pt)

    def image_run(self, image: LoadedImage, alt_text: str = "") -> ImageRun:
        """Size an image run to fit the page width."""
        width, height = scale_to_width(image.width, image.height, self.max_image_width)
        return ImageRun(image=image, width=width, height=height, alt_text=alt_text)
