"""Intermediate Representation for Word export.

This module defines the data structures that sit between a markdown
article and the rendered document. A source line is first decomposed
into spans (literal text or image markup), then each span becomes a
render-ready run inside one paragraph.
"""

from dataclasses import dataclass, field
from enum import Flag, auto
from typing import Optional, Union


# Body text size used for every run in an exported document.
BODY_FONT_SIZE_PT = 12.0

# Vertical space after each paragraph.
PARAGRAPH_SPACE_AFTER_PT = 6.0

# Fallback marker colour for images that could not be loaded.
FALLBACK_COLOR = "FF0000"


class TextStyle(Flag):
    """Text styling flags (combinable with |)."""

    NONE = 0
    BOLD = auto()
    ITALIC = auto()


# =============================================================================
# Source-side structures
# =============================================================================


@dataclass(frozen=True)
class ImageReference:
    """One ``![alt](url)`` occurrence in the source text.

    Attributes:
        alt_text: Text between the square brackets
        url: Raw url between the parentheses (not normalized)
        source_offset: Character offset of the ``!`` in the source
    """

    alt_text: str
    url: str
    source_offset: int

    @property
    def markup(self) -> str:
        """Markdown markup for this reference."""
        return f"![{self.alt_text}]({self.url})"


@dataclass(frozen=True)
class LoadedImage:
    """A fetched and decoded image.

    Attributes:
        url: The url the image was fetched from (lookup key)
        data: Raw image bytes, in a format Word can embed
        width: Natural width in pixels
        height: Natural height in pixels
        format: Image format name as reported by Pillow (PNG, JPEG, ...)
    """

    url: str
    data: bytes = field(repr=False)
    width: int
    height: int
    format: str = "PNG"


@dataclass
class TextSpan:
    """Literal text taken verbatim from a line."""

    text: str

    @property
    def markup(self) -> str:
        return self.text


@dataclass
class ImageSpan:
    """Image markup found in a line, with its resolved image if any."""

    alt_text: str
    url: str
    image: Optional[LoadedImage] = None

    @property
    def markup(self) -> str:
        return f"![{self.alt_text}]({self.url})"

    @property
    def resolved(self) -> bool:
        return self.image is not None


Span = Union[TextSpan, ImageSpan]


# =============================================================================
# Render-side structures
# =============================================================================


@dataclass
class TextRun:
    """A contiguous run of text with consistent styling.

    Attributes:
        text: The text content
        style: Combined style flags (BOLD, ITALIC, or both)
        size_pt: Font size in points
        color: Hex RGB colour (e.g. "FF0000"), None for the default colour
        is_fallback: True when the run stands in for an image that failed
    """

    text: str
    style: TextStyle = TextStyle.NONE
    size_pt: float = BODY_FONT_SIZE_PT
    color: Optional[str] = None
    is_fallback: bool = False

    @property
    def bold(self) -> bool:
        """Check if this run is bold."""
        return TextStyle.BOLD in self.style

    @property
    def italic(self) -> bool:
        """Check if this run is italic."""
        return TextStyle.ITALIC in self.style

    def __str__(self) -> str:
        return self.text


@dataclass
class ImageRun:
    """An image placed inline, with its displayed size in pixels."""

    image: LoadedImage
    width: float
    height: float
    alt_text: str = ""

    @property
    def text(self) -> str:
        return ""


Run = Union[TextRun, ImageRun]


@dataclass
class DocumentParagraph:
    """A paragraph of runs; one per source line.

    Attributes:
        runs: Ordered runs making up this paragraph
        space_after_pt: Vertical space after the paragraph
    """

    runs: list[Run] = field(default_factory=list)
    space_after_pt: float = PARAGRAPH_SPACE_AFTER_PT

    @property
    def plain_text(self) -> str:
        """Get the text content, without images."""
        return "".join(run.text for run in self.runs)

    @property
    def images(self) -> list[ImageRun]:
        return [run for run in self.runs if isinstance(run, ImageRun)]

    @property
    def is_empty(self) -> bool:
        """True when the paragraph renders nothing but vertical space."""
        return not self.plain_text and not self.images

    def __str__(self) -> str:
        return self.plain_text


@dataclass
class RenderedDocument:
    """Complete document ready for packing.

    Attributes:
        paragraphs: Paragraphs in source line order
        metadata: Free-form metadata (title, source path, ...)
    """

    paragraphs: list[DocumentParagraph] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    def add_paragraph(self, paragraph: DocumentParagraph) -> None:
        """Add a paragraph to the document."""
        self.paragraphs.append(paragraph)

    @property
    def plain_text(self) -> str:
        """Get the full text content, one line per paragraph."""
        return "\n".join(p.plain_text for p in self.paragraphs)

    @property
    def image_count(self) -> int:
        return sum(len(p.images) for p in self.paragraphs)

    @property
    def fallback_count(self) -> int:
        return sum(
            1
            for p in self.paragraphs
            for run in p.runs
            if isinstance(run, TextRun) and run.is_fallback
        )
