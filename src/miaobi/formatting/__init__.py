"""Formatting utilities for parsing markdown into exportable structures."""

from miaobi.formatting.ir import (
    TextStyle,
    ImageReference,
    LoadedImage,
    TextSpan,
    ImageSpan,
    Span,
    TextRun,
    ImageRun,
    Run,
    DocumentParagraph,
    RenderedDocument,
)
from miaobi.formatting.parser import (
    IMAGE_PATTERN,
    LineSegmenter,
    find_image_references,
    spans_to_markdown,
    unique_image_urls,
)

__all__ = [
    "TextStyle",
    "ImageReference",
    "LoadedImage",
    "TextSpan",
    "ImageSpan",
    "Span",
    "TextRun",
    "ImageRun",
    "Run",
    "DocumentParagraph",
    "RenderedDocument",
    "IMAGE_PATTERN",
    "LineSegmenter",
    "find_image_references",
    "spans_to_markdown",
    "unique_image_urls",
]
