"""Markdown image parser: splits lines into text and image spans."""

import re
from typing import Mapping, Optional

from miaobi.formatting.ir import (
    ImageReference,
    ImageSpan,
    LoadedImage,
    Span,
    TextSpan,
)


# ![alt](url) - alt may be empty, url may not; no nesting
IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")


def find_image_references(text: str) -> list[ImageReference]:
    """List every image markup occurrence in the text, left to right."""
    return [
        ImageReference(
            alt_text=match.group(1),
            url=match.group(2),
            source_offset=match.start(),
        )
        for match in IMAGE_PATTERN.finditer(text)
    ]


def unique_image_urls(text: str) -> list[str]:
    """Distinct image urls in first-seen order."""
    return list(dict.fromkeys(ref.url for ref in find_image_references(text)))


class LineSegmenter:
    """Decompose lines of markdown into ordered text and image spans."""

    def __init__(self, images: Optional[Mapping[str, LoadedImage]] = None) -> None:
        """Initialize the segmenter.

        Args:
            images: Resolved images keyed by their raw url. Urls missing
                from the map produce unresolved image spans.
        """
        self.images: Mapping[str, LoadedImage] = images or {}

    def segment(self, line: str) -> list[Span]:
        """Split one line into spans.

        A line without image markup yields exactly one text span equal to
        the line, even when the line is empty. Otherwise non-empty text
        around and between matches becomes text spans and each match an
        image span.
        """
        spans: list[Span] = []
        last_index = 0

        for match in IMAGE_PATTERN.finditer(line):
            if match.start() > last_index:
                spans.append(TextSpan(line[last_index : match.start()]))

            alt_text, url = match.group(1), match.group(2)
            spans.append(
                ImageSpan(alt_text=alt_text, url=url, image=self.images.get(url))
            )
            last_index = match.end()

        if not spans:
            return [TextSpan(line)]

        if last_index < len(line):
            spans.append(TextSpan(line[last_index:]))

        return spans

    def segment_text(self, text: str) -> list[list[Span]]:
        """Segment every line of the text; lines split on ``\\n`` only."""
        return [self.segment(line) for line in text.split("\n")]


def spans_to_markdown(spans: list[Span]) -> str:
    """Reassemble spans into the original line."""
    return "".join(span.markup for span in spans)
