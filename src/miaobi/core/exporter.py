"""Markdown-to-Word export pipeline."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from miaobi.config import get_settings
from miaobi.core.assembler import DocumentAssembler
from miaobi.core.images import ImageResolver
from miaobi.formats.docx_handler import DOCXHandler
from miaobi.formatting.ir import RenderedDocument
from miaobi.formatting.parser import LineSegmenter, unique_image_urls

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "document.docx"


class WordExporter:
    """Orchestrates the export pipeline.

    Pipeline:
    1. Collect the distinct image urls referenced in the text
    2. Fetch and decode them concurrently (failures are dropped)
    3. Split the text into lines and each line into spans
    4. Assemble one paragraph per line
    5. Pack the document as .docx

    Each call builds its own image map; nothing is shared between calls.
    """

    def __init__(
        self,
        max_image_width: Optional[int] = None,
        fetch_timeout: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        base_dir: Optional[Path] = None,
        resolver: Optional[ImageResolver] = None,
        allow_local_paths: bool = True,
    ) -> None:
        """Initialize the exporter.

        Args:
            max_image_width: Widest an image may be displayed, in pixels
            fetch_timeout: Per-image fetch timeout in seconds (None = none)
            max_concurrency: Maximum simultaneous image fetches
            base_dir: Directory relative image paths resolve against
            resolver: Pre-built resolver (overrides the fetch options)
            allow_local_paths: Whether images may be read from disk
        """
        settings = get_settings()
        self.resolver = resolver or ImageResolver(
            timeout=fetch_timeout if fetch_timeout is not None else settings.image_fetch_timeout,
            max_concurrency=max_concurrency or settings.image_concurrency,
            base_dir=base_dir,
            allow_local_paths=allow_local_paths,
        )
        self.assembler = DocumentAssembler(
            max_image_width=max_image_width or settings.image_max_width,
        )
        self.handler = DOCXHandler()

    async def build_document(
        self,
        content: str,
        metadata: Optional[dict] = None,
    ) -> RenderedDocument:
        """Resolve images and assemble the document for the content."""
        images = await self.resolver.resolve(unique_image_urls(content))
        segmenter = LineSegmenter(images)
        document = self.assembler.assemble(
            segmenter.segment_text(content),
            metadata=metadata,
        )
        if document.fallback_count:
            logger.warning(
                "%d image(s) could not be loaded and were replaced by markers",
                document.fallback_count,
            )
        return document

    async def render_async(self, content: str, title: Optional[str] = None) -> bytes:
        """Build the document and pack it to .docx bytes."""
        document = await self.build_document(content, metadata={"title": title})
        # Packing is synchronous; run it off the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.handler.render, document)

    async def export_async(
        self,
        content: str,
        filename: str = DEFAULT_FILENAME,
        output_dir: Optional[Path] = None,
    ) -> Path:
        """Build the document and save it as ``<filename>.docx``.

        Returns:
            The path written

        Raises:
            ExportError: If packing or saving fails
        """
        docx_name = self.handler.ensure_extension(filename)
        title = docx_name[: -len(self.handler.extension)]
        document = await self.build_document(content, metadata={"title": title})
        path = (output_dir or Path.cwd()) / docx_name
        loop = asyncio.get_running_loop()
        written = await loop.run_in_executor(None, self.handler.write, document, path)
        logger.info("Exported %d paragraph(s) to %s", len(document.paragraphs), written)
        return written

    def render(self, content: str, title: Optional[str] = None) -> bytes:
        """Synchronous wrapper around ``render_async``."""
        return asyncio.run(self.render_async(content, title))

    def export(
        self,
        content: str,
        filename: str = DEFAULT_FILENAME,
        output_dir: Optional[Path] = None,
    ) -> Path:
        """Synchronous wrapper around ``export_async``."""
        return asyncio.run(self.export_async(content, filename, output_dir))


def export_to_word(
    content: str,
    filename: str = DEFAULT_FILENAME,
    output_dir: Optional[Path] = None,
    **kwargs,
) -> Path:
    """Export markdown content to a Word document on disk."""
    return WordExporter(**kwargs).export(content, filename, output_dir)
