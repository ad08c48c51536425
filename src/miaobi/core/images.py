"""Concurrent image fetching and decoding for Word export."""

import asyncio
import base64
import io
import logging
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import unquote, unquote_to_bytes, urlparse

import httpx
from PIL import Image

from miaobi.formatting.ir import LoadedImage

logger = logging.getLogger(__name__)

# Pillow format names python-docx can embed without conversion
EMBEDDABLE_FORMATS = frozenset({"PNG", "JPEG", "GIF", "BMP", "TIFF"})


class ImageLoadError(Exception):
    """A single image could not be fetched or decoded."""

    pass


def decode_image(url: str, data: bytes) -> LoadedImage:
    """Decode image bytes and read their natural size.

    Formats Word cannot embed (WebP, ICO, ...) are re-encoded to PNG.

    Raises:
        ImageLoadError: If the bytes are not a decodable image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            width, height = img.size
            fmt = (img.format or "").upper()
            if fmt not in EMBEDDABLE_FORMATS:
                buffer = io.BytesIO()
                img.convert("RGBA").save(buffer, format="PNG")
                data, fmt = buffer.getvalue(), "PNG"
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError(f"cannot decode image: {e}") from e

    if width <= 0 or height <= 0:
        raise ImageLoadError(f"image has no area ({width}x{height})")

    return LoadedImage(url=url, data=data, width=width, height=height, format=fmt)


def decode_data_uri(uri: str) -> bytes:
    """Return the payload of a ``data:`` URI."""
    header, sep, payload = uri.partition(",")
    if not sep:
        raise ImageLoadError("malformed data URI")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=False)
        return unquote_to_bytes(payload)
    except ValueError as e:
        raise ImageLoadError(f"malformed data URI: {e}") from e


class ImageResolver:
    """Fetch each distinct image url once, concurrently.

    Failures never propagate: an image that cannot be fetched or decoded
    is simply absent from the result, and the caller renders a fallback.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_concurrency: int = 8,
        base_dir: Optional[Path] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        allow_local_paths: bool = True,
    ) -> None:
        """Initialize the resolver.

        Args:
            timeout: Per-request timeout in seconds, None for no timeout
            max_concurrency: Maximum number of fetches in flight
            base_dir: Directory that relative image paths resolve against
            transport: Optional httpx transport (used by tests)
            allow_local_paths: Whether file paths and ``file:`` urls may be
                read. Services handling untrusted input turn this off.
        """
        self.timeout = timeout
        self.max_concurrency = max_concurrency
        self.base_dir = base_dir
        self.transport = transport
        self.allow_local_paths = allow_local_paths

    async def resolve(self, urls: Iterable[str]) -> dict[str, LoadedImage]:
        """Fetch and decode all urls, returning the successful ones by url."""
        distinct = list(dict.fromkeys(urls))
        if not distinct:
            return {}

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        ) as client:

            async def load(url: str) -> Optional[LoadedImage]:
                async with semaphore:
                    return await self._load(client, url)

            results = await asyncio.gather(*(load(url) for url in distinct))

        images = {url: image for url, image in zip(distinct, results) if image}
        logger.debug("Resolved %d of %d image(s)", len(images), len(distinct))
        return images

    async def _load(
        self, client: httpx.AsyncClient, url: str
    ) -> Optional[LoadedImage]:
        """Load one image, logging and returning None on any failure."""
        loop = asyncio.get_running_loop()
        try:
            data = await self._read_bytes(client, url)
            # Decoding is CPU-bound; keep it off the event loop
            return await loop.run_in_executor(None, decode_image, url, data)
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Export: HTTP %d fetching image %s", e.response.status_code, url
            )
        except httpx.HTTPError as e:
            logger.warning("Export: failed to fetch image %s: %s", url, e)
        except (ImageLoadError, httpx.InvalidURL, OSError, ValueError) as e:
            logger.warning("Export: failed to load image %s: %s", url, e)
        return None

    async def _read_bytes(self, client: httpx.AsyncClient, url: str) -> bytes:
        if url.startswith("data:"):
            return decode_data_uri(url)

        parsed = _parse_url(url)
        if parsed.scheme in ("http", "https"):
            response = await client.get(url)
            response.raise_for_status()
            return response.content

        path = self._local_path(url)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, path.read_bytes)

    def _local_path(self, url: str) -> Path:
        """Map a ``file:`` url or relative path to a filesystem path."""
        parsed = _parse_url(url)
        if parsed.scheme and len(parsed.scheme) > 1 and parsed.scheme != "file":
            raise ImageLoadError(f"unsupported url scheme: {parsed.scheme}")
        if not self.allow_local_paths:
            raise ImageLoadError("local image paths are not allowed")

        raw = unquote(parsed.path) if parsed.scheme == "file" else unquote(url)
        if "\x00" in raw:
            raise ImageLoadError("image path contains a null byte")

        path = Path(raw)
        if parsed.scheme == "file" or path.is_absolute():
            return path
        if self.base_dir is None:
            raise ImageLoadError("relative image path without a base directory")
        return self.base_dir / path


def _parse_url(url: str):
    try:
        return urlparse(url)
    except ValueError as e:
        raise ImageLoadError(f"malformed url: {e}") from e


def resolve_images(urls: Iterable[str], **kwargs) -> dict[str, LoadedImage]:
    """Synchronous wrapper around ``ImageResolver.resolve``."""
    return asyncio.run(ImageResolver(**kwargs).resolve(urls))
