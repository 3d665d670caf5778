"""
Image resolution and binary sniffing.

Fetches image payloads referenced by Markdown (remote URLs over HTTP, local
references through the caller's resource loader) and reads their format and
intrinsic pixel size from the raw bytes.
"""

import inspect
import re
from typing import Dict, List, Optional, Tuple

import httpx

from ..model.document_model import ConversionReport, ResourceLoader
from ..model.elements import DocumentElement, Image
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

MAX_VALID_DIMENSION = 10000
SVG_DEFAULT_SIZE = (300, 200)
DEFAULT_FETCH_TIMEOUT = 30.0

# Content types for every extension the sniffer can report
MEDIA_CONTENT_TYPES: Dict[str, str] = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
}

_JPEG_SOF_MARKERS = {0xC0, 0xC1, 0xC2, 0xC3, 0xC5, 0xC6, 0xC7, 0xC9, 0xCA, 0xCB, 0xCD, 0xCE, 0xCF}
_JPEG_STANDALONE_MARKERS = {0x01, 0xD8} | set(range(0xD0, 0xD8))
_SVG_TAG = re.compile(rb"<svg\b[^>]*>", re.IGNORECASE | re.DOTALL)
_SVG_LENGTH = r"""\b{name}\s*=\s*['"]?\s*([0-9]+(?:\.[0-9]+)?)\s*(?:px)?\s*['"]"""
_SVG_VIEWBOX = re.compile(
    r"""\bviewBox\s*=\s*['"]\s*[-0-9.]+[\s,]+[-0-9.]+[\s,]+([0-9.]+)[\s,]+([0-9.]+)\s*['"]""", re.IGNORECASE
)


def detect_format(data: bytes) -> str:
    """Return the image extension for a payload; unknown payloads are treated as PNG."""
    if data.startswith(b"\x89PNG"):
        return "png"
    if data.startswith(b"\xff\xd8"):
        return "jpeg"
    if data.startswith(b"GIF8"):
        return "gif"
    if _looks_like_svg(data):
        return "svg"
    return "png"


def probe_dimensions(data: bytes) -> Optional[Tuple[int, int]]:
    """Read the intrinsic (width, height) in pixels, or ``None`` when unknown."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        size = _png_size(data)
    elif data.startswith(b"\xff\xd8"):
        size = _jpeg_size(data)
    elif data.startswith(b"GIF8"):
        size = _gif_size(data)
    elif _looks_like_svg(data):
        size = _svg_size(data)
    else:
        size = None

    if size is None:
        return None
    width, height = size
    if 0 < width < MAX_VALID_DIMENSION and 0 < height < MAX_VALID_DIMENSION:
        return width, height
    return None


def _looks_like_svg(data: bytes) -> bool:
    head = data[:2048].lstrip()
    return (head.startswith(b"<?xml") or head.startswith(b"<svg") or head.startswith(b"<!--")) and b"<svg" in data


def _png_size(data: bytes) -> Optional[Tuple[int, int]]:
    if len(data) < 24:
        return None
    return int.from_bytes(data[16:20], "big"), int.from_bytes(data[20:24], "big")


def _jpeg_size(data: bytes) -> Optional[Tuple[int, int]]:
    offset = 2
    while offset + 9 <= len(data):
        if data[offset] != 0xFF:
            offset += 1
            continue
        marker = data[offset + 1]
        if marker == 0xFF:
            offset += 1
            continue
        if marker in _JPEG_STANDALONE_MARKERS:
            offset += 2
            continue
        if marker in _JPEG_SOF_MARKERS:
            height = int.from_bytes(data[offset + 5:offset + 7], "big")
            width = int.from_bytes(data[offset + 7:offset + 9], "big")
            return width, height
        segment_length = int.from_bytes(data[offset + 2:offset + 4], "big")
        if segment_length < 2:
            return None
        offset += 2 + segment_length
    return None


def _gif_size(data: bytes) -> Optional[Tuple[int, int]]:
    if len(data) < 10:
        return None
    return int.from_bytes(data[6:8], "little"), int.from_bytes(data[8:10], "little")


def _svg_size(data: bytes) -> Tuple[int, int]:
    tag_match = _SVG_TAG.search(data)
    if tag_match is None:
        return SVG_DEFAULT_SIZE
    tag = tag_match.group(0).decode("utf-8", errors="ignore")
    width = re.search(_SVG_LENGTH.format(name="width"), tag, re.IGNORECASE)
    height = re.search(_SVG_LENGTH.format(name="height"), tag, re.IGNORECASE)
    if width and height:
        return int(float(width.group(1))), int(float(height.group(1)))
    view_box = _SVG_VIEWBOX.search(tag)
    if view_box:
        return int(float(view_box.group(1))), int(float(view_box.group(2)))
    return SVG_DEFAULT_SIZE


def is_remote(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


class ImageResolver:
    """Loads image payloads for :class:`Image` elements of one conversion."""

    def __init__(
        self,
        loader: Optional[ResourceLoader] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        self._loader = loader
        self._client = client
        self._timeout = timeout

    async def resolve_all(self, elements: List[DocumentElement], report: Optional[ConversionReport] = None) -> None:
        """Fill in ``Image.data`` for every image element that has no bytes yet."""
        images = [element for element in elements if isinstance(element, Image) and element.data is None]
        if not images:
            return

        if self._client is None and any(is_remote(image.source) for image in images):
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                await self._resolve(images, client, report)
        else:
            await self._resolve(images, self._client, report)

    async def _resolve(
        self,
        images: List[Image],
        client: Optional[httpx.AsyncClient],
        report: Optional[ConversionReport],
    ) -> None:
        for image in images:
            image.data = await self.fetch(image.source, client)
            if image.data is None:
                LOGGER.warning("Image not available: %s", image.source)
                if report is not None:
                    report.missing_images.append(image.source)

    async def fetch(self, source: str, client: Optional[httpx.AsyncClient] = None) -> Optional[bytes]:
        """Return the payload for ``source``, or ``None`` when it cannot be loaded."""
        if is_remote(source):
            return await self._fetch_remote(source, client or self._client)
        return await self._load_local(source)

    async def _fetch_remote(self, url: str, client: Optional[httpx.AsyncClient]) -> Optional[bytes]:
        if client is None:
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as own_client:
                return await self._fetch_remote(url, own_client)
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.warning("Fetching %s failed with HTTP %s", url, exc.response.status_code)
            return None
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            LOGGER.warning("Fetching %s failed: %s", url, exc)
            return None
        return response.content or None

    async def _load_local(self, source: str) -> Optional[bytes]:
        if self._loader is None:
            LOGGER.debug("No resource loader configured for %s", source)
            return None
        try:
            result = self._loader(source)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:  # loader is caller-supplied
            LOGGER.warning("Resource loader failed for %s: %s", source, exc)
            return None
        if not result:
            return None
        return bytes(result)
