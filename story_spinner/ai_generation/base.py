"""
Interface shared by the remote image providers, plus the common download helper.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import httpx

from story_spinner.common.errors import ImageDownloadError

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_SIZE = "1024x1024"
DEFAULT_IMAGE_QUALITY = "standard"
DEFAULT_TIMEOUT = 60.0


@runtime_checkable
class ImageGenerationClient(Protocol):
    """
    A remote provider that turns a prompt into an image reference and fetches its bytes.
    """

    async def generate(
        self,
        prompt: str,
        *,
        size: str = DEFAULT_IMAGE_SIZE,
        quality: str = DEFAULT_IMAGE_QUALITY,
        count: int = 1,
    ) -> str: ...

    async def download(self, reference: str) -> bytes: ...


class HTTPDownloadMixin:
    """
    Downloads image references over a lazily created ``httpx.AsyncClient``.

    Subclasses set ``self._http_client`` (optionally injected) and ``self._timeout``.
    """

    _http_client: httpx.AsyncClient | None
    _owns_http_client: bool
    _timeout: float

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=30.0),
                follow_redirects=True,
            )
            self._owns_http_client = True
        return self._http_client

    async def download(self, reference: str) -> bytes:
        client = self._get_http_client()
        try:
            response = await client.get(reference)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Image download error for %s: %s", reference, exc)
            raise ImageDownloadError("Failed to download image") from exc

        if not response.content:
            raise ImageDownloadError("Failed to download image: empty response body")
        return response.content

    async def aclose(self) -> None:
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None


def size_to_aspect_ratio(size: str) -> str:
    """
    Convert ``"1024x768"`` into ``"4:3"``. Unparseable sizes fall back to ``"1:1"``.
    """
    try:
        width_text, height_text = size.lower().split("x", 1)
        width, height = int(width_text), int(height_text)
    except ValueError:
        return "1:1"
    if width <= 0 or height <= 0:
        return "1:1"

    a, b = width, height
    while b:
        a, b = b, a % b
    return f"{width // a}:{height // a}"
