"""
Secondary image provider speaking the OpenAI-compatible ``/images/generations`` protocol.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from story_spinner.common.errors import ImageGenerationError
from story_spinner.config import DEFAULT_SECONDARY_IMAGE_MODEL, DEFAULT_SECONDARY_IMAGE_URL

from .base import DEFAULT_IMAGE_QUALITY, DEFAULT_IMAGE_SIZE, DEFAULT_TIMEOUT, HTTPDownloadMixin

logger = logging.getLogger(__name__)


class HTTPImageGenerator(HTTPDownloadMixin):
    """
    Image provider for any endpoint accepting ``{model, prompt, size, quality, n}``
    and answering ``{"data": [{"url": ...}]}``.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        extra_headers: dict[str, str] | None = None,
    ) -> None:
        self._base_url = (
            base_url or os.getenv("STORY_SPINNER_SECONDARY_IMAGE_URL") or DEFAULT_SECONDARY_IMAGE_URL
        ).rstrip("/")
        self._api_key = (
            api_key
            or os.getenv("STORY_SPINNER_SECONDARY_IMAGE_KEY")
            or os.getenv("OPENAI_API_KEY")
        )
        self._model = (
            model or os.getenv("STORY_SPINNER_SECONDARY_IMAGE_MODEL") or DEFAULT_SECONDARY_IMAGE_MODEL
        )
        self._http_client = http_client
        self._owns_http_client = False
        self._timeout = timeout
        self._extra_headers = dict(extra_headers or {})

    @property
    def model(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/images/generations"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "X-Title": "Story Spinner"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        headers.update(self._extra_headers)
        return headers

    async def generate(
        self,
        prompt: str,
        *,
        size: str = DEFAULT_IMAGE_SIZE,
        quality: str = DEFAULT_IMAGE_QUALITY,
        count: int = 1,
    ) -> str:
        payload = {
            "model": self._model,
            "prompt": prompt,
            "size": size,
            "quality": quality,
            "n": count,
        }

        client = self._get_http_client()
        try:
            response = await client.post(self.endpoint, json=payload, headers=self._headers())
            response.raise_for_status()
            body: Any = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning("Image generation error from %s: %s", self.endpoint, exc)
            raise ImageGenerationError(f"Image generation failed: {exc}") from exc

        return _first_image_reference(body)


def _first_image_reference(body: Any) -> str:
    try:
        entries = body["data"]
    except (KeyError, TypeError) as exc:
        raise ImageGenerationError("Invalid API response") from exc

    if not isinstance(entries, list) or not entries:
        raise ImageGenerationError("No image URL received")

    first = entries[0] if isinstance(entries[0], dict) else {}
    url = first.get("url")
    if isinstance(url, str) and url.strip():
        return url

    raise ImageGenerationError("No image URL received")
