"""
Integration with Replicate for primary storybook image generation.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable as IterableABC
from typing import Any, Callable

import httpx
import replicate

from story_spinner.common.errors import ImageGenerationError
from story_spinner.config import DEFAULT_IMAGE_MODEL

from .base import (
    DEFAULT_IMAGE_QUALITY,
    DEFAULT_IMAGE_SIZE,
    DEFAULT_TIMEOUT,
    HTTPDownloadMixin,
    size_to_aspect_ratio,
)

logger = logging.getLogger(__name__)

_QUALITY_TO_OUTPUT_QUALITY = {
    "standard": 80,
    "hd": 100,
    "high": 100,
}


def _build_flux_pro_input(*, prompt: str, size: str, quality: str, count: int) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": size_to_aspect_ratio(size),
        "output_format": "png",
        "output_quality": _QUALITY_TO_OUTPUT_QUALITY.get(quality.lower(), 80),
        "safety_tolerance": 2,
        "prompt_upsampling": True,
    }


def _build_flux_schnell_input(
    *, prompt: str, size: str, quality: str, count: int
) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": size_to_aspect_ratio(size),
        "output_format": "png",
        "output_quality": _QUALITY_TO_OUTPUT_QUALITY.get(quality.lower(), 80),
        "num_outputs": max(1, min(count, 4)),
    }


_MODEL_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "black-forest-labs/flux-1.1-pro": _build_flux_pro_input,
    "black-forest-labs/flux-pro": _build_flux_pro_input,
    "black-forest-labs/flux-schnell": _build_flux_schnell_input,
}


def _build_replicate_input_payload(
    *,
    model_identifier: str,
    prompt: str,
    size: str,
    quality: str,
    count: int,
) -> dict[str, Any]:
    normalized_identifier = model_identifier.strip().lower()
    builder = _MODEL_INPUT_BUILDERS.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = _MODEL_INPUT_BUILDERS.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(set(_MODEL_INPUT_BUILDERS)))
        raise ValueError(
            "Model identifier "
            f"'{model_identifier}' is not configured with a default input payload. "
            f"Supported models: {supported_models}."
        )

    return builder(prompt=prompt, size=size, quality=quality, count=count)


class ReplicateImageGenerator(HTTPDownloadMixin):
    """
    Primary image provider backed by the Replicate client.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Model string in the ``owner/model[:version]`` format. Falls back to
        ``STORY_SPINNER_IMAGE_MODEL``, then ``REPLICATE_MODEL``, and then to Flux 1.1 Pro.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    http_client:
        Optional ``httpx.AsyncClient`` used to download the generated image.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        client: replicate.Client | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._model_identifier = (
            model_identifier
            or os.getenv("STORY_SPINNER_IMAGE_MODEL")
            or os.getenv("REPLICATE_MODEL")
            or DEFAULT_IMAGE_MODEL
        )
        self._client = client or replicate.Client(api_token=self._api_token)
        self._http_client = http_client
        self._owns_http_client = False
        self._timeout = timeout

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    async def generate(
        self,
        prompt: str,
        *,
        size: str = DEFAULT_IMAGE_SIZE,
        quality: str = DEFAULT_IMAGE_QUALITY,
        count: int = 1,
    ) -> str:
        """
        Run the configured model and return the URL of the first generated image.
        """
        replicate_input = _build_replicate_input_payload(
            model_identifier=self._model_identifier,
            prompt=prompt,
            size=size,
            quality=quality,
            count=count,
        )

        try:
            output = await self._client.async_run(self._model_identifier, input=replicate_input)
        except Exception as exc:
            logger.warning("Replicate image generation error: %s", exc)
            raise ImageGenerationError(f"Image generation failed: {exc}") from exc

        urls = normalize_image_outputs(output)
        if not urls:
            raise ImageGenerationError("No image URL received")
        return urls[0]


def normalize_image_outputs(raw: Any) -> list[str]:
    """
    Normalize the image outputs returned by Replicate into a list of URL strings.
    """

    if raw is None:
        return []

    if isinstance(raw, str):
        return [raw] if raw.strip() else []

    url = getattr(raw, "url", None)
    if isinstance(url, str):
        return [url]

    if isinstance(raw, bytes):
        return [raw.decode("utf-8", errors="ignore")]

    if isinstance(raw, IterableABC):
        collected = list(raw)
        if not collected:
            return []

        if all(isinstance(item, str) and len(item) == 1 for item in collected):
            return ["".join(collected)]

        normalized: list[str] = []
        for item in collected:
            normalized.extend(normalize_image_outputs(item))
        return normalized

    return [str(raw)]
