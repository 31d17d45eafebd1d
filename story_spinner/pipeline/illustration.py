"""
Per-page illustration resolution with a primary -> secondary -> placeholder fallback chain.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from story_spinner.ai_generation.base import (
    DEFAULT_IMAGE_QUALITY,
    DEFAULT_IMAGE_SIZE,
    ImageGenerationClient,
)
from story_spinner.ai_generation.prompting import build_illustration_prompt
from story_spinner.story_generation.profile import StoryPreferences

logger = logging.getLogger(__name__)


class PlaceholderRenderer(Protocol):
    def render(self, page_text: str, preferences: StoryPreferences) -> bytes: ...


class IllustrationSource(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    PLACEHOLDER = "placeholder"
    NONE = "none"


@dataclass(frozen=True)
class IllustrationResult:
    image_url: str | None
    image_data: bytes | None
    source: IllustrationSource


class IllustrationResolver:
    """
    Resolves one page's illustration, trying each remote provider before drawing a placeholder.

    A remote attempt only counts as a success once the image bytes are downloaded.
    Every failure is logged and absorbed; :meth:`resolve` never raises except for
    task cancellation.
    """

    def __init__(
        self,
        *,
        primary: ImageGenerationClient | None = None,
        secondary: ImageGenerationClient | None = None,
        placeholder: PlaceholderRenderer | None = None,
        size: str = DEFAULT_IMAGE_SIZE,
        quality: str = DEFAULT_IMAGE_QUALITY,
    ) -> None:
        self._providers: list[tuple[IllustrationSource, ImageGenerationClient]] = [
            (source, provider)
            for source, provider in (
                (IllustrationSource.PRIMARY, primary),
                (IllustrationSource.SECONDARY, secondary),
            )
            if provider is not None
        ]
        self._placeholder = placeholder
        self._size = size
        self._quality = quality

    async def aclose(self) -> None:
        for _, provider in self._providers:
            closer = getattr(provider, "aclose", None)
            if closer is not None:
                await closer()

    async def resolve(
        self,
        page_text: str,
        page_number: int,
        preferences: StoryPreferences,
    ) -> IllustrationResult:
        prompt = build_illustration_prompt(page_text, page_number, preferences)

        for source, provider in self._providers:
            try:
                reference = await provider.generate(
                    prompt.full, size=self._size, quality=self._quality, count=1
                )
                if not reference:
                    raise ValueError("provider returned an empty image reference")
                data = await provider.download(reference)
                if not data:
                    raise ValueError("downloaded image was empty")
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning(
                    "%s image generation failed for page %d: %s",
                    source.value.capitalize(),
                    page_number,
                    exc,
                )
                continue

            logger.info("Generated %s image for page %d", source.value, page_number)
            return IllustrationResult(image_url=reference, image_data=data, source=source)

        return self._render_placeholder(page_text, page_number, preferences)

    def _render_placeholder(
        self,
        page_text: str,
        page_number: int,
        preferences: StoryPreferences,
    ) -> IllustrationResult:
        if self._placeholder is None:
            logger.error("No illustration available for page %d", page_number)
            return IllustrationResult(image_url=None, image_data=None, source=IllustrationSource.NONE)

        try:
            data = self._placeholder.render(page_text, preferences)
        except Exception:
            logger.exception("Placeholder rendering failed for page %d", page_number)
            return IllustrationResult(image_url=None, image_data=None, source=IllustrationSource.NONE)

        logger.info("Using placeholder image for page %d", page_number)
        return IllustrationResult(
            image_url=None,
            image_data=data or None,
            source=IllustrationSource.PLACEHOLDER if data else IllustrationSource.NONE,
        )
