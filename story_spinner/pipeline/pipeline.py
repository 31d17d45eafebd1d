"""
Orchestrates the full Story Spinner pipeline from preferences to an illustrated story.
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Protocol, Sequence

import yaml

from story_spinner.ai_generation import (
    HTTPImageGenerator,
    ImageGenerationClient,
    PlaceholderImageRenderer,
    ReplicateImageGenerator,
)
from story_spinner.common.errors import (
    GenerationCancelledError,
    TextGenerationError,
)
from story_spinner.config import Settings
from story_spinner.story_generation import (
    PAGES_PER_STORY,
    StoryPageSplitter,
    StoryPreferences,
    StoryTextGenerator,
    generate_story_title,
)

from .illustration import IllustrationResolver, PlaceholderRenderer
from .state import GenerationRunState, RunSnapshot, StateListener

logger = logging.getLogger(__name__)

DEFAULT_PAGE_DELAY = 0.5

WRITING_STATUS = "Writing your adventure..."
WRITTEN_STATUS = "Story written! Creating illustrations..."
FINALIZING_STATUS = "Finalizing your story..."
READY_STATUS = "Your story is ready!"
FAILED_STATUS = "Story creation failed"
CANCELLED_MESSAGE = "Story generation was cancelled"

TEXT_REQUESTED_PROGRESS = 0.1
TEXT_RECEIVED_PROGRESS = 0.3
ILLUSTRATION_PROGRESS_SPAN = 0.6
FINALIZING_PROGRESS = 0.95


class StoryTextClient(Protocol):
    async def generate_story(self, preferences: StoryPreferences) -> str: ...


@dataclass(frozen=True)
class StoryPage:
    """A single page of a generated story."""

    page_number: int
    text: str
    image_url: str | None = None
    image_data: bytes | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError("page_number must be 1 or greater.")
        if not self.text.strip():
            raise ValueError(f"Page {self.page_number} has no text.")
        if self.image_url is not None and self.image_data is None:
            raise ValueError(f"Page {self.page_number} has an image URL but no image data.")

    @property
    def has_image(self) -> bool:
        return self.image_data is not None


@dataclass(frozen=True)
class Story:
    """Aggregated output of one successful generation run."""

    title: str
    pages: tuple[StoryPage, ...]
    preferences: StoryPreferences
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if len(self.pages) != PAGES_PER_STORY:
            raise ValueError(
                f"A story needs exactly {PAGES_PER_STORY} pages, got {len(self.pages)}."
            )
        for expected, page in enumerate(self.pages, start=1):
            if page.page_number != expected:
                raise ValueError("Page numbers must be sequential starting from 1.")

    @property
    def display_name(self) -> str:
        return self.preferences.display_name

    def to_dict(self, image_paths: Mapping[int, str] | None = None) -> dict[str, Any]:
        paths = image_paths or {}
        return {
            "id": str(self.id),
            "title": self.title,
            "created_at": self.created_at.isoformat(),
            "preferences": self.preferences.to_dict(),
            "pages": [
                {
                    "page_number": page.page_number,
                    "text": page.text,
                    "image_url": page.image_url,
                    "image_path": paths.get(page.page_number),
                }
                for page in self.pages
            ],
        }

    def to_yaml(self, image_paths: Mapping[int, str] | None = None) -> str:
        return yaml.safe_dump(self.to_dict(image_paths), sort_keys=False, allow_unicode=True)

    def write_bundle(self, output_dir: str | Path, *, filename: str = "story.yaml") -> Path:
        """
        Write page images next to a YAML description of the story. Returns the YAML path.
        """
        directory = Path(output_dir)
        directory.mkdir(parents=True, exist_ok=True)

        image_paths: dict[int, str] = {}
        for page in self.pages:
            if page.image_data is None:
                continue
            name = f"page_{page.page_number:02d}{_guess_image_extension(page.image_data)}"
            (directory / name).write_bytes(page.image_data)
            image_paths[page.page_number] = name

        yaml_path = directory / filename
        yaml_path.write_text(self.to_yaml(image_paths), encoding="utf-8")
        return yaml_path

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], base_dir: str | Path | None = None) -> "Story":
        if "preferences" not in payload:
            raise ValueError("Story payload must include 'preferences'.")
        if "pages" not in payload:
            raise ValueError("Story payload must include 'pages'.")

        root = Path(base_dir) if base_dir is not None else Path.cwd()
        preferences = StoryPreferences.from_mapping(payload["preferences"])

        pages: list[StoryPage] = []
        for entry in payload.get("pages") or []:
            try:
                page_number = int(entry["page_number"])
                text = str(entry["text"]).strip()
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"Invalid page entry: {entry}") from exc

            image_data = None
            image_path = entry.get("image_path")
            if image_path:
                try:
                    image_data = (root / str(image_path)).read_bytes()
                except OSError as exc:
                    raise ValueError(f"Invalid page entry: {entry}") from exc

            image_url = entry.get("image_url") if image_data is not None else None
            pages.append(
                StoryPage(
                    page_number=page_number,
                    text=text,
                    image_url=image_url,
                    image_data=image_data,
                )
            )

        created_raw = payload.get("created_at")
        created_at = (
            datetime.fromisoformat(str(created_raw)) if created_raw else datetime.now(timezone.utc)
        )
        story_id = payload.get("id")
        return cls(
            title=str(payload.get("title") or "").strip()
            or f"{preferences.display_name}'s Amazing Adventure",
            pages=tuple(pages),
            preferences=preferences,
            created_at=created_at,
            id=uuid.UUID(str(story_id)) if story_id else uuid.uuid4(),
        )

    @classmethod
    def from_yaml(cls, source: str | Path) -> "Story":
        path = Path(source)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, Mapping):
            raise ValueError("Story YAML must deserialize to a mapping.")
        return cls.from_dict(data, base_dir=path.parent)


class StoryManager:
    """
    High-level coordinator that chains story text, page splitting and illustration.

    The manager owns the :class:`GenerationRunState`; presentation code observes it
    through :meth:`subscribe` or :attr:`snapshot` and never mutates it. Only one run
    may be active at a time.
    """

    def __init__(
        self,
        *,
        text_client: StoryTextClient | None = None,
        resolver: IllustrationResolver | None = None,
        primary: ImageGenerationClient | None = None,
        secondary: ImageGenerationClient | None = None,
        placeholder: PlaceholderRenderer | None = None,
        page_splitter: StoryPageSplitter | None = None,
        page_delay: float = DEFAULT_PAGE_DELAY,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        self._text_client = text_client or StoryTextGenerator()
        self._resolver = resolver or IllustrationResolver(
            primary=primary,
            secondary=secondary,
            placeholder=placeholder or PlaceholderImageRenderer(),
        )
        self._page_splitter = page_splitter or StoryPageSplitter()
        self._page_delay = max(0.0, page_delay)
        self._rng = rng or random.Random()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep or asyncio.sleep
        self._state = GenerationRunState()
        self._cancel_requested = False

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "StoryManager":
        """
        Build a manager wired to the real providers described by ``settings``.

        Remote image providers without credentials are skipped, so the chain degrades
        to the placeholder renderer instead of failing at start-up.
        """
        primary = None
        if settings.replicate_api_token:
            primary = ReplicateImageGenerator(
                api_token=settings.replicate_api_token,
                model_identifier=settings.image_model,
                timeout=settings.request_timeout,
            )
        else:
            logger.warning("REPLICATE_API_TOKEN is not set; primary image provider disabled")

        secondary = None
        if settings.secondary_image_key:
            secondary = HTTPImageGenerator(
                base_url=settings.secondary_image_url,
                api_key=settings.secondary_image_key,
                model=settings.secondary_image_model,
                timeout=settings.request_timeout,
            )
        else:
            logger.warning("No secondary image API key configured; secondary provider disabled")

        kwargs: dict[str, Any] = {
            "text_client": StoryTextGenerator(
                api_key=settings.text_api_key,
                model=settings.text_model,
                max_tokens=settings.max_tokens,
                timeout=settings.request_timeout,
            ),
            "primary": primary,
            "secondary": secondary,
            "page_delay": settings.page_delay,
        }
        kwargs.update(overrides)
        return cls(**kwargs)

    @property
    def snapshot(self) -> RunSnapshot:
        return self._state.snapshot

    @property
    def current_story(self) -> Story | None:
        return self._state.snapshot.story

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._state.subscribe(listener)

    @staticmethod
    def validate(preferences: StoryPreferences) -> None:
        """Caller-side gate: raise ``PreferencesValidationError`` for incomplete preferences."""
        preferences.validate()

    def cancel(self) -> None:
        """Request cooperative cancellation; honoured at the next step boundary."""
        if self._state.snapshot.is_generating:
            logger.info("Cancellation requested")
            self._cancel_requested = True

    def reset(self) -> None:
        self._state.reset()
        self._cancel_requested = False

    async def aclose(self) -> None:
        """Release HTTP clients held by the image providers."""
        await self._resolver.aclose()

    async def generate(self, preferences: StoryPreferences) -> Story:
        """Validate ``preferences`` and run the pipeline."""
        self.validate(preferences)
        return await self.run(preferences)

    async def run(self, preferences: StoryPreferences) -> Story:
        """
        Produce a complete story for ``preferences``.

        Raises
        ------
        GenerationInProgressError
            Another run is active; the state is left untouched.
        TextGenerationError
            The story text could not be generated; the run is marked failed.
        GenerationCancelledError
            :meth:`cancel` was called; the run is marked failed.

        Any other error is re-raised after the run is marked failed, so the
        manager can be reset and reused.
        """
        self._state.start(WRITING_STATUS)
        self._cancel_requested = False
        logger.info("Starting story generation for %s", preferences.display_name)

        try:
            story_text = await self._generate_text(preferences)
            self._state.advance(WRITTEN_STATUS, TEXT_RECEIVED_PROGRESS)
            self._raise_if_cancelled()

            page_texts = self._page_splitter.split_for(story_text, preferences)
            pages = await self._illustrate_pages(page_texts, preferences)

            self._state.advance(FINALIZING_STATUS, FINALIZING_PROGRESS)
            story = Story(
                title=generate_story_title(preferences, self._rng),
                pages=tuple(pages),
                preferences=preferences,
                created_at=self._clock(),
            )
        except TextGenerationError as exc:
            logger.error("Story generation error: %s", exc)
            self._state.fail(f"Failed to create your story: {exc}", FAILED_STATUS)
            raise
        except GenerationCancelledError:
            self._state.fail(CANCELLED_MESSAGE, FAILED_STATUS)
            raise
        except asyncio.CancelledError:
            self._state.fail(CANCELLED_MESSAGE, FAILED_STATUS)
            raise
        except Exception as exc:
            logger.exception("Story generation failed unexpectedly")
            self._state.fail(f"Failed to create your story: {exc}", FAILED_STATUS)
            raise

        self._state.complete(story, READY_STATUS)
        logger.info("Story '%s' is ready with %d pages", story.title, len(story.pages))
        return story

    async def _generate_text(self, preferences: StoryPreferences) -> str:
        self._state.advance(WRITING_STATUS, TEXT_REQUESTED_PROGRESS)
        try:
            return await self._text_client.generate_story(preferences)
        except TextGenerationError:
            raise
        except Exception as exc:
            raise TextGenerationError(str(exc) or type(exc).__name__) from exc

    async def _illustrate_pages(
        self,
        page_texts: Sequence[str],
        preferences: StoryPreferences,
    ) -> list[StoryPage]:
        pages: list[StoryPage] = []
        total_pages = len(page_texts)

        for index, page_text in enumerate(page_texts):
            self._raise_if_cancelled()
            page_number = index + 1
            self._state.advance(
                f"Creating illustration {page_number} of {total_pages}...",
                TEXT_RECEIVED_PROGRESS + (index / total_pages) * ILLUSTRATION_PROGRESS_SPAN,
            )

            result = await self._resolver.resolve(page_text, page_number, preferences)
            pages.append(
                StoryPage(
                    page_number=page_number,
                    text=page_text,
                    image_url=result.image_url,
                    image_data=result.image_data,
                )
            )

            if self._page_delay:
                await self._sleep(self._page_delay)

        self._raise_if_cancelled()
        return pages

    def _raise_if_cancelled(self) -> None:
        if self._cancel_requested:
            self._cancel_requested = False
            raise GenerationCancelledError(CANCELLED_MESSAGE)


def _guess_image_extension(data: bytes) -> str:
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return ".png"
    if data.startswith(b"\xff\xd8"):
        return ".jpg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ".webp"
    return ".png"
