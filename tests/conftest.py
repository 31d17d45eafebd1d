"""Shared fixtures and test doubles for the Story Spinner test suite."""

from io import BytesIO
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from story_spinner.common.errors import ImageGenerationError
from story_spinner.story_generation import Genre, Season, StoryPreferences


def make_png(color=(255, 0, 0), size=(8, 8)) -> bytes:
    """Create a tiny, valid PNG image."""
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeImageClient:
    """Image provider double whose generate/download calls can be asserted on."""

    def __init__(self, url="https://images.example/page.png", data=None, error=None):
        self.generate = AsyncMock(return_value=url)
        if error is not None:
            self.generate.side_effect = error
        self.download = AsyncMock(return_value=data if data is not None else make_png())


class FakeTextClient:
    """Text client double returning canned story text."""

    def __init__(self, text="", error=None):
        self.generate_story = AsyncMock(return_value=text)
        if error is not None:
            self.generate_story.side_effect = error


class FakePlaceholder:
    def __init__(self, data=b"placeholder-bytes", error=None):
        self.data = data
        self.error = error
        self.calls = 0

    def render(self, page_text, preferences):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.data


def five_page_story(name="Mira") -> str:
    pages = [
        f"{name} found a glowing door in the forest. It hummed softly.",
        f"Behind the door, {name} saw a castle made of light.",
        "A friendly dragon named Pip waved from the tower window.",
        f"Pip and {name} searched the garden for the lost treasure.",
        f"At sunset {name} returned home, smiling about the magic day.",
    ]
    return "".join(f"{page}\n[PAGE BREAK]\n" for page in pages)


@pytest.fixture
def preferences():
    return StoryPreferences(
        child_name="Miranda",
        child_age="7",
        nickname="Mira",
        genre=Genre.FANTASY,
        favorite_season=Season.WINTER,
        favorite_video_game="Minecraft",
    )


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def failing_image_client():
    return FakeImageClient(error=ImageGenerationError("Image generation failed: boom"))
