"""Tests for the Story model, its YAML bundle, and the PDF builder."""

import uuid
from datetime import datetime, timezone

import pytest
import yaml

from story_spinner import Story, StorybookPDFBuilder, StoryPage
from story_spinner.pdf_generation import PAGE_SIZES
from story_spinner.pdf_generation.builder import format_short_date


@pytest.fixture
def story(preferences, png_bytes):
    pages = tuple(
        StoryPage(
            page_number=number,
            text=f"Page {number}: Mira & friends explore <the> castle.\n\nA second paragraph.",
            image_url=f"https://images.example/{number}.png" if number in (1, 3) else None,
            image_data=png_bytes if number != 5 else None,
        )
        for number in range(1, 6)
    )
    return Story(
        title="Mira's Magical Adventure",
        pages=pages,
        preferences=preferences,
        created_at=datetime(2024, 3, 9, 12, 0, tzinfo=timezone.utc),
    )


def _pages(count, start=1):
    return tuple(StoryPage(page_number=number, text=f"Page {number}") for number in range(start, start + count))


class TestStoryModel:
    def test_pages_must_be_numbered_from_one(self, preferences):
        with pytest.raises(ValueError, match="sequential"):
            Story(title="t", pages=_pages(5, start=2), preferences=preferences)

    @pytest.mark.parametrize("count", [0, 1, 3, 6])
    def test_story_needs_exactly_five_pages(self, preferences, count):
        with pytest.raises(ValueError, match="exactly 5 pages"):
            Story(title="t", pages=_pages(count), preferences=preferences)

    def test_page_requires_text(self):
        with pytest.raises(ValueError):
            StoryPage(page_number=1, text="   ")

    def test_image_reference_requires_bytes(self):
        with pytest.raises(ValueError):
            StoryPage(page_number=1, text="x", image_url="https://images.example/1.png")

    def test_ids_are_unique(self, story):
        assert len({page.id for page in story.pages}) == 5
        assert isinstance(story.id, uuid.UUID)


class TestStoryBundle:
    def test_write_bundle_saves_images_and_yaml(self, story, tmp_path, png_bytes):
        yaml_path = story.write_bundle(tmp_path / "out")

        assert yaml_path == tmp_path / "out" / "story.yaml"
        assert (tmp_path / "out" / "page_01.png").read_bytes() == png_bytes
        assert not (tmp_path / "out" / "page_05.png").exists()

        payload = yaml.safe_load(yaml_path.read_text(encoding="utf-8"))
        assert payload["title"] == "Mira's Magical Adventure"
        assert payload["preferences"]["genre"] == "Fantasy"
        assert payload["pages"][0]["image_path"] == "page_01.png"
        assert payload["pages"][4]["image_path"] is None

    def test_bundle_round_trip(self, story, tmp_path):
        yaml_path = story.write_bundle(tmp_path)

        loaded = Story.from_yaml(yaml_path)

        assert loaded.id == story.id
        assert loaded.title == story.title
        assert loaded.preferences == story.preferences
        assert loaded.created_at == story.created_at
        assert [page.text for page in loaded.pages] == [page.text for page in story.pages]
        assert [page.image_data for page in loaded.pages] == [page.image_data for page in story.pages]
        assert [page.image_url for page in loaded.pages] == [page.image_url for page in story.pages]

    def test_from_dict_rejects_short_bundle(self, preferences):
        payload = {
            "preferences": preferences.to_dict(),
            "pages": [{"page_number": number, "text": f"Page {number}"} for number in range(1, 4)],
        }
        with pytest.raises(ValueError, match="exactly 5 pages"):
            Story.from_dict(payload)

    def test_missing_image_file_is_an_invalid_entry(self, story, tmp_path):
        yaml_path = story.write_bundle(tmp_path)
        (tmp_path / "page_02.png").unlink()

        with pytest.raises(ValueError, match="Invalid page entry") as excinfo:
            Story.from_yaml(yaml_path)
        assert isinstance(excinfo.value.__cause__, FileNotFoundError)

    def test_from_dict_requires_pages(self, preferences):
        with pytest.raises(ValueError, match="pages"):
            Story.from_dict({"preferences": preferences.to_dict()})


class TestStorybookPDFBuilder:
    def test_render_returns_pdf_bytes(self, story):
        data = StorybookPDFBuilder().render(story)
        assert data.startswith(b"%PDF")

    def test_build_writes_file(self, story, tmp_path):
        output = StorybookPDFBuilder(page_size=PAGE_SIZES["square"]).build(story, tmp_path / "pdf" / "story.pdf")
        assert output.exists()
        assert output.read_bytes().startswith(b"%PDF")

    def test_undecodable_image_is_skipped(self, preferences):
        broken = StoryPage(page_number=1, text="Hello", image_url="https://x/1.png", image_data=b"nope")
        story = Story(title="Broken", pages=(broken,) + _pages(4, start=2), preferences=preferences)
        assert StorybookPDFBuilder().render(story).startswith(b"%PDF")

    def test_format_short_date(self):
        assert format_short_date(datetime(2024, 3, 9)) == "3/9/24"
