"""Tests for splitting raw story text into exactly five pages."""

import pytest

from story_spinner.story_generation import PAGE_BREAK_MARKER, StoryPageSplitter
from story_spinner.story_generation.page_splitter import continuation_page, filler_page


def _join(segments):
    return "".join(f"{segment}\n{PAGE_BREAK_MARKER}\n" for segment in segments)


@pytest.fixture
def splitter():
    return StoryPageSplitter()


class TestStoryPageSplitter:
    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            PAGE_BREAK_MARKER * 4,
            "One short page without any marker",
            _join(["a", "b"]),
            _join([f"page {i}" for i in range(12)]),
            "Sentence one. Sentence two. " * 40,
        ],
    )
    def test_always_returns_five_non_empty_pages(self, splitter, raw):
        pages = splitter.split(raw, "Mira")
        assert len(pages) == 5
        assert all(page.strip() for page in pages)

    def test_empty_text_becomes_filler_pages(self, splitter):
        pages = splitter.split("", "Mira")
        assert pages == [filler_page("Mira")] * 5
        assert all("Mira" in page for page in pages)

    def test_extra_segments_are_truncated(self, splitter):
        segments = [f"  Segment number {i} of the tale.  " for i in range(1, 8)]
        pages = splitter.split(_join(segments), "Mira")
        assert pages == [segment.strip() for segment in segments[:5]]

    def test_exact_five_segments_are_trimmed_only(self, splitter):
        segments = [f"Page {i} text." for i in range(1, 6)]
        raw = PAGE_BREAK_MARKER.join(f"\n  {segment}  \n" for segment in segments)
        assert splitter.split(raw, "Mira") == segments

    def test_empty_segments_are_dropped(self, splitter):
        raw = f"First.{PAGE_BREAK_MARKER}{PAGE_BREAK_MARKER}  {PAGE_BREAK_MARKER}Second."
        pages = splitter.split(raw, "Mira")
        assert pages[:2] == ["First.", "Second."]

    def test_short_segments_are_padded_with_continuations(self, splitter):
        segments = ["Mira woke up early.", "She packed a snack.", "Off she went!"]
        pages = splitter.split(_join(segments), "Mira")
        assert pages[:3] == segments
        assert pages[3:] == [continuation_page("Mira")] * 2
        assert all("Mira" in page for page in pages[3:])

    def test_long_segment_is_split_at_sentence_boundary(self, splitter):
        sentences = [f"Mira took step {i} along the path" for i in range(1, 9)]
        long_segment = ". ".join(sentences) + "."
        short_segment = "The end came quickly."
        assert len(long_segment) > 200

        pages = splitter.split(_join([long_segment, short_segment]), "Mira")

        assert pages[0] == ". ".join(sentences[:4]) + "."
        assert pages[1] == ". ".join(sentences[4:]) + "."
        assert pages[2] == short_segment
        assert pages[3:] == [continuation_page("Mira")] * 2

        recovered = [
            sentence.rstrip(".")
            for page in pages[:2]
            for sentence in page.split(". ")
        ]
        assert recovered == sentences

    def test_long_segment_with_few_sentences_is_not_split(self, splitter):
        long_segment = "word " * 60 + ". Still the same sentence."
        pages = splitter.split(_join([long_segment]), "Leo")
        assert pages[0] == long_segment.strip()
        assert pages[1:] == [continuation_page("Leo")] * 4

    def test_original_order_is_preserved_after_split(self, splitter):
        first = "Opening line."
        long_segment = ". ".join(f"Middle sentence {i} of many" for i in range(1, 9)) + "."
        last = "Closing line."
        pages = splitter.split(_join([first, long_segment, last]), "Mira")
        assert pages[0] == first
        assert pages[3] == last

    def test_split_for_uses_display_name(self, splitter, preferences):
        pages = splitter.split_for("", preferences)
        assert all("Mira" in page for page in pages)
        assert not any("Miranda" in page for page in pages)

    def test_page_count_must_be_positive(self):
        with pytest.raises(ValueError):
            StoryPageSplitter(page_count=0)
