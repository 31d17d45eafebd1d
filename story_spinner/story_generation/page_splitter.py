"""
Utilities for splitting generated story text into exactly five pages.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .profile import StoryPreferences
from .prompting import PAGE_BREAK_MARKER

logger = logging.getLogger(__name__)

PAGES_PER_STORY = 5
MIN_SPLIT_LENGTH = 200
MIN_SPLIT_SENTENCES = 4
SENTENCE_SEPARATOR = ". "


class StoryPageSplitter:
    """
    Splits raw model output on the page-break marker and normalizes it to a fixed page count.

    The model is asked for exactly five marker-terminated pages but rarely complies
    perfectly. Extra trailing segments are dropped (the earliest content wins), and
    missing pages are recovered by halving the longest page at a sentence boundary or,
    when nothing is long enough, by appending short continuation pages that mention
    the protagonist.
    """

    def __init__(
        self,
        *,
        marker: str = PAGE_BREAK_MARKER,
        page_count: int = PAGES_PER_STORY,
        min_split_length: int = MIN_SPLIT_LENGTH,
    ) -> None:
        if page_count < 1:
            raise ValueError("page_count must be at least 1.")
        self._marker = marker
        self._page_count = page_count
        self._min_split_length = min_split_length

    @property
    def page_count(self) -> int:
        return self._page_count

    def split_for(self, story_text: str, preferences: StoryPreferences) -> list[str]:
        return self.split(story_text, preferences.display_name)

    def split(self, story_text: str, display_name: str) -> list[str]:
        pages = self._segments(story_text)
        original_count = len(pages)

        if len(pages) > self._page_count:
            pages = pages[: self._page_count]
        elif len(pages) < self._page_count:
            while len(pages) < self._page_count and pages:
                longest_index = self._find_longest_page_index(pages)
                halves = self._split_page(pages[longest_index]) if longest_index is not None else None
                if halves is not None:
                    pages[longest_index : longest_index + 1] = halves
                else:
                    pages.append(continuation_page(display_name))

            while len(pages) < self._page_count:
                pages.append(filler_page(display_name))

        if original_count != self._page_count:
            logger.info(
                "Normalized %d story segment(s) into %d pages", original_count, self._page_count
            )

        return pages[: self._page_count]

    def _segments(self, story_text: str) -> list[str]:
        parts = (segment.strip() for segment in (story_text or "").split(self._marker))
        return [segment for segment in parts if segment]

    def _find_longest_page_index(self, pages: Sequence[str]) -> int | None:
        if not pages:
            return None

        longest_index = max(range(len(pages)), key=lambda index: len(pages[index]))
        if len(pages[longest_index]) > self._min_split_length:
            return longest_index
        return None

    @staticmethod
    def _split_page(page_text: str) -> list[str] | None:
        sentences = page_text.split(SENTENCE_SEPARATOR)
        if len(sentences) < MIN_SPLIT_SENTENCES:
            return None

        midpoint = len(sentences) // 2
        first_half = SENTENCE_SEPARATOR.join(sentences[:midpoint]) + "."
        second_half = SENTENCE_SEPARATOR.join(sentences[midpoint:])
        return [first_half, second_half]


def continuation_page(display_name: str) -> str:
    return f"The adventure continues with {display_name}..."


def filler_page(display_name: str) -> str:
    return f"And so {display_name}'s amazing adventure continued..."
