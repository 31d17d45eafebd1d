"""
Story generation utilities for crafting personalized Story Spinner narratives.
"""

from .page_splitter import PAGES_PER_STORY, StoryPageSplitter
from .profile import FashionStyle, Gender, Genre, Season, StoryPreferences
from .prompting import PAGE_BREAK_MARKER, StoryPrompt, build_story_prompt
from .story_service import StoryTextGenerator
from .titles import generate_story_title, title_candidates

__all__ = [
    "FashionStyle",
    "Gender",
    "Genre",
    "Season",
    "StoryPreferences",
    "PAGE_BREAK_MARKER",
    "PAGES_PER_STORY",
    "StoryPrompt",
    "build_story_prompt",
    "StoryTextGenerator",
    "StoryPageSplitter",
    "generate_story_title",
    "title_candidates",
]
