"""
Story Spinner package exposing story generation, the pipeline, and PDF tooling.
"""

from .pdf_generation import StorybookPDFBuilder
from .pipeline import (
    GenerationRunState,
    RunPhase,
    RunSnapshot,
    Story,
    StoryManager,
    StoryPage,
)
from .story_generation import StoryPreferences

__all__ = [
    "GenerationRunState",
    "RunPhase",
    "RunSnapshot",
    "Story",
    "StoryManager",
    "StoryPage",
    "StoryPreferences",
    "StorybookPDFBuilder",
]
