"""
Pipeline orchestration for the Story Spinner generator.
"""

from .illustration import IllustrationResolver, IllustrationResult, IllustrationSource
from .pipeline import Story, StoryManager, StoryPage
from .state import GenerationRunState, RunPhase, RunSnapshot

__all__ = [
    "GenerationRunState",
    "IllustrationResolver",
    "IllustrationResult",
    "IllustrationSource",
    "RunPhase",
    "RunSnapshot",
    "Story",
    "StoryManager",
    "StoryPage",
]
