"""
Common utilities shared across Story Spinner modules.
"""

from .errors import (
    GenerationCancelledError,
    GenerationInProgressError,
    ImageDownloadError,
    ImageGenerationError,
    NoContentError,
    PlaceholderRenderError,
    PreferencesValidationError,
    StorySpinnerError,
    TextGenerationError,
)
from .llm import ChatResult, CompletionCallable, acall_chat_completion
from .log import configure_logging

__all__ = [
    "ChatResult",
    "CompletionCallable",
    "acall_chat_completion",
    "configure_logging",
    "GenerationCancelledError",
    "GenerationInProgressError",
    "ImageDownloadError",
    "ImageGenerationError",
    "NoContentError",
    "PlaceholderRenderError",
    "PreferencesValidationError",
    "StorySpinnerError",
    "TextGenerationError",
]
