"""
Exception hierarchy shared by the Story Spinner pipeline.
"""

from __future__ import annotations


class StorySpinnerError(Exception):
    """Base exception for every error raised by Story Spinner."""


class TextGenerationError(StorySpinnerError):
    """The language model could not produce story text. Fatal to a run."""


class NoContentError(TextGenerationError):
    """The completion response carried no message content."""


class ImageGenerationError(StorySpinnerError):
    """A remote image provider failed or returned no image reference."""


class ImageDownloadError(StorySpinnerError):
    """An image reference could not be downloaded into bytes."""


class PlaceholderRenderError(StorySpinnerError):
    """The local placeholder renderer failed to draw an image."""


class PreferencesValidationError(StorySpinnerError, ValueError):
    """Required preference fields are missing; the run must not start."""


class GenerationInProgressError(StorySpinnerError):
    """A run is already in progress."""


class GenerationCancelledError(StorySpinnerError):
    """The run was cancelled before it finished."""
