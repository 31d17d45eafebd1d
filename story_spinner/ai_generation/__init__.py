"""
AI image generation package for Story Spinner.
"""

from .base import ImageGenerationClient
from .http_service import HTTPImageGenerator
from .placeholder import PlaceholderImageRenderer
from .prompting import IllustrationPrompt, build_illustration_prompt, extract_visual_keywords
from .replicate_service import ReplicateImageGenerator

__all__ = [
    "ImageGenerationClient",
    "HTTPImageGenerator",
    "IllustrationPrompt",
    "PlaceholderImageRenderer",
    "ReplicateImageGenerator",
    "build_illustration_prompt",
    "extract_visual_keywords",
]
