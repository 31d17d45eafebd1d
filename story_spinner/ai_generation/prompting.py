"""
Prompt construction utilities for Story Spinner page illustrations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from story_spinner.story_generation.profile import StoryPreferences

VISUAL_KEYWORDS: frozenset[str] = frozenset(
    {
        "forest", "castle", "dragon", "magic", "sword", "treasure", "mountain", "river",
        "cave", "bridge", "tower", "garden", "door", "window", "stairs", "path",
        "light", "dark", "bright", "colorful", "mysterious", "glowing", "sparkling",
    }
)

FALLBACK_VISUAL_FOCUS = "adventure scene"
MAX_VISUAL_KEYWORDS = 3
SCENE_EXCERPT_LENGTH = 100

STYLE_DIRECTIVE = "Children's book illustration, high quality digital art."
RENDERING_DIRECTIVE = (
    "Style: Warm, colorful, friendly cartoon illustration suitable for children's books."
)
QUALITY_DIRECTIVE = (
    "Quality: Professional children's book illustration, vibrant colors, engaging composition."
)
SAFETY_DIRECTIVE = "Avoid: Dark themes, scary elements, inappropriate content."

_TOKEN_PATTERN = re.compile(r"[^\W_]+")


@dataclass(frozen=True)
class IllustrationPrompt:
    """The scene-level prompt and the final provider-ready prompt for one page."""

    scene: str
    full: str
    keywords: tuple[str, ...]


def extract_visual_keywords(
    text: str,
    *,
    vocabulary: frozenset[str] = VISUAL_KEYWORDS,
    limit: int = MAX_VISUAL_KEYWORDS,
) -> list[str]:
    """
    Return up to ``limit`` vocabulary words found in ``text``, in order of first appearance.
    """
    found: list[str] = []
    for token in _TOKEN_PATTERN.findall(text.lower()):
        if token in vocabulary and token not in found:
            found.append(token)
            if len(found) >= limit:
                break
    return found


def format_visual_focus(keywords: Sequence[str]) -> str:
    return ", ".join(keywords) if keywords else FALLBACK_VISUAL_FOCUS


def build_scene_prompt(page_text: str, page_number: int, display_name: str) -> str:
    """
    Describe what page ``page_number`` should show, anchored on the protagonist.
    """
    focus = format_visual_focus(extract_visual_keywords(page_text))
    excerpt = page_text[:SCENE_EXCERPT_LENGTH]
    return (
        f"Page {page_number} of children's book featuring {display_name}.\n"
        f"Scene description: {excerpt}...\n"
        f"Visual focus: {focus}\n"
        f"Character: {display_name} as the main character in this scene.\n"
        "Style: Consistent character appearance across all illustrations."
    )


def build_illustration_prompt(
    page_text: str,
    page_number: int,
    preferences: StoryPreferences,
) -> IllustrationPrompt:
    """
    Build the complete prompt sent to every remote image provider for one page.
    """
    name = preferences.display_name
    keywords = tuple(extract_visual_keywords(page_text))
    scene = build_scene_prompt(page_text, page_number, name)

    lines = [
        STYLE_DIRECTIVE,
        f"Scene: {scene}",
        (
            f"Main character: {name}, age {preferences.child_age}, "
            f"{preferences.gender.label.lower()}, wearing "
            f"{preferences.fashion_style.label.lower()} style clothing."
        ),
        f"Setting: {preferences.favorite_season.label} atmosphere and mood.",
        RENDERING_DIRECTIVE,
    ]

    game = preferences.favorite_video_game.strip()
    if game:
        lines.append(f"Elements: Include subtle references to {game} in the background or details.")

    lines.extend([QUALITY_DIRECTIVE, SAFETY_DIRECTIVE])
    return IllustrationPrompt(scene=scene, full="\n".join(lines), keywords=keywords)
