"""
Prompt construction utilities for the Story Spinner text generation step.
"""

from __future__ import annotations

from dataclasses import dataclass

from .profile import StoryPreferences

PAGE_BREAK_MARKER = "[PAGE BREAK]"

SYSTEM_PROMPT = (
    "You are a creative children's story writer. Create engaging, age-appropriate stories "
    f"with vivid descriptions. Always end each page with {PAGE_BREAK_MARKER} exactly as shown."
)


@dataclass(frozen=True)
class StoryPrompt:
    """
    Container for the system and user prompts passed to the chat completion API.
    """

    system: str
    user: str


def build_story_prompt(preferences: StoryPreferences) -> StoryPrompt:
    """
    Build the prompt pair used to solicit a five-page story from the LLM.
    """
    name = preferences.display_name
    age = preferences.child_age
    genre = preferences.genre.label
    game = preferences.favorite_video_game.strip()
    game_line = f"\n- Incorporate elements from {game} naturally into the story" if game else ""

    user_prompt = f"""Create a captivating children's story with the following specifications:

{preferences.summary_for_prompt()}

Requirements:
- Write exactly 5 pages of story content (not 10)
- Each page should be 4-6 sentences long
- Include unique supporting character names
- Make it suspenseful and engaging
- Age-appropriate content for a {age} year old
- Include vivid visual descriptions for illustration
- End each page with exactly "{PAGE_BREAK_MARKER}" on a new line
- Make {name} the hero of the adventure{game_line}

The story should be original and exciting, perfect for a young reader who loves {genre} adventures!"""

    return StoryPrompt(system=SYSTEM_PROMPT, user=user_prompt)
