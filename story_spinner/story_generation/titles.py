"""
Story title generation from genre and season adjectives.
"""

from __future__ import annotations

import logging
import random

from .profile import Genre, Season, StoryPreferences

logger = logging.getLogger(__name__)

GENRE_ADJECTIVES: dict[Genre, str] = {
    Genre.SCI_FI: "Space",
    Genre.FANTASY: "Magical",
    Genre.SPORTS: "Championship",
    Genre.FICTION: "Amazing",
    Genre.DRAMA: "Heartwarming",
    Genre.SUSPENSE: "Mysterious",
    Genre.KID_FRIENDLY_HORROR: "Spooky",
}

SEASON_ADJECTIVES: dict[Season, str] = {
    Season.SPRING: "Blooming",
    Season.SUMMER: "Sunny",
    Season.FALL: "Golden",
    Season.WINTER: "Snowy",
}

TITLE_TEMPLATES: tuple[str, ...] = (
    "{name}'s {genre} Adventure",
    "The {genre} Quest of {name}",
    "{name} and the {season} {genre} Mystery",
    "{name}'s {season} Journey",
)

DEFAULT_TITLE_TEMPLATE = "{name}'s Amazing Adventure"


def title_candidates(preferences: StoryPreferences) -> list[str]:
    """Every title the templates can produce for ``preferences``, in template order."""
    values = {
        "name": preferences.display_name,
        "genre": GENRE_ADJECTIVES[preferences.genre],
        "season": SEASON_ADJECTIVES[preferences.favorite_season],
    }
    return [template.format(**values) for template in TITLE_TEMPLATES]


def generate_story_title(
    preferences: StoryPreferences,
    rng: random.Random | None = None,
) -> str:
    """
    Pick one templated title. Pass a seeded ``rng`` for reproducible output.
    """
    chooser = rng or random
    try:
        return chooser.choice(title_candidates(preferences))
    except (IndexError, KeyError) as exc:
        logger.warning("Falling back to default title: %s", exc)
        return DEFAULT_TITLE_TEMPLATE.format(name=preferences.display_name)
