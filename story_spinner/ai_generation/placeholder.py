"""
Local placeholder illustrations drawn with Pillow when every remote provider fails.
"""

from __future__ import annotations

import logging
import math
import random
from io import BytesIO

from PIL import Image, ImageChops, ImageDraw, ImageFont

from story_spinner.common.errors import PlaceholderRenderError
from story_spinner.story_generation.profile import Genre, Season, StoryPreferences

logger = logging.getLogger(__name__)

PLACEHOLDER_SIZE = 1024
TITLE_FONT_SIZE = 48
STAR_COUNT = 20
CIRCLE_COUNT = 10
CIRCLE_DIAMETER = 30

RGB = tuple[int, int, int]

_GREEN: RGB = (52, 199, 89)
_YELLOW: RGB = (255, 204, 0)
_BLUE: RGB = (0, 122, 255)
_ORANGE: RGB = (255, 149, 0)
_RED: RGB = (255, 59, 48)
_WHITE: RGB = (255, 255, 255)


def _over_white(color: RGB, alpha: float) -> RGB:
    return tuple(round(channel * alpha + 255 * (1 - alpha)) for channel in color)  # type: ignore[return-value]


SEASON_GRADIENTS: dict[Season, tuple[RGB, RGB]] = {
    Season.SPRING: (_over_white(_GREEN, 0.7), _over_white(_YELLOW, 0.5)),
    Season.SUMMER: (_over_white(_BLUE, 0.7), _over_white(_YELLOW, 0.8)),
    Season.FALL: (_over_white(_ORANGE, 0.7), _over_white(_RED, 0.5)),
    Season.WINTER: (_over_white(_BLUE, 0.5), _WHITE),
}

STAR_FILL = (255, 255, 0, 153)
CIRCLE_FILL = (0, 255, 255, 77)

_FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")


class PlaceholderImageRenderer:
    """
    Draws a deterministic cover-style image from the story preferences.

    The output depends only on the display name, genre and season: the gradient comes
    from the season, the decorative motif from the genre, and the motif layout from a
    random generator seeded with those three values.
    """

    def __init__(self, *, size: int = PLACEHOLDER_SIZE, font_size: int = TITLE_FONT_SIZE) -> None:
        self._size = size
        self._font_size = font_size

    def render(self, page_text: str, preferences: StoryPreferences) -> bytes:
        try:
            image = self._draw(preferences)
            buffer = BytesIO()
            image.save(buffer, format="PNG")
        except (OSError, ValueError) as exc:
            raise PlaceholderRenderError(f"Placeholder rendering failed: {exc}") from exc
        return buffer.getvalue()

    def _draw(self, preferences: StoryPreferences) -> Image.Image:
        start, end = SEASON_GRADIENTS[preferences.favorite_season]
        canvas = self._diagonal_gradient(start, end).convert("RGBA")

        rng = random.Random(
            f"{preferences.display_name}|{preferences.genre.value}|{preferences.favorite_season.value}"
        )
        overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        if preferences.genre is Genre.FANTASY:
            for _ in range(STAR_COUNT):
                center = (rng.uniform(0, self._size), rng.uniform(0, self._size))
                _draw_star(draw, center, rng.uniform(8, 16))
        elif preferences.genre is Genre.SCI_FI:
            for _ in range(CIRCLE_COUNT):
                x, y = rng.uniform(0, self._size), rng.uniform(0, self._size)
                draw.ellipse((x, y, x + CIRCLE_DIAMETER, y + CIRCLE_DIAMETER), fill=CIRCLE_FILL)
        canvas = Image.alpha_composite(canvas, overlay)

        text_layer = ImageDraw.Draw(canvas)
        text_layer.text(
            (self._size / 2, self._size / 2),
            f"{preferences.display_name}'s Adventure",
            font=self._load_font(),
            fill=(255, 255, 255, 255),
            stroke_width=2,
            stroke_fill=(0, 0, 0, 255),
            anchor="mm",
        )
        return canvas.convert("RGB")

    def _diagonal_gradient(self, start: RGB, end: RGB) -> Image.Image:
        # Top-left is pure ``start``; bottom-right is (almost) pure ``end``.
        vertical = Image.linear_gradient("L").resize((self._size, self._size))
        vertical = vertical.point(lambda value: value // 2)
        horizontal = vertical.transpose(Image.Transpose.ROTATE_90)
        mask = ImageChops.add(vertical, horizontal)

        first = Image.new("RGB", (self._size, self._size), start)
        second = Image.new("RGB", (self._size, self._size), end)
        return Image.composite(second, first, mask)

    def _load_font(self) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
        for candidate in _FONT_CANDIDATES:
            try:
                return ImageFont.truetype(candidate, self._font_size)
            except OSError:
                continue
        return ImageFont.load_default(size=self._font_size)


def _draw_star(draw: ImageDraw.ImageDraw, center: tuple[float, float], radius: float) -> None:
    points = 5
    inner_radius = radius * 0.4
    cx, cy = center
    vertices = []
    for index in range(points * 2):
        angle = index * math.pi / points
        current = radius if index % 2 == 0 else inner_radius
        vertices.append((cx + current * math.sin(angle), cy - current * math.cos(angle)))
    draw.polygon(vertices, fill=STAR_FILL)
