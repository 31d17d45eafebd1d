"""
High-level utilities for rendering Story Spinner stories into printable PDFs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError
from reportlab.pdfgen import canvas
from reportlab.platypus import Frame, Paragraph

from story_spinner.pipeline.pipeline import Story, StoryPage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageLayoutConfig:
    title_color: colors.Color
    subtitle_color: colors.Color
    text_color: colors.Color
    page_number_color: colors.Color


DEFAULT_LAYOUT = PageLayoutConfig(
    title_color=colors.HexColor("#007AFF"),
    subtitle_color=colors.HexColor("#8E8E93"),
    text_color=colors.HexColor("#1C1C1E"),
    page_number_color=colors.HexColor("#8E8E93"),
)


PAGE_SIZES = {
    "letter": LETTER,
    "a4": A4,
    "square": (8 * inch, 8 * inch),
}

IMAGE_HEIGHT = 300.0


def format_short_date(value: datetime) -> str:
    return f"{value.month}/{value.day}/{value:%y}"


class StorybookPDFBuilder:
    """
    Render a generated :class:`Story` into a printable PDF.

    The builder creates:
      * A title page with the story title, a subtitle, and a starring/genre/date block.
      * One page per story page: page number, the illustration when its bytes decode,
        and the page text below it (or a text-only layout when there is no image).
    """

    def __init__(
        self,
        *,
        page_size: tuple[float, float] = PAGE_SIZES["letter"],
        margin: float = 50.0,
        layout: PageLayoutConfig = DEFAULT_LAYOUT,
    ) -> None:
        self.page_size = page_size
        self.margin = margin
        self.layout = layout

        self.body_font, self.body_bold_font = self._configure_story_fonts()

        self.title_style = ParagraphStyle(
            name="StoryTitle",
            fontName=self.body_bold_font,
            fontSize=36,
            leading=42,
            alignment=TA_CENTER,
            textColor=self.layout.title_color,
            spaceAfter=20,
        )
        self.subtitle_style = ParagraphStyle(
            name="StorySubtitle",
            fontName=self.body_font,
            fontSize=18,
            leading=22,
            alignment=TA_CENTER,
            textColor=self.layout.subtitle_color,
        )
        self.details_style = ParagraphStyle(
            name="StoryDetails",
            fontName=self.body_font,
            fontSize=14,
            leading=20,
            alignment=TA_LEFT,
            textColor=self.layout.text_color,
        )
        self.body_style = ParagraphStyle(
            name="Body",
            fontName=self.body_font,
            fontSize=16,
            leading=22,
            alignment=TA_LEFT,
            textColor=self.layout.text_color,
            spaceAfter=10,
        )

    def build(self, story: Story, output_path: Path | str) -> Path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with output_file.open("wb") as handle:
            self._render_to(story, handle)
        logger.info("Wrote PDF for '%s' to %s", story.title, output_file)
        return output_file

    def render(self, story: Story) -> bytes:
        buffer = BytesIO()
        self._render_to(story, buffer)
        return buffer.getvalue()

    def _render_to(self, story: Story, target: BinaryIO) -> None:
        pdf = canvas.Canvas(target, pagesize=self.page_size)
        pdf.setTitle(story.title)
        pdf.setAuthor("Story Spinner")
        width, height = self.page_size

        self._draw_title_page(pdf, story, width, height)
        for page in story.pages:
            self._draw_story_page(pdf, page, width, height)

        pdf.save()

    # ------------------------------------------------------------------ title page

    def _draw_title_page(
        self,
        pdf: canvas.Canvas,
        story: Story,
        width: float,
        height: float,
    ) -> None:
        heading = Frame(
            self.margin,
            height / 2,
            width - 2 * self.margin,
            height / 2 - 120,
            showBoundary=0,
        )
        heading.addFromList(
            [
                Paragraph(escape(story.title), self.title_style),
                Paragraph("A personalized story", self.subtitle_style),
            ],
            pdf,
        )

        details = "<br/>".join(
            [
                f"Starring: {escape(story.display_name)}",
                f"Genre: {escape(story.preferences.genre.label)}",
                f"Created: {format_short_date(story.created_at)}",
            ]
        )
        details_frame = Frame(100, 100, width - 200, 100, showBoundary=0)
        details_frame.addFromList([Paragraph(details, self.details_style)], pdf)
        pdf.showPage()

    # ------------------------------------------------------------------ story pages

    def _draw_story_page(
        self,
        pdf: canvas.Canvas,
        page: StoryPage,
        width: float,
        height: float,
    ) -> None:
        pdf.saveState()
        pdf.setFont(self.body_bold_font, 12)
        pdf.setFillColor(self.layout.page_number_color)
        pdf.drawRightString(width - self.margin, height - self.margin - 12, f"Page {page.page_number}")
        pdf.restoreState()

        text_top = height - self.margin - 60
        image_reader = self._image_reader(page)
        if image_reader is not None:
            box_width = width - 2 * self.margin
            box_top = height - self.margin - 40
            self._draw_image(pdf, image_reader, self.margin, box_top - IMAGE_HEIGHT, box_width, IMAGE_HEIGHT)
            text_top = box_top - IMAGE_HEIGHT - 30

        text_frame = Frame(
            self.margin,
            self.margin,
            width - 2 * self.margin,
            text_top - self.margin,
            showBoundary=0,
        )
        paragraphs = [
            Paragraph(escape(block).replace("\n", "<br/>"), self.body_style)
            for block in filter(None, (chunk.strip() for chunk in page.text.split("\n\n")))
        ]
        text_frame.addFromList(paragraphs, pdf)
        pdf.showPage()

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _image_reader(page: StoryPage) -> Optional[ImageReader]:
        if page.image_data is None:
            return None
        try:
            reader = ImageReader(BytesIO(page.image_data))
            reader.getSize()
        except Exception as exc:
            logger.warning("Skipping undecodable image on page %d: %s", page.page_number, exc)
            return None
        return reader

    @staticmethod
    def _draw_image(
        pdf: canvas.Canvas,
        image_reader: ImageReader,
        x: float,
        y: float,
        box_width: float,
        box_height: float,
    ) -> None:
        img_width, img_height = image_reader.getSize()
        scale = min(box_width / img_width, box_height / img_height)
        draw_width = img_width * scale
        draw_height = img_height * scale
        pdf.drawImage(
            image_reader,
            x + (box_width - draw_width) / 2,
            y + (box_height - draw_height) / 2,
            draw_width,
            draw_height,
            preserveAspectRatio=True,
            mask="auto",
        )

    def _configure_story_fonts(self) -> tuple[str, str]:
        playful_options = [
            (
                "ComicSansMS",
                "ComicSansMS-Bold",
                ["Comic Sans MS.ttf", "ComicSansMS.ttf"],
                ["Comic Sans MS Bold.ttf", "ComicSansMS-Bold.ttf"],
            ),
        ]

        search_roots = [
            Path("/Library/Fonts"),
            Path("/System/Library/Fonts"),
            Path.home() / "Library" / "Fonts",
            Path("C:/Windows/Fonts"),
            Path("/usr/share/fonts/truetype/msttcorefonts"),
        ]

        for regular_name, bold_name, regular_candidates, bold_candidates in playful_options:
            regular_ready = self._register_font_if_available(regular_name, regular_candidates, search_roots)
            bold_ready = self._register_font_if_available(bold_name, bold_candidates, search_roots)
            if regular_ready and bold_ready:
                return regular_name, bold_name

        return "Helvetica", "Helvetica-Bold"

    @staticmethod
    def _register_font_if_available(
        font_name: str,
        candidate_filenames: Sequence[str],
        search_roots: Sequence[Path],
    ) -> bool:
        if font_name in pdfmetrics.getRegisteredFontNames():
            return True

        for root in search_roots:
            for candidate in candidate_filenames:
                font_path = root / candidate
                if font_path.exists():
                    try:
                        pdfmetrics.registerFont(TTFont(font_name, str(font_path)))
                        return True
                    except TTFError:
                        continue
        return False
