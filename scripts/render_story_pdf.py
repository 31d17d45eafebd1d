"""
Render a saved Story Spinner story YAML into a printable PDF.

Usage:
    python scripts/render_story_pdf.py \
        --story out/mira/story.yaml \
        --output out/mira/story.pdf
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on the Python path.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from story_spinner import Story, StorybookPDFBuilder  # noqa: E402
from story_spinner.pdf_generation import PAGE_SIZES  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert a Story Spinner story YAML into a storybook PDF."
    )
    parser.add_argument(
        "--story",
        required=True,
        help="Path to the story YAML (output of run_full_pipeline.py).",
    )
    parser.add_argument(
        "--output",
        required=True,
        help="Destination PDF file path.",
    )
    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES.keys()),
        default="letter",
        help="Page size to render (default: letter).",
    )
    parser.add_argument(
        "--margin",
        type=float,
        default=50.0,
        help="Page margin in points (default: 50).",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    story = Story.from_yaml(args.story)
    builder = StorybookPDFBuilder(page_size=PAGE_SIZES[args.page_size], margin=args.margin)
    builder.build(story, args.output)

    print(f"Rendered storybook PDF to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
