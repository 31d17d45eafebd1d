"""
CLI entry point that runs the complete Story Spinner pipeline end-to-end.

Usage:
    python scripts/run_full_pipeline.py \
        --preferences preferences.yaml \
        --output-dir out/mira \
        --pdf out/mira/story.pdf
"""

from __future__ import annotations

import argparse
import asyncio
import json
import random
import sys
from pathlib import Path
from typing import Any, Dict

import yaml
from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from story_spinner import RunPhase, RunSnapshot, StoryManager, StorybookPDFBuilder  # noqa: E402
from story_spinner.common import (  # noqa: E402
    PreferencesValidationError,
    StorySpinnerError,
    configure_logging,
)
from story_spinner.config import get_settings  # noqa: E402
from story_spinner.story_generation import StoryPreferences  # noqa: E402


class ProgressTracker:
    """
    Renders run-state snapshots as a command-line progress bar.
    """

    def __init__(self) -> None:
        self._bar: tqdm | None = None
        self._last_status: str | None = None

    def __call__(self, snapshot: RunSnapshot) -> None:
        if snapshot.phase is RunPhase.IN_PROGRESS:
            if self._bar is None:
                self._bar = tqdm(total=100, desc="Story", unit="%", bar_format="{l_bar}{bar}| {n:.0f}%")
            self._bar.n = round(snapshot.progress * 100)
            self._bar.refresh()
            if snapshot.status != self._last_status:
                self._last_status = snapshot.status
                self._write(snapshot.status)
        elif snapshot.phase is RunPhase.COMPLETED:
            if self._bar is not None:
                self._bar.n = 100
                self._bar.refresh()
            self._write(snapshot.status)
            self.close()
        elif snapshot.phase is RunPhase.FAILED:
            self._write(f"{snapshot.status}: {snapshot.error}")
            self.close()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a personalized, illustrated story.")
    parser.add_argument(
        "--preferences",
        required=True,
        help="Path to the story preferences YAML/JSON file.",
    )
    parser.add_argument(
        "--output-dir",
        default="story_output",
        help="Directory receiving story.yaml and the page images.",
    )
    parser.add_argument(
        "--pdf",
        default=None,
        help="Optional PDF file to render once the story is ready.",
    )
    parser.add_argument(
        "--page-delay",
        type=float,
        default=None,
        help="Seconds to wait between page illustrations (default: settings, 0.5).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for title selection, for reproducible output.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args()


def load_preferences_mapping(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError("Unsupported preferences file format. Use YAML or JSON.")

    if not isinstance(data, dict):
        raise ValueError("Preferences file must deserialize to a mapping.")
    return data


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    preferences = StoryPreferences.from_mapping(load_preferences_mapping(Path(args.preferences)))
    try:
        StoryManager.validate(preferences)
    except PreferencesValidationError as exc:
        tqdm.write(str(exc))
        return 2

    overrides: dict[str, Any] = {}
    if args.page_delay is not None:
        overrides["page_delay"] = args.page_delay
    if args.seed is not None:
        overrides["rng"] = random.Random(args.seed)

    manager = StoryManager.from_settings(settings, **overrides)
    tracker = ProgressTracker()
    manager.subscribe(tracker)

    try:
        story = await manager.run(preferences)
    except StorySpinnerError:
        return 1
    finally:
        tracker.close()
        await manager.aclose()

    yaml_path = story.write_bundle(args.output_dir)
    tqdm.write(f"Saved '{story.title}' to {yaml_path}")

    if args.pdf:
        pdf_path = StorybookPDFBuilder().build(story, args.pdf)
        tqdm.write(f"Rendered storybook PDF to {pdf_path}")
    return 0


def main() -> int:
    return asyncio.run(run(parse_args()))


if __name__ == "__main__":
    raise SystemExit(main())
