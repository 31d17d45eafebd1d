"""
Environment-driven settings for the Story Spinner pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_TEXT_MODEL = "openrouter/google/gemma-3-27b-it:free"
DEFAULT_IMAGE_MODEL = "black-forest-labs/flux-1.1-pro"
DEFAULT_SECONDARY_IMAGE_URL = "https://api.openai.com/v1"
DEFAULT_SECONDARY_IMAGE_MODEL = "dall-e-3"


def _first_env(*names: str) -> str | None:
    for name in names:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None


def _parse_int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value < 1:
        return default
    return value


def _parse_float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value < 0:
        return default
    return value


@dataclass(frozen=True)
class Settings:
    text_model: str = DEFAULT_TEXT_MODEL
    text_api_key: str | None = None
    max_tokens: int = 2000
    replicate_api_token: str | None = None
    image_model: str = DEFAULT_IMAGE_MODEL
    secondary_image_url: str = DEFAULT_SECONDARY_IMAGE_URL
    secondary_image_model: str = DEFAULT_SECONDARY_IMAGE_MODEL
    secondary_image_key: str | None = None
    page_delay: float = 0.5
    request_timeout: float = 60.0
    log_level: str = "INFO"


def get_settings(*, load_env_file: bool = True) -> Settings:
    if load_env_file:
        load_dotenv()

    return Settings(
        text_model=_first_env("STORY_SPINNER_TEXT_MODEL", "LITELLM_MODEL") or DEFAULT_TEXT_MODEL,
        text_api_key=_first_env("OPENROUTER_API_KEY", "OPENAI_API_KEY", "LITELLM_API_KEY"),
        max_tokens=_parse_int_env("STORY_SPINNER_MAX_TOKENS", default=2000),
        replicate_api_token=_first_env("REPLICATE_API_TOKEN"),
        image_model=_first_env("STORY_SPINNER_IMAGE_MODEL", "REPLICATE_MODEL") or DEFAULT_IMAGE_MODEL,
        secondary_image_url=(
            _first_env("STORY_SPINNER_SECONDARY_IMAGE_URL") or DEFAULT_SECONDARY_IMAGE_URL
        ).rstrip("/"),
        secondary_image_model=(
            _first_env("STORY_SPINNER_SECONDARY_IMAGE_MODEL") or DEFAULT_SECONDARY_IMAGE_MODEL
        ),
        secondary_image_key=_first_env("STORY_SPINNER_SECONDARY_IMAGE_KEY", "OPENAI_API_KEY"),
        page_delay=_parse_float_env("STORY_SPINNER_PAGE_DELAY", default=0.5),
        request_timeout=_parse_float_env("STORY_SPINNER_REQUEST_TIMEOUT", default=60.0),
        log_level=_first_env("STORY_SPINNER_LOG_LEVEL") or "INFO",
    )
