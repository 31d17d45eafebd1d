"""
Service layer for producing story text via LiteLLM-compatible models.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from story_spinner.common import (
    ChatResult,
    CompletionCallable,
    NoContentError,
    TextGenerationError,
    acall_chat_completion,
)
from story_spinner.config import DEFAULT_TEXT_MODEL

from .profile import StoryPreferences
from .prompting import StoryPrompt, build_story_prompt

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 2000


class StoryTextGenerator:
    """
    Text generation client: turns story preferences into raw, marker-separated story text.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float | None = None,
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._api_key = (
            api_key
            or os.getenv("OPENROUTER_API_KEY")
            or os.getenv("OPENAI_API_KEY")
            or os.getenv("LITELLM_API_KEY")
        )
        self._model = (
            model
            or os.getenv("STORY_SPINNER_TEXT_MODEL")
            or os.getenv("LITELLM_MODEL")
            or DEFAULT_TEXT_MODEL
        )
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._completion_fn: CompletionCallable = completion_fn or acall_chat_completion

    @property
    def model(self) -> str:
        """Return the model identifier in use."""
        return self._model

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        **response_kwargs: Any,
    ) -> str:
        """
        Send a system/user message pair and return the first choice's content.

        Raises
        ------
        NoContentError
            The response carried no text.
        TextGenerationError
            The provider or transport failed.
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        try:
            result: ChatResult = await self._completion_fn(
                model=self._model,
                messages=messages,
                max_tokens=max_tokens if max_tokens is not None else self._max_tokens,
                api_key=self._api_key,
                timeout=self._timeout,
                **response_kwargs,
            )
        except TextGenerationError:
            raise
        except Exception as exc:
            logger.error("Story generation error from %s: %s", self._model, exc)
            raise TextGenerationError(str(exc) or type(exc).__name__) from exc

        if not result.text:
            raise NoContentError("No story content received")

        return result.text

    async def generate_story(self, preferences: StoryPreferences) -> str:
        """
        Build the story prompts for ``preferences`` and return the raw story text.
        """
        prompt: StoryPrompt = build_story_prompt(preferences)
        text = await self.complete(prompt.system, prompt.user, self._max_tokens)
        logger.info("Received %d characters of story text from %s", len(text), self._model)
        return text
