"""Tests for the end-to-end story generation orchestrator."""

import asyncio
import random
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from conftest import FakeImageClient, FakePlaceholder, FakeTextClient, five_page_story

from story_spinner.common.errors import (
    GenerationCancelledError,
    GenerationInProgressError,
    PreferencesValidationError,
    TextGenerationError,
)
from story_spinner.config import Settings
from story_spinner.pipeline import RunPhase, StoryManager
from story_spinner.pipeline.pipeline import CANCELLED_MESSAGE, READY_STATUS
from story_spinner.story_generation import StoryPreferences

FIXED_TIME = datetime(2024, 3, 9, 12, 0, tzinfo=timezone.utc)


def _manager(text_client, primary=None, secondary=None, placeholder=None, sleep=None, **kwargs):
    return StoryManager(
        text_client=text_client,
        primary=primary,
        secondary=secondary,
        placeholder=placeholder or FakePlaceholder(),
        rng=random.Random(7),
        clock=lambda: FIXED_TIME,
        sleep=sleep or AsyncMock(),
        **kwargs,
    )


class TestStoryManagerSuccess:
    @pytest.mark.asyncio
    async def test_run_produces_five_illustrated_pages(self, preferences, png_bytes):
        image_client = FakeImageClient(data=png_bytes)
        manager = _manager(FakeTextClient(five_page_story()), primary=image_client)

        story = await manager.run(preferences)

        assert [page.page_number for page in story.pages] == [1, 2, 3, 4, 5]
        assert all(page.image_data == png_bytes for page in story.pages)
        assert all(page.image_url == "https://images.example/page.png" for page in story.pages)
        assert story.pages[0].text.startswith("Mira found a glowing door")
        assert "Mira" in story.title
        assert story.created_at == FIXED_TIME
        assert image_client.generate.await_count == 5

        snapshot = manager.snapshot
        assert snapshot.phase is RunPhase.COMPLETED
        assert snapshot.progress == 1.0
        assert snapshot.status == READY_STATUS
        assert snapshot.story is story
        assert manager.current_story is story

    @pytest.mark.asyncio
    async def test_progress_is_monotonic_and_reaches_one(self, preferences):
        manager = _manager(FakeTextClient(five_page_story()), primary=FakeImageClient())
        seen = []
        manager.subscribe(seen.append)

        await manager.run(preferences)

        progress = [snapshot.progress for snapshot in seen]
        assert progress == sorted(progress)
        assert progress[-1] == 1.0
        assert all(value < 1.0 for value in progress[:-1])
        statuses = [snapshot.status for snapshot in seen]
        assert "Creating illustration 1 of 5..." in statuses
        assert "Creating illustration 5 of 5..." in statuses

    @pytest.mark.asyncio
    async def test_pages_are_paced(self, preferences):
        sleep = AsyncMock()
        manager = _manager(FakeTextClient(five_page_story()), primary=FakeImageClient(), sleep=sleep)

        await manager.run(preferences)

        assert sleep.await_count == 5
        sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_zero_page_delay_skips_sleep(self, preferences):
        sleep = AsyncMock()
        manager = _manager(
            FakeTextClient(five_page_story()), primary=FakeImageClient(), sleep=sleep, page_delay=0
        )

        await manager.run(preferences)

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_providers_fall_back_to_placeholder(self, preferences, failing_image_client):
        manager = _manager(
            FakeTextClient(five_page_story()),
            primary=failing_image_client,
            placeholder=FakePlaceholder(data=b"drawn"),
        )

        story = await manager.run(preferences)

        assert all(page.image_data == b"drawn" for page in story.pages)
        assert all(page.image_url is None for page in story.pages)
        assert manager.snapshot.phase is RunPhase.COMPLETED

    @pytest.mark.asyncio
    async def test_malformed_text_still_yields_five_pages(self, preferences):
        manager = _manager(FakeTextClient("Just one paragraph."), primary=FakeImageClient())

        story = await manager.run(preferences)

        assert len(story.pages) == 5
        assert story.pages[0].text == "Just one paragraph."

    @pytest.mark.asyncio
    async def test_reset_after_completion(self, preferences):
        manager = _manager(FakeTextClient(five_page_story()), primary=FakeImageClient())
        await manager.run(preferences)

        manager.reset()

        assert manager.snapshot.phase is RunPhase.NOT_STARTED
        assert manager.current_story is None


class TestStoryManagerFailures:
    @pytest.mark.asyncio
    async def test_text_failure_fails_run_without_touching_images(self, preferences):
        image_client = FakeImageClient()
        placeholder = FakePlaceholder()
        manager = _manager(
            FakeTextClient(error=TextGenerationError("rate limited")),
            primary=image_client,
            placeholder=placeholder,
        )

        with pytest.raises(TextGenerationError):
            await manager.run(preferences)

        snapshot = manager.snapshot
        assert snapshot.phase is RunPhase.FAILED
        assert snapshot.story is None
        assert snapshot.error == "Failed to create your story: rate limited"
        image_client.generate.assert_not_awaited()
        assert placeholder.calls == 0

    @pytest.mark.asyncio
    async def test_unexpected_text_client_error_is_wrapped(self, preferences):
        manager = _manager(FakeTextClient(error=ConnectionError("offline")), primary=FakeImageClient())

        with pytest.raises(TextGenerationError, match="offline"):
            await manager.run(preferences)

        assert manager.snapshot.phase is RunPhase.FAILED

    @pytest.mark.asyncio
    async def test_generate_validates_preferences_first(self):
        text_client = FakeTextClient(five_page_story())
        manager = _manager(text_client, primary=FakeImageClient())

        with pytest.raises(PreferencesValidationError, match="name"):
            await manager.generate(StoryPreferences(child_age="6"))

        text_client.generate_story.assert_not_awaited()
        assert manager.snapshot.phase is RunPhase.NOT_STARTED

    @pytest.mark.asyncio
    async def test_second_run_is_rejected_while_generating(self, preferences):
        release = asyncio.Event()

        async def slow_story(_preferences):
            await release.wait()
            return five_page_story()

        text_client = FakeTextClient()
        text_client.generate_story.side_effect = slow_story
        manager = _manager(text_client, primary=FakeImageClient())

        first_run = asyncio.create_task(manager.run(preferences))
        while not manager.snapshot.is_generating:
            await asyncio.sleep(0)

        with pytest.raises(GenerationInProgressError):
            await manager.run(preferences)
        assert manager.snapshot.is_generating

        release.set()
        story = await first_run
        assert len(story.pages) == 5
        assert text_client.generate_story.await_count == 1

    @pytest.mark.asyncio
    async def test_cancel_stops_before_next_page(self, preferences):
        image_client = FakeImageClient()
        manager = _manager(FakeTextClient(five_page_story()), primary=image_client)

        def cancel_on_second_page(snapshot):
            if snapshot.status == "Creating illustration 2 of 5...":
                manager.cancel()

        manager.subscribe(cancel_on_second_page)

        with pytest.raises(GenerationCancelledError):
            await manager.run(preferences)

        snapshot = manager.snapshot
        assert snapshot.phase is RunPhase.FAILED
        assert snapshot.error == CANCELLED_MESSAGE
        assert snapshot.story is None
        assert image_client.generate.await_count == 2

    @pytest.mark.asyncio
    async def test_task_cancellation_marks_run_failed(self, preferences):
        started = asyncio.Event()

        async def hanging_story(_preferences):
            started.set()
            await asyncio.Event().wait()

        text_client = FakeTextClient()
        text_client.generate_story.side_effect = hanging_story
        manager = _manager(text_client, primary=FakeImageClient())

        task = asyncio.create_task(manager.run(preferences))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert manager.snapshot.phase is RunPhase.FAILED
        assert manager.snapshot.error == CANCELLED_MESSAGE

    @pytest.mark.asyncio
    async def test_unexpected_error_fails_run_and_allows_reuse(self, preferences):
        manager = _manager(
            FakeTextClient(five_page_story()),
            primary=FakeImageClient(),
            sleep=AsyncMock(side_effect=RuntimeError("timer broke")),
        )

        with pytest.raises(RuntimeError, match="timer broke"):
            await manager.run(preferences)

        snapshot = manager.snapshot
        assert snapshot.phase is RunPhase.FAILED
        assert snapshot.error == "Failed to create your story: timer broke"
        assert snapshot.story is None

        manager.reset()
        manager._sleep = AsyncMock()
        story = await manager.run(preferences)
        assert len(story.pages) == 5

    def test_cancel_when_idle_is_a_no_op(self):
        manager = _manager(FakeTextClient())
        manager.cancel()
        assert manager.snapshot.phase is RunPhase.NOT_STARTED


class TestStoryManagerFromSettings:
    def test_providers_without_credentials_are_skipped(self):
        manager = StoryManager.from_settings(Settings(text_api_key="sk-test"))
        assert manager._resolver._providers == []

    def test_overrides_replace_settings_values(self):
        text_client = FakeTextClient()
        manager = StoryManager.from_settings(Settings(), text_client=text_client, page_delay=0)
        assert manager._text_client is text_client
        assert manager._page_delay == 0
