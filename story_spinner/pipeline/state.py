"""
Observable state machine describing the single active story generation run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Callable

from story_spinner.common.errors import GenerationInProgressError

if TYPE_CHECKING:
    from .pipeline import Story

logger = logging.getLogger(__name__)

IDLE_STATUS = "Ready to create your story"
MAX_IN_PROGRESS = 0.99


class RunPhase(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RunSnapshot:
    """Immutable view of the run state handed to presentation layers."""

    phase: RunPhase = RunPhase.NOT_STARTED
    status: str = IDLE_STATUS
    progress: float = 0.0
    story: "Story | None" = None
    error: str | None = None

    @property
    def is_generating(self) -> bool:
        return self.phase is RunPhase.IN_PROGRESS

    @property
    def is_finished(self) -> bool:
        return self.phase in (RunPhase.COMPLETED, RunPhase.FAILED)


StateListener = Callable[[RunSnapshot], None]


class GenerationRunState:
    """
    Holds the current :class:`RunSnapshot` and publishes every transition.

    not-started -> in-progress -> completed | failed, and back to not-started via
    :meth:`reset`. Progress never decreases within a run and only :meth:`complete`
    sets it to 1.0.
    """

    def __init__(self) -> None:
        self._snapshot = RunSnapshot()
        self._listeners: list[StateListener] = []

    @property
    def snapshot(self) -> RunSnapshot:
        return self._snapshot

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register ``listener`` for every future snapshot. Returns an unsubscribe function.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def start(self, status: str) -> None:
        if self._snapshot.is_generating:
            raise GenerationInProgressError("A story is already being generated.")
        self._publish(RunSnapshot(phase=RunPhase.IN_PROGRESS, status=status, progress=0.0))

    def advance(self, status: str, progress: float) -> None:
        self._require_running("advance")
        clamped = min(max(progress, self._snapshot.progress), MAX_IN_PROGRESS)
        self._publish(replace(self._snapshot, status=status, progress=clamped))

    def complete(self, story: "Story", status: str) -> None:
        self._require_running("complete")
        self._publish(
            replace(self._snapshot, phase=RunPhase.COMPLETED, status=status, progress=1.0, story=story)
        )

    def fail(self, error: str, status: str) -> None:
        self._require_running("fail")
        self._publish(replace(self._snapshot, phase=RunPhase.FAILED, status=status, error=error))

    def reset(self) -> None:
        if self._snapshot.is_generating:
            raise GenerationInProgressError("Cannot reset while a story is being generated.")
        self._publish(RunSnapshot())

    def _require_running(self, transition: str) -> None:
        if not self._snapshot.is_generating:
            raise RuntimeError(
                f"Cannot {transition} a run in phase '{self._snapshot.phase.value}'."
            )

    def _publish(self, snapshot: RunSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Run state listener %r raised; ignoring", listener)
