"""
Drill runner.

Holds the one live session, wires it to the stores and turns the state
machine's "advance after N ms" answers into deferred tasks. The front-end
drives everything through this class and calls ``poll()`` on its redraw
cadence to fire due advances and notice the whole-session timer.
"""

from __future__ import annotations

import random
from dataclasses import replace
from typing import TYPE_CHECKING

from loguru import logger

from config import QueueConfig, SessionTimingConfig

from .clock import Clock, SystemClock
from .models import SessionConfig, SessionOptions
from .queue_builder import build_focused_queue, build_session_queue
from .questions import Question
from .scheduling import DeferredTask, TaskScheduler
from .session import DrillSession, NextAction, Phase, SessionMachine, Transition

if TYPE_CHECKING:
    from src.storage.mastery import FactMasteryStore
    from src.storage.statistics import StatisticsRecorder


class DrillRunner:
    """Owner of the live ``DrillSession``."""

    def __init__(
        self,
        mastery: FactMasteryStore,
        recorder: StatisticsRecorder | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        timing: SessionTimingConfig | None = None,
        queue_config: QueueConfig | None = None,
    ):
        self.mastery = mastery
        self.recorder = recorder
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.timing = timing or SessionTimingConfig()
        self.queue_config = queue_config or QueueConfig()

        self.scheduler = TaskScheduler()
        self.generation = 0
        self.machine: SessionMachine | None = None

    @property
    def session(self) -> DrillSession | None:
        return self.machine.session if self.machine else None

    @property
    def is_active(self) -> bool:
        return self.machine is not None and not self.machine.session.is_complete

    # =========================================================================
    # Starting
    # =========================================================================

    def start(self, config: SessionConfig, options: SessionOptions) -> Transition:
        """Start a session, replacing any live one, and present its first question."""
        built = build_session_queue(config, options, self.mastery, self.rng, self.queue_config)
        return self._begin(config, options, built.questions, built.notice)

    def start_focused(
        self,
        keys: list[str],
        config: SessionConfig,
        size: int | None = None,
        strict: bool = False,
    ) -> Transition:
        """Start a short session cycling through specific fact keys."""
        size = size or self.queue_config.focused_session_size
        config = config.unfocused()
        questions = build_focused_queue(keys, size, config, self.rng)
        options = SessionOptions(size=size, shuffle=False, strict=strict)
        return self._begin(config, options, questions, None)

    def _begin(
        self,
        config: SessionConfig,
        options: SessionOptions,
        questions: list[Question],
        notice: str | None,
    ) -> Transition:
        self.scheduler.cancel_all()
        self.generation += 1

        now = self.clock.monotonic_ms()
        session = DrillSession(
            config=config,
            options=options,
            queue=questions,
            generation=self.generation,
            started_at=now,
            timer_end=now + options.test_seconds * 1000 if options.timed_test else None,
            notice=notice,
        )
        self.machine = SessionMachine(
            session,
            self.clock,
            self.rng,
            mastery=self.mastery,
            recorder=self.recorder,
            timing=self.timing,
            queue_config=self.queue_config,
        )
        logger.info(f"Session {self.generation} started: {config.identifier}, {len(questions)} questions")

        transition = self.machine.advance()
        if notice:
            transition = replace(transition, notice=notice)
        return transition

    # =========================================================================
    # Learner actions
    # =========================================================================

    def submit(self, raw: str) -> Transition | None:
        if self.machine is None:
            return None
        return self._after(self.machine.submit(raw))

    def skip(self) -> Transition | None:
        if self.machine is None:
            return None
        return self._after(self.machine.skip())

    def acknowledge(self) -> Transition | None:
        if self.machine is None:
            return None
        return self.machine.acknowledge()

    def quit(self) -> Transition | None:
        """End the live session early."""
        if self.machine is None:
            return None
        self.scheduler.cancel_all()
        return self.machine.finish()

    # =========================================================================
    # Polling
    # =========================================================================

    def poll(self) -> list[Transition]:
        """Check the session timer, then run due deferred advances."""
        if self.machine is None:
            return []

        transitions = []
        expired = self.machine.poll_timer()
        if expired is not None:
            self.scheduler.cancel_all()
            transitions.append(expired)

        now = self.clock.monotonic_ms()
        for result in self.scheduler.run_due(now, self._is_current):
            if result is not None:
                transitions.append(result)
        return transitions

    @property
    def next_due(self) -> float | None:
        return self.scheduler.next_due

    def _after(self, transition: Transition | None) -> Transition | None:
        if transition is not None and transition.next_action is NextAction.AUTO_ADVANCE:
            session = self.machine.session
            self.scheduler.schedule(
                self.clock.monotonic_ms() + transition.delay_ms,
                session.generation,
                session.serial,
                self.machine.advance,
                label=transition.outcome.value,
            )
        return transition

    def _is_current(self, task: DeferredTask) -> bool:
        session = self.session
        return (
            session is not None
            and task.generation == session.generation
            and task.serial == session.serial
            and session.phase is Phase.ADVANCE_PENDING
        )

