"""
Drill session state machine.

A ``DrillSession`` is a plain value holding everything about one run through
a queue. ``SessionMachine`` owns every change to it and reports each change as
a ``Transition`` the front-end can render without looking at the session.

Phases:

    ACTIVE            queue built, nothing shown yet
    PRESENTING        a question is current and waiting for an answer
    ADVANCE_PENDING   answered correctly or skipped, next question is deferred
    AWAITING_CONTINUE missed, waiting for the learner to continue
    COMPLETE          terminal
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from config import QueueConfig, SessionTimingConfig

from .clock import Clock
from .explain import explain
from .facts import Number, round_half_up
from .models import SessionConfig, SessionOptions
from .questions import Question
from .queue_builder import requeue_after_miss

if TYPE_CHECKING:
    from src.storage.mastery import FactMasteryStore
    from src.storage.statistics import StatisticsRecorder

COMPLETE_MESSAGE = "Session complete! Great work."
TIME_UP_MESSAGE = "Time! Timed test finished."
QUIT_MESSAGE = "Session ended."
EMPTY_ANSWER_ERROR = "Please enter an answer"
INVALID_NUMBER_ERROR = "Invalid number"
ANSWER_TOLERANCE = 1e-9


# =============================================================================
# Enums
# =============================================================================


class Phase(str, Enum):
    ACTIVE = "active"
    PRESENTING = "presenting"
    ADVANCE_PENDING = "advance_pending"
    AWAITING_CONTINUE = "awaiting_continue"
    COMPLETE = "complete"


class Outcome(str, Enum):
    PRESENTED = "presented"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    TIMED_OUT = "timed_out"
    INVALID_INPUT = "invalid_input"
    SKIPPED = "skipped"
    COMPLETE = "complete"


class Feedback(str, Enum):
    OK = "ok"
    NO = "no"
    NEUTRAL = "neutral"


class NextAction(str, Enum):
    ANSWER = "answer"  # waiting on submit or skip
    AUTO_ADVANCE = "auto_advance"  # runner advances after delay_ms
    CONTINUE = "continue"  # waiting on acknowledge
    NONE = "none"  # session over


# =============================================================================
# Values
# =============================================================================


@dataclass(frozen=True)
class ProgressSnapshot:
    done: int
    correct: int
    remaining: int
    percent: int
    accuracy: int
    streak: int
    seconds_left: int | None = None


@dataclass(frozen=True)
class SessionSummary:
    """End-of-session figures, produced for every session."""

    done: int
    correct: int
    accuracy: int
    avg_ms: int
    questions_per_minute: int
    best_streak: int
    elapsed_ms: float

    @property
    def text(self) -> str:
        return (
            f"Score: {self.correct}/{self.done} ({self.accuracy}%). "
            f"Avg: {self.avg_ms}ms • QPM: {self.questions_per_minute} • "
            f"Best streak: {self.best_streak}."
        )


@dataclass(frozen=True)
class Transition:
    """One observable change of the session, ready to render."""

    outcome: Outcome
    feedback: Feedback
    message: str
    progress: ProgressSnapshot
    next_action: NextAction
    prompt: str | None = None
    delay_ms: int = 0
    answer: Number | None = None
    explanation: str | None = None
    summary: SessionSummary | None = None
    notice: str | None = None


@dataclass
class DrillSession:
    """Mutable state of the one live session."""

    config: SessionConfig
    options: SessionOptions
    queue: list[Question]
    generation: int
    started_at: float  # monotonic ms
    timer_end: float | None = None
    current: Question | None = None
    question_started_at: float | None = None
    deadline: float | None = None
    done: int = 0
    correct: int = 0
    streak: int = 0
    best_streak: int = 0
    total_answer_ms: float = 0.0
    serial: int = 0
    phase: Phase = Phase.ACTIVE
    summary: SessionSummary | None = None
    notice: str | None = None

    @property
    def remaining(self) -> int:
        return len(self.queue) + (1 if self.current is not None else 0)

    @property
    def is_complete(self) -> bool:
        return self.phase is Phase.COMPLETE


def parse_answer(raw: str) -> tuple[float | None, str | None]:
    """
    Parse learner input as a real number.

    Accepts a decimal comma. Digit separators and non-ASCII digits are
    rejected. Returns ``(value, None)`` or ``(None, error)``.
    """
    text = raw.strip().replace(",", ".", 1)
    if not text:
        return None, EMPTY_ANSWER_ERROR
    if "_" in text or not text.isascii():
        return None, INVALID_NUMBER_ERROR
    try:
        value = float(text)
    except ValueError:
        return None, INVALID_NUMBER_ERROR
    if not math.isfinite(value):
        return None, INVALID_NUMBER_ERROR
    return value, None


# =============================================================================
# State Machine
# =============================================================================


class SessionMachine:
    """
    Applies learner actions and timer events to a ``DrillSession``.

    Actions that make no sense in the current phase (submitting while waiting
    to continue, skipping a finished session) return None and change nothing.
    """

    def __init__(
        self,
        session: DrillSession,
        clock: Clock,
        rng: random.Random,
        mastery: FactMasteryStore | None = None,
        recorder: StatisticsRecorder | None = None,
        timing: SessionTimingConfig | None = None,
        queue_config: QueueConfig | None = None,
    ):
        self.session = session
        self.clock = clock
        self.rng = rng
        self.mastery = mastery
        self.recorder = recorder
        self.timing = timing or SessionTimingConfig()
        self.queue_config = queue_config or QueueConfig()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def now(self) -> float:
        return self.clock.monotonic_ms()

    def timer_expired(self) -> bool:
        end = self.session.timer_end
        return end is not None and self.now() >= end

    def progress(self) -> ProgressSnapshot:
        s = self.session
        remaining = s.remaining
        total = s.done + remaining
        seconds_left = None
        if s.timer_end is not None:
            seconds_left = 0 if s.is_complete else max(0, math.ceil((s.timer_end - self.now()) / 1000))
        return ProgressSnapshot(
            done=s.done,
            correct=s.correct,
            remaining=remaining,
            percent=round_half_up(s.done / total * 100) if total else 0,
            accuracy=round_half_up(s.correct / s.done * 100) if s.done else 0,
            streak=s.streak,
            seconds_left=seconds_left,
        )

    def _transition(self, outcome: Outcome, feedback: Feedback, message: str, next_action: NextAction, **extra) -> Transition:
        logger.debug(f"Session {self.session.generation}: {outcome.value} -> {self.session.phase.value}")
        return Transition(
            outcome=outcome,
            feedback=feedback,
            message=message,
            progress=self.progress(),
            next_action=next_action,
            **extra,
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def advance(self) -> Transition | None:
        """Present the next question, or complete when none is left."""
        s = self.session
        if s.phase in (Phase.PRESENTING, Phase.COMPLETE):
            return None

        if not s.queue:
            return self.finish(COMPLETE_MESSAGE)
        if self.timer_expired():
            return self.finish(TIME_UP_MESSAGE)

        now = self.now()
        s.current = s.queue.pop(0)
        s.serial += 1
        s.question_started_at = now
        s.deadline = now + self.timing.strict_timeout_seconds * 1000 if s.options.strict else None
        s.phase = Phase.PRESENTING

        return self._transition(
            Outcome.PRESENTED,
            Feedback.NEUTRAL,
            "",
            NextAction.ANSWER,
            prompt=s.current.prompt,
        )

    def submit(self, raw: str) -> Transition | None:
        """Score an answer to the current question."""
        s = self.session
        if s.phase is not Phase.PRESENTING or s.current is None:
            return None
        if self.timer_expired():
            return self.finish(TIME_UP_MESSAGE)

        value, error = parse_answer(raw)
        if error is not None:
            return self._transition(
                Outcome.INVALID_INPUT,
                Feedback.NO,
                error,
                NextAction.ANSWER,
                prompt=s.current.prompt,
            )

        now = self.now()
        item = s.current
        s.current = None
        timed_out = s.deadline is not None and now > s.deadline
        correct = not timed_out and abs(value - item.answer) < ANSWER_TOLERANCE

        s.done += 1
        if s.question_started_at is not None:
            s.total_answer_ms += now - s.question_started_at

        if correct:
            s.correct += 1
            s.streak += 1
            s.best_streak = max(s.best_streak, s.streak)
            self._record(item, True)
            s.phase = Phase.ADVANCE_PENDING
            return self._transition(
                Outcome.CORRECT,
                Feedback.OK,
                "Correct!",
                NextAction.AUTO_ADVANCE,
                prompt=item.prompt,
                delay_ms=self.timing.correct_feedback_delay_ms,
            )

        s.streak = 0
        requeue_after_miss(s.queue, item, self.rng, self.queue_config)
        self._record(item, False)
        s.phase = Phase.AWAITING_CONTINUE
        return self._transition(
            Outcome.TIMED_OUT if timed_out else Outcome.INCORRECT,
            Feedback.NO,
            "Time!" if timed_out else "Nope",
            NextAction.CONTINUE,
            prompt=item.prompt,
            delay_ms=self.timing.incorrect_feedback_delay_ms,
            answer=item.answer,
            explanation=explain(item),
        )

    def skip(self) -> Transition | None:
        """Put the current question back in the queue without scoring it."""
        s = self.session
        if s.phase is not Phase.PRESENTING or s.current is None:
            return None
        if self.timer_expired():
            return self.finish(TIME_UP_MESSAGE)

        item = s.current
        s.current = None
        requeue_after_miss(s.queue, item, self.rng, self.queue_config)
        s.streak = 0
        s.phase = Phase.ADVANCE_PENDING
        return self._transition(
            Outcome.SKIPPED,
            Feedback.NEUTRAL,
            "Skipped. We'll revisit.",
            NextAction.AUTO_ADVANCE,
            prompt=item.prompt,
            delay_ms=self.timing.skip_delay_ms,
        )

    def acknowledge(self) -> Transition | None:
        """Continue after a miss."""
        if self.session.phase is not Phase.AWAITING_CONTINUE:
            return None
        return self.advance()

    def poll_timer(self) -> Transition | None:
        """Complete the session if the whole-session timer has run out."""
        if self.session.is_complete or not self.timer_expired():
            return None
        return self.finish(TIME_UP_MESSAGE)

    def finish(self, message: str = QUIT_MESSAGE) -> Transition | None:
        """
        End the session and produce its summary.

        Sessions with enough answers are handed to the statistics recorder.
        Finishing an already complete session returns None.
        """
        s = self.session
        if s.is_complete:
            return None

        now = self.now()
        s.current = None
        s.deadline = None
        s.phase = Phase.COMPLETE

        elapsed = now - s.started_at
        s.summary = SessionSummary(
            done=s.done,
            correct=s.correct,
            accuracy=round_half_up(s.correct / s.done * 100) if s.done else 0,
            avg_ms=round_half_up(s.total_answer_ms / s.done) if s.done else 0,
            questions_per_minute=round_half_up(s.done / max(1.0, elapsed) * 60000) if s.done else 0,
            best_streak=s.best_streak,
            elapsed_ms=elapsed,
        )

        if self.recorder is not None and s.done >= self.recorder.config.record_min_done:
            self.recorder.record_session(s, elapsed)

        logger.info(f"Session {s.generation} finished: {s.summary.text}")
        return self._transition(
            Outcome.COMPLETE,
            Feedback.NEUTRAL,
            message,
            NextAction.NONE,
            summary=s.summary,
        )

    def _record(self, item: Question, correct: bool) -> None:
        if self.mastery is not None:
            self.mastery.record_answer(self.session.config.identifier, item.fact_key, correct)
