"""
Session configuration and options.

``SessionConfig`` decides which questions are asked and which mastery bucket
they are scored against; ``SessionOptions`` decides how the session is run.
Both normalise their inputs on construction so the rest of the engine never
sees an out-of-range value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .questions import DrillMode

MIN_N_BOUNDS = (0, 999)
MAX_N_BOUNDS = (1, 999)
SIZE_BOUNDS = (5, 500)
TEST_SECONDS_BOUNDS = (15, 1800)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass(frozen=True)
class SessionConfig:
    """What to drill: mode, operand range and optional focus operand."""

    mode: DrillMode = DrillMode.MULTIPLICATION
    min_n: int = 1
    max_n: int = 12
    focus_multiplier: int = 0
    focus_divisor: int = 0

    def __post_init__(self) -> None:
        min_n, max_n = int(self.min_n), int(self.max_n)
        if min_n > max_n:
            min_n, max_n = max_n, min_n
        object.__setattr__(self, "mode", DrillMode(self.mode))
        object.__setattr__(self, "min_n", clamp(min_n, *MIN_N_BOUNDS))
        object.__setattr__(self, "max_n", clamp(max_n, *MAX_N_BOUNDS))
        object.__setattr__(self, "focus_multiplier", max(0, int(self.focus_multiplier)))
        object.__setattr__(self, "focus_divisor", max(0, int(self.focus_divisor)))

    @property
    def identifier(self) -> str:
        """Mastery bucket key, e.g. ``multiplication:1-12:ft=7``."""
        ident = f"{self.mode.value}:{self.min_n}-{self.max_n}"
        if self.mode is DrillMode.MULTIPLICATION and self.focus_multiplier > 0:
            ident += f":ft={self.focus_multiplier}"
        if self.mode is DrillMode.DIVISION and self.focus_divisor > 0:
            ident += f":fd={self.focus_divisor}"
        return ident

    def unfocused(self) -> SessionConfig:
        return SessionConfig(self.mode, self.min_n, self.max_n)


@dataclass(frozen=True)
class SessionOptions:
    """How to run a session."""

    size: int = 20
    shuffle: bool = True
    strict: bool = False
    trouble_only: bool = False
    timed_test: bool = False
    test_seconds: int = 60

    def __post_init__(self) -> None:
        object.__setattr__(self, "size", clamp(int(self.size), *SIZE_BOUNDS))
        object.__setattr__(self, "test_seconds", clamp(int(self.test_seconds), *TEST_SECONDS_BOUNDS))

    def clamped(self, bounds: dict[str, tuple[int, int]]) -> SessionOptions:
        """Narrow to configured bounds (see ``Settings.get_bounds``)."""
        size_low, size_high = bounds.get("size", SIZE_BOUNDS)
        secs_low, secs_high = bounds.get("test_seconds", TEST_SECONDS_BOUNDS)
        options = replace(self)
        object.__setattr__(options, "size", clamp(self.size, size_low, size_high))
        object.__setattr__(options, "test_seconds", clamp(self.test_seconds, secs_low, secs_high))
        return options
