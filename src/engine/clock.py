"""
Time sources.

The engine never reads the system clock directly. Monotonic milliseconds drive
deadlines and answer timing; epoch milliseconds stamp persisted records.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def monotonic_ms(self) -> float: ...

    def epoch_ms(self) -> int: ...


class SystemClock:
    """Wall clock backed by ``time``."""

    def monotonic_ms(self) -> float:
        return time.monotonic() * 1000.0

    def epoch_ms(self) -> int:
        return int(time.time() * 1000)


class FakeClock:
    """Manually advanced clock for tests and replays."""

    def __init__(self, start_ms: float = 0.0, epoch_start_ms: int = 1_700_000_000_000):
        self._now = float(start_ms)
        self._epoch_offset = epoch_start_ms - int(start_ms)

    def monotonic_ms(self) -> float:
        return self._now

    def epoch_ms(self) -> int:
        return self._epoch_offset + int(self._now)

    def advance(self, ms: float) -> None:
        self._now += ms
