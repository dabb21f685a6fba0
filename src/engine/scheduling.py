"""
Deferred tasks for the drill runner.

Auto-advances after a correct answer or a skip are not fired by a timer
thread; they are queued here and run when the front-end polls. Each task
carries the session generation and question serial it was scheduled for so a
task that outlives its session or question does nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from loguru import logger


@dataclass(order=True)
class DeferredTask:
    due_ms: float
    seq: int
    generation: int = field(compare=False)
    serial: int = field(compare=False)
    action: Callable[[], Any] = field(compare=False, repr=False)
    label: str = field(default="", compare=False)
    cancelled: bool = field(default=False, compare=False)


class TaskScheduler:
    """Time-ordered queue of deferred tasks."""

    def __init__(self):
        self._tasks: list[DeferredTask] = []
        self._seq = 0

    def __len__(self) -> int:
        return len(self._tasks)

    def schedule(
        self,
        due_ms: float,
        generation: int,
        serial: int,
        action: Callable[[], Any],
        label: str = "",
    ) -> DeferredTask:
        self._seq += 1
        task = DeferredTask(due_ms, self._seq, generation, serial, action, label)
        self._tasks.append(task)
        self._tasks.sort()
        return task

    def cancel_all(self) -> int:
        """Drop every pending task. Returns how many were dropped."""
        count = len(self._tasks)
        for task in self._tasks:
            task.cancelled = True
        self._tasks.clear()
        if count:
            logger.debug(f"Cancelled {count} pending task(s)")
        return count

    @property
    def next_due(self) -> float | None:
        return self._tasks[0].due_ms if self._tasks else None

    def run_due(self, now_ms: float, is_current: Callable[[DeferredTask], bool]) -> list[Any]:
        """
        Run every task due at ``now_ms`` in due order.

        Tasks for which ``is_current`` returns False are discarded without
        running. Tasks scheduled by a running task wait for the next call.

        Returns:
            Results of the tasks that ran.
        """
        due = [task for task in self._tasks if task.due_ms <= now_ms]
        if not due:
            return []
        self._tasks = [task for task in self._tasks if task.due_ms > now_ms]

        results = []
        for task in due:
            if task.cancelled or not is_current(task):
                logger.debug(f"Dropping stale task {task.label or task.seq} (gen {task.generation}, serial {task.serial})")
                continue
            results.append(task.action())
        return results
