"""
Scheduler - Deferred continuations scoped to a single run.

Phase auto-advance and the settle delay after the Eco's attack are
modeled as scheduled callbacks on a virtual clock, never as threads or
free-running timers:

- Tasks fire in (due time, scheduling order)
- Time only moves when the owner calls run_due(), advance() or
  run_until_idle()
- cancel_all() bumps a generation token; tasks from an older generation
  are dropped instead of fired, so a new run can never be touched by a
  stale continuation from the previous one
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import heapq
import itertools
import logging

logger = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledTask:
    """A pending continuation."""
    due: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: tuple = field(default=(), compare=False)
    generation: int = field(default=0, compare=False)
    label: str = field(default="", compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """
    Virtual-time task queue.

    Usage:
        scheduler = Scheduler()
        scheduler.call_later(2.0, manager.enter_maintenance)
        scheduler.advance(2.0)   # fires it
    """

    def __init__(self):
        self._queue: list[ScheduledTask] = []
        self._counter = itertools.count()
        self._now = 0.0
        self._generation = 0

    @property
    def now(self) -> float:
        return self._now

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> int:
        return sum(
            1 for t in self._queue
            if not t.cancelled and t.generation == self._generation
        )

    def next_due(self) -> float | None:
        live = [
            t.due for t in self._queue
            if not t.cancelled and t.generation == self._generation
        ]
        return min(live) if live else None

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
        label: str = "",
    ) -> ScheduledTask:
        """Schedule callback(*args) to run delay seconds from now."""
        task = ScheduledTask(
            due=self._now + max(0.0, delay),
            seq=next(self._counter),
            callback=callback,
            args=args,
            generation=self._generation,
            label=label or getattr(callback, "__name__", "task"),
        )
        heapq.heappush(self._queue, task)
        return task

    def cancel_all(self) -> int:
        """Invalidate every pending task. Returns how many were dropped."""
        dropped = self.pending
        self._generation += 1
        self._queue.clear()
        if dropped:
            logger.debug("Cancelled %d pending task(s)", dropped)
        return dropped

    def run_due(self) -> int:
        """Run every task that is already due, without moving the clock."""
        return self.advance(0.0)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing due tasks in order.

        Tasks scheduled by a callback run in the same call if they fall
        inside the window. Returns the number of tasks fired.
        """
        deadline = self._now + max(0.0, seconds)
        fired = 0
        while self._queue and self._queue[0].due <= deadline:
            task = heapq.heappop(self._queue)
            if task.cancelled or task.generation != self._generation:
                continue
            self._now = max(self._now, task.due)
            logger.debug("Running %s at t=%.3f", task.label, self._now)
            task.callback(*task.args)
            fired += 1
        self._now = deadline
        return fired

    def run_until_idle(self, max_tasks: int = 1000) -> int:
        """Fire tasks (advancing time as needed) until none remain."""
        fired = 0
        while fired < max_tasks:
            due = self.next_due()
            if due is None:
                break
            fired += self.advance(max(0.0, due - self._now))
        return fired
