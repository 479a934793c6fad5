from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class _Task:
    due: float
    seq: int
    name: str
    callback: Callable[[], None]


class Scheduler:
    """Deferred continuations on a virtual clock.

    Time only moves through `advance`, so the engine never sleeps. Tasks run one
    at a time, ordered by due time and then by scheduling order.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._tasks: list[_Task] = []
        self._seq = 0

    def schedule(self, delay: float, callback: Callable[[], None], name: str = "") -> None:
        self._seq += 1
        self._tasks.append(_Task(due=self.now + max(0.0, delay), seq=self._seq, name=name, callback=callback))

    def _pop_due(self, until: float) -> _Task | None:
        ready = [t for t in self._tasks if t.due <= until]
        if not ready:
            return None
        task = min(ready, key=lambda t: (t.due, t.seq))
        self._tasks.remove(task)
        return task

    def advance(self, dt: float) -> int:
        """Move the clock forward by `dt` and run every task that became due."""
        return self.advance_to(self.now + max(0.0, dt))

    def advance_to(self, target: float) -> int:
        """Move the clock to `target` (never backwards) and run every task due by then."""
        target = max(self.now, target)
        ran = 0
        while True:
            task = self._pop_due(target)
            if task is None:
                break
            self.now = max(self.now, task.due)
            task.callback()
            ran += 1
        self.now = target
        return ran

    def run_all(self, max_tasks: int = 1000) -> int:
        """Run pending tasks in order, jumping the clock, until none are left."""
        ran = 0
        while self._tasks and ran < max_tasks:
            task = min(self._tasks, key=lambda t: (t.due, t.seq))
            self._tasks.remove(task)
            self.now = max(self.now, task.due)
            task.callback()
            ran += 1
        return ran

    def cancel_all(self) -> int:
        dropped = len(self._tasks)
        self._tasks = []
        return dropped

    def pending(self) -> list[str]:
        return [t.name for t in sorted(self._tasks, key=lambda t: (t.due, t.seq))]
