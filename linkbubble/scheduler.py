"""
per-source task scheduler.

one pending stack per source, drained by a single shared interval timer:
every tick starts one task, taking sources in turn and the newest task
within a source. the timer stops itself once nothing is pending.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

logger = logging.getLogger("linkbubble.scheduler")

Job = Callable[[], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class ScheduledTask:
    """a job waiting in a source stack."""
    source: str
    key: str
    job: Job
    future: asyncio.Future


class TaskScheduler:
    """
    paces refresh jobs per source.

    a hovering user cares about the last link under the cursor, so each
    source is a stack (lifo). sources are visited round-robin so a busy
    source cannot starve the others.
    """

    def __init__(self, interval: float = 0.25, sleep: Sleep = asyncio.sleep):
        self.interval = interval
        self._sleep = sleep

        self._stacks: Dict[str, List[ScheduledTask]] = {}
        self._order: List[str] = []   # round-robin order of sources
        self._cursor = 0
        self._pending: Counter = Counter()  # key -> queued or running jobs
        self._timer: Optional[asyncio.Task] = None
        self._running: Set[asyncio.Task] = set()

        # stats
        self.started = 0

    def enqueue(self, source: str, key: str, job: Job) -> asyncio.Future:
        """
        push job onto the source's stack.
        the returned future resolves with the job's result once it ran.
        """
        future = asyncio.get_running_loop().create_future()
        if source not in self._stacks:
            self._stacks[source] = []
            self._order.append(source)
        self._stacks[source].append(ScheduledTask(source, key, job, future))
        self._pending[key] += 1
        self._ensure_timer()
        return future

    def is_pending(self, key: str) -> bool:
        """true while a job for key is queued or running."""
        return self._pending[key] > 0

    def pending_count(self, source: Optional[str] = None) -> int:
        """number of queued (not yet started) jobs."""
        if source is not None:
            return len(self._stacks.get(source, ()))
        return sum(len(stack) for stack in self._stacks.values())

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def _ensure_timer(self):
        if not self.timer_active:
            self._timer = asyncio.get_running_loop().create_task(self._tick_loop())

    async def _tick_loop(self):
        while True:
            await self._sleep(self.interval)
            task = self._next_task()
            if task is None:
                # nothing left anywhere - clear the timer
                self._timer = None
                logger.debug("[scheduler] idle, timer cleared")
                return
            self._start(task)

    def _next_task(self) -> Optional[ScheduledTask]:
        """pop the newest task of the next source that has one."""
        count = len(self._order)
        for offset in range(count):
            index = (self._cursor + offset) % count
            stack = self._stacks[self._order[index]]
            if stack:
                self._cursor = (index + 1) % count
                return stack.pop()
        return None

    def _start(self, task: ScheduledTask):
        self.started += 1
        logger.debug(f"[scheduler] start {task.key} ({self.pending_count()} queued)")
        running = asyncio.get_running_loop().create_task(task.job())
        self._running.add(running)
        running.add_done_callback(lambda done: self._finish(task, done))

    def _finish(self, task: ScheduledTask, done: asyncio.Task):
        self._running.discard(done)
        self._pending[task.key] -= 1
        if self._pending[task.key] <= 0:
            del self._pending[task.key]

        if task.future.done():
            return
        if done.cancelled():
            task.future.cancel()
        elif done.exception() is not None:
            task.future.set_exception(done.exception())
        else:
            task.future.set_result(done.result())

    def reset(self):
        """drop every queued job, cancel running ones and stop the timer."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for stack in self._stacks.values():
            for task in stack:
                if not task.future.done():
                    task.future.cancel()
        for running in list(self._running):
            running.cancel()
        self._stacks.clear()
        self._order.clear()
        self._cursor = 0
        self._pending.clear()
        self.started = 0
