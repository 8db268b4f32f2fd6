"""
concurrency limiter for bulk async work.
"""

import asyncio
from typing import Awaitable, Callable, List, TypeVar

T = TypeVar("T")


class ConcurrencyLimiter:
    """
    runs at most max_jobs jobs at once.

    jobs over the limit wait and are released newest first:
    with max_jobs=3 and ten jobs submitted together the start order
    is 0, 1, 2, 9, 8, 7, ...
    """

    def __init__(self, max_jobs: int):
        if max_jobs < 1:
            raise ValueError("max_jobs must be at least 1")
        self.max_jobs = max_jobs
        self._running = 0
        self._waiting: List[asyncio.Future] = []

    @property
    def running(self) -> int:
        return self._running

    @property
    def waiting(self) -> int:
        return sum(1 for gate in self._waiting if not gate.done())

    async def run(self, job: Callable[[], Awaitable[T]]) -> T:
        """run job once a slot is free and return its result."""
        if self._running < self.max_jobs:
            self._running += 1
        else:
            gate = asyncio.get_running_loop().create_future()
            self._waiting.append(gate)
            try:
                # the releasing job hands its slot straight to us
                await gate
            except asyncio.CancelledError:
                if gate.done() and not gate.cancelled():
                    self._release()
                raise

        try:
            return await job()
        finally:
            self._release()

    def _release(self):
        while self._waiting:
            gate = self._waiting.pop()
            if not gate.done():
                gate.set_result(None)
                return
        self._running -= 1
