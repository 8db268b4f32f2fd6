"""
time-bounded response cache around an async fetch.
knows nothing about pages; keyed by request method + url.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

import httpx

from .core.config import Clock, system_clock

logger = logging.getLogger("linkbubble.cache")

Fetcher = Callable[[httpx.Request], Awaitable[httpx.Response]]


@dataclass
class CachedResponse:
    """a stored response and when it was captured."""
    response: httpx.Response
    captured_at: float

    def is_expired(self, max_age: float, now: float) -> bool:
        return self.captured_at + max_age < now


class ResponseCache:
    """
    session-scoped http cache.

    no revalidation headers - an entry is either fresh (younger than
    max_age seconds) or it gets fetched again. error responses are
    stored like any other.
    """

    def __init__(self, fetcher: Fetcher, clock: Clock = system_clock):
        self._fetcher = fetcher
        self.clock = clock
        self._entries: Dict[str, CachedResponse] = {}

        # stats
        self.hits = 0
        self.misses = 0

    @staticmethod
    def request_key(request: httpx.Request) -> str:
        return f"{request.method} {request.url}"

    def find(self, request: httpx.Request) -> Optional[CachedResponse]:
        """stored entry for request, fresh or not. malformed entries count as a miss."""
        key = self.request_key(request)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not isinstance(entry, CachedResponse) or not isinstance(
            entry.captured_at, (int, float)
        ):
            logger.debug(f"[cache] dropping malformed entry for {key}")
            del self._entries[key]
            return None
        return entry

    def put(self, request: httpx.Request, response: httpx.Response) -> CachedResponse:
        entry = CachedResponse(response=response, captured_at=self.clock())
        self._entries[self.request_key(request)] = entry
        return entry

    def evict(self, request: httpx.Request):
        self._entries.pop(self.request_key(request), None)

    async def fetch(
        self,
        request: httpx.Request,
        expired_after_seconds: float = 60
    ) -> httpx.Response:
        """
        return the cached response while it is fresh,
        otherwise fetch, store and return a new one.
        """
        cached = self.find(request)
        if cached is not None and not cached.is_expired(expired_after_seconds, self.clock()):
            self.hits += 1
            logger.debug(f"[cache] hit {request.url}")
            return cached.response

        self.misses += 1
        response = await self._fetcher(request)
        # read the body now so the stored response can be parsed repeatedly
        await response.aread()
        self.put(request, response)
        logger.debug(f"[cache] stored {response.status_code} for {request.url}")
        return response

    def clear(self):
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)
