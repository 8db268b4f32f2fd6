"""
bubble service - keeps the bubble graph fresh.

prefetch() schedules refreshes, load() reads whatever is stored,
subscribe()/unsubscribe() report changes per bubble id.
a refresh serves the cached response first, then revalidates over
the network when the cached one is stale.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set

import httpx

from .cache import ResponseCache
from .core.config import BubbleConfig, Clock, system_clock
from .core.errors import GraphInvariantError, UnexpectedResponseError
from .core.models import Bubble, PageError, PageResult, to_id, to_title_lc
from .core.resilience import CircuitBreaker
from .events import EventBus
from .graph.convert import convert
from .graph.store import BubbleStore, has_changed, is_empty_link
from .providers.base import PageProvider
from .providers.scrapbox import ScrapboxProvider
from .scheduler import Sleep, TaskScheduler
from .throttle import ConcurrencyLimiter

logger = logging.getLogger("linkbubble.service")

Listener = Callable[[Bubble], None]


@dataclass
class BubbleView:
    """what is known about one title across the requested sources."""
    title_lc: str
    bubbles: List[Bubble] = field(default_factory=list)

    @property
    def exists(self) -> bool:
        return any(bubble.exists for bubble in self.bubbles)

    @property
    def is_empty_link(self) -> bool:
        return is_empty_link(self.bubbles)

    @property
    def sources(self) -> List[str]:
        return [bubble.source for bubble in self.bubbles]

    def get(self, source: str) -> Optional[Bubble]:
        for bubble in self.bubbles:
            if bubble.source == source:
                return bubble
        return None


class BubbleService:
    """
    fetch-or-serve-from-cache orchestration for bubbles.

    owns the store, scheduler, cache and event bus; create one per
    session (or per test).
    """

    def __init__(
        self,
        config: Optional[BubbleConfig] = None,
        provider: Optional[PageProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Clock = system_clock,
        sleep: Sleep = asyncio.sleep
    ):
        self.config = config or BubbleConfig.default()
        self.clock = clock
        self.provider = provider or ScrapboxProvider(self.config.provider)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None  # lazy init

        self.store = BubbleStore()
        self.events: EventBus[str, Bubble] = EventBus()
        self.cache = ResponseCache(self._send, clock=clock)
        self.scheduler = TaskScheduler(self.config.scheduler.interval, sleep=sleep)
        self.limiter = ConcurrencyLimiter(self.config.bulk_concurrency)

        # ids whose refresh is running right now
        self._loading: Set[str] = set()
        self._circuits: Dict[str, CircuitBreaker] = {}

    @property
    def client(self) -> httpx.AsyncClient:
        """lazy client initialization."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.config.provider.timeout,
                transport=self._transport,
                follow_redirects=True
            )
        return self._client

    async def _send(self, request: httpx.Request) -> httpx.Response:
        return await self.client.send(request)

    async def close(self):
        """close the http client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    # read api

    def load(self, title: str, sources: Iterable[str]) -> Optional[BubbleView]:
        """
        stored bubbles for title in each source, without fetching.
        None when none of them has ever been loaded.
        """
        view = BubbleView(title_lc=to_title_lc(title))
        for source in sources:
            bubble = self.store.get(to_id(source, title))
            if bubble is not None:
                view.bubbles.append(bubble)
        return view if view.bubbles else None

    def subscribe(self, bubble_id: str, listener: Listener):
        """call listener with the new bubble whenever bubble_id changes."""
        self.events.on(bubble_id, listener)

    def unsubscribe(self, bubble_id: str, listener: Listener):
        self.events.off(bubble_id, listener)

    def is_loading(self, bubble_id: str) -> bool:
        """true while a refresh for bubble_id is queued or running."""
        return bubble_id in self._loading or self.scheduler.is_pending(bubble_id)

    # write trigger

    async def prefetch(
        self,
        title: str,
        sources: Iterable[str],
        watch_list: Iterable[str] = (),
        ignore_fetch: bool = False,
        expired_after_seconds: Optional[float] = None
    ):
        """
        refresh title in every source that isn't already being refreshed.

        args:
            title: page title
            sources: source names to look the title up in
            watch_list: source ids passed along for cross-source related pages
            ignore_fetch: only serve from the response cache
            expired_after_seconds: cache freshness, defaults to config.cache.max_age
        """
        if expired_after_seconds is None:
            expired_after_seconds = self.config.cache.max_age
        watch_list = tuple(watch_list)

        futures = []
        for source in sources:
            bubble_id = to_id(source, title)
            # no await between this check and enqueue(), which marks the id
            if self.is_loading(bubble_id):
                logger.debug(f"[bubble] {bubble_id} already loading, skipped")
                continue
            job = functools.partial(
                self._refresh, source, title, watch_list,
                ignore_fetch, expired_after_seconds
            )
            futures.append(self.scheduler.enqueue(source, bubble_id, job))

        if futures:
            await asyncio.gather(*futures)

    async def prefetch_many(
        self,
        titles: Iterable[str],
        sources: Iterable[str],
        watch_list: Iterable[str] = (),
        **options
    ):
        """prefetch many titles, config.bulk_concurrency at a time."""
        sources = tuple(sources)
        watch_list = tuple(watch_list)
        await asyncio.gather(*(
            self.limiter.run(functools.partial(
                self.prefetch, title, sources, watch_list, **options
            ))
            for title in titles
        ))

    # refresh

    async def _refresh(
        self,
        source: str,
        title: str,
        watch_list: tuple,
        ignore_fetch: bool,
        max_age: float
    ):
        bubble_id = to_id(source, title)
        if bubble_id in self._loading:
            return
        # exclusive lock
        self._loading.add(bubble_id)
        started = self.clock()

        try:
            request = self.provider.build_request(source, title, watch_list=watch_list)

            # 1. serve from cache
            cached = self.cache.find(request)
            if cached is not None:
                try:
                    result = self.provider.parse_response(cached.response)
                    self._apply(source, bubble_id, result, "cache")
                except (ValueError, UnexpectedResponseError, GraphInvariantError) as e:
                    # drop it so the live fetch below runs regardless of its age
                    logger.warning(f"[bubble] unusable cache entry for {bubble_id}: {e}")
                    self.cache.evict(request)
                    cached = None

            # 2. revalidate over the network once the cache is stale
            if ignore_fetch:
                return
            if cached is not None and not cached.is_expired(max_age, self.clock()):
                return

            circuit = self._circuit(source)
            if not circuit.can_execute():
                logger.info(f"[bubble] circuit open for {source}, skipping fetch of {bubble_id}")
                return
            try:
                response = await self.cache.fetch(request, expired_after_seconds=max_age)
                result = self.provider.parse_response(response)
            except (httpx.HTTPError, UnexpectedResponseError) as e:
                circuit.record_failure(e)
                raise
            circuit.record_success()
            self._apply(source, bubble_id, result, "network")

        except (httpx.HTTPError, UnexpectedResponseError, ValueError) as e:
            # transient; the stored bubble stays as it was
            logger.warning(f"[bubble] failed to refresh {bubble_id}: {e}")
        except GraphInvariantError:
            logger.exception(f"[bubble] inconsistent related pages for {bubble_id}")
        finally:
            # unlock
            self._loading.discard(bubble_id)
            logger.debug(f"[bubble] checked {bubble_id} in {self.clock() - started:.2f}s")

    def _apply(self, source: str, bubble_id: str, result: PageResult, origin: str):
        """convert a page result and merge it into the store."""
        if isinstance(result, PageError):
            logger.debug(f"[bubble] {origin} {bubble_id}: {result.name} {result.message}")
            return

        graph = convert(source, result, checked=int(self.clock()))
        # followRename may answer with another title than the requested one
        page_id = to_id(source, result.title)
        if not has_changed(self.store.get(page_id), graph[page_id]):
            logger.debug(f"[bubble] {origin} {bubble_id}: no change")
            return

        updated = 0
        for key, bubble in graph.items():
            if key != page_id and key in self._loading:
                # its own refresh is running and will bring better data
                continue
            merged, changed = self.store.update(key, bubble)
            if changed:
                updated += 1
                self.events.dispatch(key, merged)
        logger.debug(f"[bubble] {origin} {bubble_id}: {updated}/{len(graph)} bubbles updated")

    def _circuit(self, source: str) -> CircuitBreaker:
        circuit = self._circuits.get(source)
        if circuit is None:
            circuit = CircuitBreaker(name=source, config=self.config.circuit, clock=self.clock)
            self._circuits[source] = circuit
        return circuit

    def reset(self):
        """forget everything; for tests and session restarts."""
        self.scheduler.reset()
        self.store.clear()
        self.events.clear()
        self.cache.clear()
        self._loading.clear()
        self._circuits.clear()
