"""
test the time-bounded response cache.

run with: pytest test_cache.py -v
"""

import asyncio

import httpx
import pytest

from linkbubble.cache import CachedResponse, ResponseCache


URL = "https://scrapbox.io/api/pages/proj/Page"


@pytest.fixture
def fetcher():
    """fake fetch that counts calls; status can be changed per test."""
    async def fetch(request):
        fetch.calls += 1
        return httpx.Response(fetch.status, json={"n": fetch.calls}, request=request)

    fetch.calls = 0
    fetch.status = 200
    return fetch


@pytest.fixture
def cache(fetcher, clock):
    return ResponseCache(fetcher, clock=clock)


def get(cache, max_age=60):
    return asyncio.run(cache.fetch(httpx.Request("GET", URL), expired_after_seconds=max_age))


class TestResponseCache:

    def test_miss_fetches_and_stores(self, cache, fetcher):
        response = get(cache)

        assert fetcher.calls == 1
        assert response.json() == {"n": 1}
        assert len(cache) == 1
        assert cache.misses == 1

    def test_fresh_entry_is_served_unmodified(self, cache, fetcher, clock):
        first = get(cache)
        clock.advance(60)

        second = get(cache)

        assert second is first
        assert fetcher.calls == 1
        assert cache.hits == 1

    def test_expired_entry_is_refetched(self, cache, fetcher, clock):
        get(cache)
        clock.advance(61)

        response = get(cache)

        assert fetcher.calls == 2
        assert response.json() == {"n": 2}

    def test_max_age_is_per_call(self, cache, fetcher, clock):
        get(cache)
        clock.advance(10)

        get(cache, max_age=5)

        assert fetcher.calls == 2

    def test_error_responses_are_stored(self, cache, fetcher):
        fetcher.status = 404

        first = get(cache)
        second = get(cache)

        assert first.status_code == 404
        assert second is first
        assert fetcher.calls == 1

    def test_requests_are_keyed_by_url(self, cache, fetcher):
        get(cache)
        asyncio.run(cache.fetch(httpx.Request("GET", URL + "?followRename=true")))

        assert fetcher.calls == 2
        assert len(cache) == 2

    def test_find_and_evict(self, cache, clock):
        request = httpx.Request("GET", URL)
        assert cache.find(request) is None

        get(cache)
        entry = cache.find(request)
        assert isinstance(entry, CachedResponse)
        assert entry.captured_at == clock.now

        cache.evict(request)
        assert cache.find(request) is None

    def test_malformed_entry_is_a_miss(self, cache, fetcher):
        request = httpx.Request("GET", URL)
        cache._entries[ResponseCache.request_key(request)] = "not a response"

        assert cache.find(request) is None
        get(cache)
        assert fetcher.calls == 1

    def test_clear(self, cache, fetcher):
        get(cache)
        cache.clear()
        get(cache)

        assert fetcher.calls == 2


class TestCachedResponse:

    def test_expiry_boundary(self):
        entry = CachedResponse(response=httpx.Response(200), captured_at=100)

        assert not entry.is_expired(60, now=160)
        assert entry.is_expired(60, now=161)
