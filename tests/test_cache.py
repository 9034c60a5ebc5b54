"""
Response cache tests
"""

import pytest

from mealgen.cache import InMemoryCacheStore, make_cache_key
from mealgen.models import AIRequest, AIResponse


def _response(content: str = "ok") -> AIResponse:
    return AIResponse(content=content, provider="deepseek", model="deepseek-chat", request_id="req_1")


class TestCacheKey:
    """Normalized request identity"""

    def test_request_id_and_user_do_not_affect_key(self):
        a = AIRequest(prompt="quick vegan dinner", max_tokens=500, request_id="req_a", user_id="u1")
        b = AIRequest(prompt="quick vegan dinner", max_tokens=500, request_id="req_b", user_id="u2")
        assert make_cache_key(a) == make_cache_key(b)

    def test_surrounding_whitespace_is_ignored(self):
        a = AIRequest(prompt="  quick vegan dinner\n")
        b = AIRequest(prompt="quick vegan dinner")
        assert make_cache_key(a) == make_cache_key(b)

    def test_parameters_change_key(self):
        base = make_cache_key(AIRequest(prompt="p"))
        assert make_cache_key(AIRequest(prompt="p", temperature=0.5)) != base
        assert make_cache_key(AIRequest(prompt="p", max_tokens=100)) != base
        assert make_cache_key(AIRequest(prompt="p", model="gemini-1.5-flash")) != base


class TestInMemoryCacheStore:
    """Lazy expiry and insertion-order eviction"""

    def test_get_returns_stored_response(self, clock):
        cache = InMemoryCacheStore(max_size=10, ttl=60, clock=clock)
        cache.put("k", _response("hello"))

        assert cache.get("k").content == "hello"
        assert cache.hits == 1

    def test_entry_expires_lazily_after_ttl(self, clock):
        cache = InMemoryCacheStore(max_size=10, ttl=60, clock=clock)
        cache.put("k", _response())

        clock.advance(60)
        assert cache.get("k") is not None

        clock.advance(1)
        assert "k" in cache  # still resident until looked up
        assert cache.get("k") is None
        assert "k" not in cache

    def test_eviction_removes_only_oldest_inserted(self, clock):
        cache = InMemoryCacheStore(max_size=3, ttl=60, clock=clock)
        for key in ("a", "b", "c"):
            cache.put(key, _response(key))

        # reading "a" does not protect it: eviction is by insertion order
        cache.get("a")
        cache.put("d", _response("d"))

        assert len(cache) == 3
        assert "a" not in cache
        assert all(key in cache for key in ("b", "c", "d"))
        assert cache.evictions == 1

    def test_reinserting_existing_key_does_not_evict(self, clock):
        cache = InMemoryCacheStore(max_size=2, ttl=60, clock=clock)
        cache.put("a", _response("a"))
        cache.put("b", _response("b"))
        cache.put("a", _response("a2"))

        assert len(cache) == 2
        assert cache.evictions == 0
        assert cache.get("a").content == "a2"

    def test_invalid_max_size(self):
        with pytest.raises(ValueError):
            InMemoryCacheStore(max_size=0)

    def test_stats(self, clock):
        cache = InMemoryCacheStore(max_size=5, ttl=60, clock=clock)
        cache.put("a", _response())
        cache.get("a")
        cache.get("missing")

        stats = cache.stats()
        assert stats["size"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1
