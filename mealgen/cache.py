"""
In-memory response cache for AI generation
Time-based expiry checked on lookup, bounded by insertion-order eviction
"""

import hashlib
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from .models import AIRequest, AIResponse, CacheEntry

logger = logging.getLogger(__name__)


def make_cache_key(request: AIRequest) -> str:
    """Deterministic key from the normalized request (prompt, model, temperature, max tokens)"""

    normalized = {
        "prompt": request.prompt.strip(),
        "model": request.model,
        "temperature": request.temperature,
        "max_tokens": request.max_tokens,
    }
    digest = hashlib.sha256(json.dumps(normalized, sort_keys=True).encode()).hexdigest()
    return f"mealgen:response:{digest}"


class InMemoryCacheStore:
    """
    Request -> response memoization local to one process.

    Entries expire lazily: an entry older than its ttl is dropped when it is
    looked up. There is no background sweep, so memory is bounded by
    max_size only; an expired entry stays resident until it is looked up or
    evicted by insertion pressure. When full, put() evicts the single oldest
    inserted entry (not least-recently-used).
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl: float = 3600,
        clock: Optional[Callable[[], float]] = None,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock or time.monotonic
        # dict preserves insertion order, which is the eviction order
        self._entries: Dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: str) -> Optional[AIResponse]:
        """Return a live cached response or None"""

        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if self._clock() - entry.timestamp > entry.ttl:
            del self._entries[key]
            self.misses += 1
            logger.debug(f"Cache entry expired: {key}")
            return None

        entry.hits += 1
        self.hits += 1
        return entry.value

    def put(self, key: str, value: AIResponse) -> None:
        """Store a response, evicting the oldest entry when at capacity"""

        if key in self._entries:
            # re-inserting moves the key to the newest position
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]
            self.evictions += 1
            logger.debug(f"Cache full, evicted oldest entry: {oldest_key}")

        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            timestamp=self._clock(),
            ttl=self.ttl,
        )

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "ttl_seconds": self.ttl,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "entry_hits": sum(entry.hits for entry in self._entries.values()),
        }
