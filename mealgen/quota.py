"""
Per-user, per-action request quota
The gate fails closed: a counter that cannot answer means "not allowed"
"""

import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from enum import Enum
from typing import Callable, Deque, Dict, Optional, Tuple

from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_exponential

from .background import BackgroundTasks

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    """Quota buckets"""
    AI_REQUEST = "ai_request"
    RECIPE = "recipe"
    MEAL_PLAN = "mealplan"
    QUICK_MEAL = "quickmeal"
    SUBSTITUTION = "substitution"


class QuotaCounter(ABC):
    """Counting collaborator keyed by (user_id, action)"""

    @abstractmethod
    async def check(self, user_id: str, action: str) -> bool:
        """True while the user is under the limit for the current window"""

    @abstractmethod
    async def increment(self, user_id: str, action: str) -> None:
        """Count one completed request"""


class InMemoryQuotaCounter(QuotaCounter):
    """Sliding window of request timestamps per key, local to one process"""

    def __init__(
        self,
        limit: int = 10,
        window_seconds: float = 60,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self.request_history: Dict[Tuple[str, str], Deque[float]] = {}

    def _prune(self, key: Tuple[str, str]) -> int:
        """Drop timestamps outside the window and return how many remain"""
        history = self.request_history.get(key)
        if history is None:
            return 0

        cutoff = self._clock() - self.window_seconds
        while history and history[0] <= cutoff:
            history.popleft()
        if not history:
            # idle users do not keep an entry
            del self.request_history[key]
        return len(history)

    async def check(self, user_id: str, action: str) -> bool:
        return self._prune((user_id, action)) < self.limit

    async def increment(self, user_id: str, action: str) -> None:
        key = (user_id, action)
        self._prune(key)
        self.request_history.setdefault(key, deque()).append(self._clock())

    def remaining(self, user_id: str, action: str) -> int:
        return max(0, self.limit - self._prune((user_id, action)))


class RedisQuotaCounter(QuotaCounter):
    """Fixed window counter shared across processes (INCR + EXPIRE)"""

    def __init__(
        self,
        redis_client,
        limit: int = 10,
        window_seconds: int = 60,
        clock: Optional[Callable[[], float]] = None,
        key_prefix: str = "mealgen:quota",
    ):
        self.redis_client = redis_client
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock or time.time
        self.key_prefix = key_prefix

    def _key(self, user_id: str, action: str) -> str:
        window = int(self._clock() // self.window_seconds)
        return f"{self.key_prefix}:{user_id}:{action}:{window}"

    async def check(self, user_id: str, action: str) -> bool:
        count = await self.redis_client.get(self._key(user_id, action))
        return int(count or 0) < self.limit

    async def increment(self, user_id: str, action: str) -> None:
        key = self._key(user_id, action)
        count = await self.redis_client.incr(key)
        if count == 1:
            await self.redis_client.expire(key, self.window_seconds)


class QuotaGate:
    """Boolean allow check before provider work plus a best-effort increment after it"""

    def __init__(self, counter: QuotaCounter, increment_retries: int = 3, retry_wait: float = 0.5):
        self.counter = counter
        self.increment_retries = increment_retries
        self.retry_wait = retry_wait
        self.denied = 0
        self.check_failures = 0
        self._pending = BackgroundTasks()

    async def allow(self, user_id: str, action: str = ActionType.AI_REQUEST.value) -> bool:
        try:
            allowed = await self.counter.check(user_id, action)
        except Exception as e:
            self.check_failures += 1
            logger.error(f"Quota check failed for user {user_id} ({action}), denying: {type(e).__name__}: {e}")
            return False

        if not allowed:
            self.denied += 1
            logger.warning(f"Quota exceeded for user {user_id} ({action})")
        return bool(allowed)

    def record(self, user_id: str, action: str = ActionType.AI_REQUEST.value) -> None:
        """Schedule the increment; it never delays or fails the request"""
        self._pending.spawn(self._increment(user_id, action), name=f"quota-increment:{user_id}:{action}")

    async def _increment(self, user_id: str, action: str) -> None:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.increment_retries),
                wait=wait_exponential(multiplier=self.retry_wait, max=10),
            ):
                with attempt:
                    await self.counter.increment(user_id, action)
        except RetryError as e:
            logger.warning(
                f"Quota increment dropped for user {user_id} ({action}) after "
                f"{self.increment_retries} attempts: {e.last_attempt.exception()!r}"
            )

    async def drain(self):
        """Wait for scheduled increments to finish"""
        await self._pending.drain()

    def stats(self) -> Dict[str, int]:
        return {"denied": self.denied, "check_failures": self.check_failures}
