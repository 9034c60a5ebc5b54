"""
Request orchestrator for AI generation
Quota gate, cache, retry with linear backoff, provider failover and fallback content
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

import httpx
from redis import asyncio as redis_async

from .cache import InMemoryCacheStore, make_cache_key
from .errors import ErrorKind, GenerationError
from .failover import (
    Outcome,
    Succeeded,
    TryingProvider,
    backoff_delay,
    initial_state,
    next_state,
)
from .fallback import fallback_response
from .models import AIRequest, AIResponse, GenerationKind, UsageRecord, generate_request_id, utc_now
from .providers import ProviderAdapter, build_adapters
from .quota import ActionType, InMemoryQuotaCounter, QuotaGate, RedisQuotaCounter
from .usage import UsageTracker
from .validation import ResponseValidator

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[Any]]


class RequestOrchestrator:
    """
    Coordinates one generation request across the configured providers.

    Constructed once by the host process and shared by reference. All
    collaborators are injected; the cache and usage log are process-local
    mutable state with no locking, relying on the single event loop.
    Concurrent identical requests are not coalesced.
    """

    def __init__(
        self,
        adapters: Sequence[ProviderAdapter],
        cache: Optional[InMemoryCacheStore] = None,
        quota: Optional[QuotaGate] = None,
        usage: Optional[UsageTracker] = None,
        validator: Optional[ResponseValidator] = None,
        retry_delay: float = 2.0,
        sleep: Optional[Sleeper] = None,
        redis_client=None,
    ):
        self.adapters: List[ProviderAdapter] = list(adapters)
        self.cache = cache
        self.quota = quota
        self.usage = usage or UsageTracker()
        self.validator = validator or ResponseValidator()
        self.retry_delay = retry_delay
        self._sleep = sleep or asyncio.sleep
        self._redis_client = redis_client

        self.total_requests = 0
        self.successful_requests = 0
        self.fallback_requests = 0
        self.cache_hits = 0
        self.quota_denied = 0
        self.requests_by_provider: Dict[str, int] = defaultdict(int)
        self.errors_by_kind: Dict[str, int] = defaultdict(int)
        self.total_cost = 0.0

        if not self.adapters:
            logger.warning("No AI providers configured, every request will get fallback content")

    @property
    def provider_names(self) -> List[str]:
        return [adapter.name for adapter in self.adapters]

    async def generate(
        self,
        request: AIRequest,
        kind: Optional[Union[GenerationKind, str]] = None,
        action: Optional[str] = None,
        expected_days: Optional[int] = None,
    ) -> AIResponse:
        """
        Produce a response for request.

        When kind is given the provider text must parse and validate as that
        kind, otherwise the next provider is tried. Raises GenerationError only
        for a quota denial; total provider failure resolves with fallback
        content whose provider is "fallback".
        """
        if not request.request_id:
            request = request.model_copy(update={"request_id": generate_request_id()})

        kind = GenerationKind(kind) if kind is not None else None
        action = action or (kind.value if kind else ActionType.AI_REQUEST.value)

        if request.user_id and self.quota is not None:
            if not await self.quota.allow(request.user_id, action):
                self.quota_denied += 1
                raise GenerationError(
                    "Rate limit exceeded. Please wait before making another request.",
                    ErrorKind.RATE_LIMIT_EXCEEDED,
                    status_code=429,
                    retryable=False,
                )

        cache_key = make_cache_key(request)
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None and self._cached_response_fits(cached, kind, expected_days):
                self.cache_hits += 1
                logger.info(f"Cache hit for {request.request_id}")
                return cached

        self.total_requests += 1
        response = await self._run_failover(request, kind, expected_days)

        if response is None:
            self.fallback_requests += 1
            logger.error(f"All AI providers failed for {request.request_id}, using fallback content")
            response = fallback_response(request.request_id, kind, expected_days)
            self._record_usage(request, response, action, success=False)
            return response

        self.successful_requests += 1
        self.requests_by_provider[response.provider] += 1
        self.total_cost = round(self.total_cost + response.cost, 6)

        if self.cache is not None:
            self.cache.put(cache_key, response)

        self._record_usage(request, response, action, success=True)
        if request.user_id and self.quota is not None:
            self.quota.record(request.user_id, action)

        return response

    def _cached_response_fits(
        self,
        cached: AIResponse,
        kind: Optional[GenerationKind],
        expected_days: Optional[int],
    ) -> bool:
        """A cached entry may have been stored without validation, so it is checked for the requested kind"""

        if kind is None:
            return True
        try:
            self.validator.parse_and_validate(kind, cached.content, provider=cached.provider, expected_days=expected_days)
        except GenerationError as e:
            logger.info(f"Cached response does not validate as {kind.value} ({e.code}), regenerating")
            return False
        return True

    async def _run_failover(
        self,
        request: AIRequest,
        kind: Optional[GenerationKind],
        expected_days: Optional[int],
    ) -> Optional[AIResponse]:
        max_attempts = [max(1, adapter.config.max_retries) for adapter in self.adapters]
        state = initial_state(len(self.adapters))
        response = None

        # a model override names a model of the primary provider; later providers use their own
        failover_request = request.model_copy(update={"model": None}) if request.model else request

        while isinstance(state, TryingProvider):
            adapter = self.adapters[state.index]
            attempt_request = request if state.index == 0 else failover_request
            outcome, response = await self._attempt(adapter, attempt_request, state.attempt, kind, expected_days)
            following = next_state(state, outcome, max_attempts)

            if isinstance(following, TryingProvider) and following.index == state.index:
                delay = backoff_delay(self.retry_delay, state.attempt)
                logger.info(f"Retrying {adapter.name} in {delay:g}s (attempt {following.attempt})")
                await self._sleep(delay)
            elif isinstance(following, TryingProvider):
                logger.warning(
                    f"Provider {adapter.name} failed for {request.request_id}, "
                    f"failing over to {self.adapters[following.index].name}"
                )

            state = following

        if isinstance(state, Succeeded):
            return response

        return None

    async def _attempt(
        self,
        adapter: ProviderAdapter,
        request: AIRequest,
        attempt: int,
        kind: Optional[GenerationKind],
        expected_days: Optional[int],
    ) -> Tuple[Outcome, Optional[AIResponse]]:
        """One call against one provider, reduced to a failover outcome"""

        check = adapter.validate_request(request)
        if not check.is_valid:
            self.errors_by_kind[ErrorKind.INVALID_REQUEST.code] += 1
            logger.warning(f"{adapter.name} rejected request {request.request_id}: {check.error}")
            return Outcome.TERMINAL_FAILURE, None

        try:
            response = await adapter.generate(request)
        except GenerationError as e:
            return self._failure(adapter, request, attempt, e), None
        except Exception as e:
            logger.exception(f"Unexpected error from {adapter.name}")
            error = GenerationError(str(e), ErrorKind.UNKNOWN_ERROR, provider=adapter.name)
            return self._failure(adapter, request, attempt, error), None

        if kind is not None:
            try:
                self.validator.parse_and_validate(
                    kind,
                    response.content,
                    provider=adapter.name,
                    expected_days=expected_days,
                )
            except GenerationError as e:
                return self._failure(adapter, request, attempt, e), None

        logger.info(
            f"{adapter.name} succeeded for {request.request_id} on attempt {attempt} "
            f"({response.usage.total_tokens} tokens, ${response.cost:.6f})"
        )
        return Outcome.SUCCESS, response

    def _failure(self, adapter: ProviderAdapter, request: AIRequest, attempt: int, error: GenerationError) -> Outcome:
        self.errors_by_kind[error.code] += 1
        logger.warning(
            f"Attempt {attempt} on {adapter.name} failed for {request.request_id}: "
            f"{error.code} (retryable={error.retryable})"
        )
        return Outcome.RETRYABLE_FAILURE if error.retryable else Outcome.TERMINAL_FAILURE

    def _record_usage(self, request: AIRequest, response: AIResponse, action: str, success: bool):
        self.usage.record(UsageRecord(
            user_id=request.user_id,
            provider=response.provider,
            model=response.model,
            prompt_tokens=response.usage.prompt_tokens,
            completion_tokens=response.usage.completion_tokens,
            total_tokens=response.usage.total_tokens,
            cost=response.cost,
            timestamp=utc_now(),
            request_type=action,
            success=success,
        ))

    async def health_check(self) -> Dict[str, bool]:
        """Per-provider health; an adapter that raises counts as unhealthy"""

        results = {}
        for adapter in self.adapters:
            try:
                results[adapter.name] = await adapter.health_check()
            except Exception as e:
                logger.error(f"Health check for {adapter.name} raised {type(e).__name__}: {e}")
                results[adapter.name] = False
        return results

    def get_stats(self) -> Dict[str, Any]:
        return {
            "providers": self.provider_names,
            "models": {adapter.name: adapter.model_info() for adapter in self.adapters},
            "cache": self.cache.stats() if self.cache is not None else None,
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.fallback_requests,
            "fallback_requests": self.fallback_requests,
            "cache_hits": self.cache_hits,
            "quota_denied": self.quota_denied,
            "requests_by_provider": dict(self.requests_by_provider),
            "errors_by_kind": dict(self.errors_by_kind),
            "total_cost": self.total_cost,
            "usage": self.usage.summary(),
        }

    async def drain(self):
        """Wait for scheduled usage forwarding and quota increments"""
        await self.usage.drain()
        if self.quota is not None:
            await self.quota.drain()

    async def aclose(self):
        await self.drain()
        for adapter in self.adapters:
            await adapter.close()
        if self._redis_client is not None:
            await self._redis_client.aclose()


def build_orchestrator(settings, client: Optional[httpx.AsyncClient] = None) -> RequestOrchestrator:
    """Wire adapters, cache, quota and usage tracking from application settings"""

    adapters = build_adapters(settings.provider_configs(), client=client)

    cache = None
    if settings.cache_enabled:
        cache = InMemoryCacheStore(max_size=settings.cache_max_size, ttl=settings.cache_ttl)

    redis_client = None
    if settings.redis_url:
        redis_client = redis_async.from_url(settings.redis_url, decode_responses=True)
        counter = RedisQuotaCounter(
            redis_client,
            limit=settings.quota_requests,
            window_seconds=settings.quota_window_seconds,
        )
        logger.info("Using Redis quota counter")
    else:
        counter = InMemoryQuotaCounter(limit=settings.quota_requests, window_seconds=settings.quota_window_seconds)

    return RequestOrchestrator(
        adapters,
        cache=cache,
        quota=QuotaGate(counter, increment_retries=settings.usage_sink_retries),
        usage=UsageTracker(sink_retries=settings.usage_sink_retries),
        retry_delay=settings.retry_delay,
        redis_client=redis_client,
    )
