"""
Usage tracking for AI generation
Append-only in-process log with optional forwarding to an external sink
"""

import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional

from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_exponential

from .background import BackgroundTasks
from .models import UsageRecord

logger = logging.getLogger(__name__)

UsageSink = Callable[[UsageRecord], Awaitable[None]]


class UsageTracker:
    """Records one UsageRecord per completed request; records are never mutated"""

    def __init__(self, sink: Optional[UsageSink] = None, sink_retries: int = 3, retry_wait: float = 0.5):
        self.sink = sink
        self.sink_retries = sink_retries
        self.retry_wait = retry_wait
        self._records: List[UsageRecord] = []
        self.sink_failures = 0
        self._pending = BackgroundTasks()

    @property
    def records(self) -> List[UsageRecord]:
        return list(self._records)

    def record(self, record: UsageRecord) -> None:
        """Append to the log and schedule forwarding to the sink"""
        self._records.append(record)

        if self.sink is not None:
            self._pending.spawn(self._forward(record), name=f"usage-sink:{record.provider}")

    async def _forward(self, record: UsageRecord) -> None:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.sink_retries),
                wait=wait_exponential(multiplier=self.retry_wait, max=10),
            ):
                with attempt:
                    await self.sink(record)
        except RetryError as e:
            self.sink_failures += 1
            logger.warning(
                f"Usage record for {record.provider} dropped after {self.sink_retries} attempts: "
                f"{e.last_attempt.exception()!r}"
            )

    async def drain(self):
        """Wait for scheduled sink calls to finish"""
        await self._pending.drain()

    def summary(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        records = [r for r in self._records if user_id is None or r.user_id == user_id]

        by_provider = defaultdict(lambda: {"requests": 0, "tokens": 0, "cost": 0.0})
        for r in records:
            bucket = by_provider[r.provider]
            bucket["requests"] += 1
            bucket["tokens"] += r.total_tokens
            bucket["cost"] = round(bucket["cost"] + r.cost, 6)

        return {
            "total_requests": len(records),
            "successful_requests": sum(1 for r in records if r.success),
            "failed_requests": sum(1 for r in records if not r.success),
            "total_tokens": sum(r.total_tokens for r in records),
            "total_cost": round(sum(r.cost for r in records), 6),
            "by_provider": dict(by_provider),
            "sink_failures": self.sink_failures,
        }
