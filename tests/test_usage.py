"""
Usage tracker tests
"""

import asyncio

import pytest

from mealgen.models import UsageRecord, utc_now
from mealgen.usage import UsageTracker


def _record(user_id="u1", provider="deepseek", cost=0.001, tokens=100, success=True) -> UsageRecord:
    return UsageRecord(
        user_id=user_id,
        provider=provider,
        model=f"{provider}-model",
        prompt_tokens=tokens // 2,
        completion_tokens=tokens - tokens // 2,
        total_tokens=tokens,
        cost=cost,
        timestamp=utc_now(),
        request_type="recipe",
        success=success,
    )


class TestUsageTracker:
    """Append-only log with optional sink"""

    @pytest.mark.asyncio
    async def test_records_are_appended(self):
        tracker = UsageTracker()
        tracker.record(_record())
        tracker.record(_record(provider="gemini"))

        assert [r.provider for r in tracker.records] == ["deepseek", "gemini"]

    @pytest.mark.asyncio
    async def test_records_list_is_a_copy(self):
        tracker = UsageTracker()
        tracker.record(_record())
        tracker.records.clear()

        assert len(tracker.records) == 1

    @pytest.mark.asyncio
    async def test_sink_failure_is_retried_then_dropped(self):
        calls = []

        async def sink(record):
            calls.append(record)
            raise ConnectionError("sink down")

        tracker = UsageTracker(sink=sink, sink_retries=3, retry_wait=0)
        tracker.record(_record())
        await tracker.drain()

        assert len(calls) == 3
        assert tracker.sink_failures == 1
        assert len(tracker.records) == 1

    @pytest.mark.asyncio
    async def test_sink_receives_record(self):
        received = []

        async def sink(record):
            received.append(record)

        tracker = UsageTracker(sink=sink, retry_wait=0)
        record = _record()
        tracker.record(record)
        await tracker.drain()

        assert received == [record]

    @pytest.mark.asyncio
    async def test_record_does_not_wait_for_sink(self):
        release = asyncio.Event()
        delivered = []

        async def sink(record):
            await release.wait()
            delivered.append(record)

        tracker = UsageTracker(sink=sink, retry_wait=0)
        tracker.record(_record())

        assert len(tracker.records) == 1
        assert delivered == []

        release.set()
        await tracker.drain()
        assert len(delivered) == 1

    @pytest.mark.asyncio
    async def test_summary(self):
        tracker = UsageTracker()
        tracker.record(_record(user_id="u1", cost=0.001, tokens=100))
        tracker.record(_record(user_id="u1", provider="gemini", cost=0.002, tokens=50))
        tracker.record(_record(user_id="u2", provider="fallback", cost=0.0, tokens=0, success=False))

        summary = tracker.summary()
        assert summary["total_requests"] == 3
        assert summary["successful_requests"] == 2
        assert summary["failed_requests"] == 1
        assert summary["total_tokens"] == 150
        assert summary["total_cost"] == 0.003
        assert summary["by_provider"]["gemini"]["requests"] == 1

        assert tracker.summary(user_id="u2")["total_requests"] == 1

    def test_record_to_dict(self):
        data = _record().to_dict()
        assert data["provider"] == "deepseek"
        assert data["total_tokens"] == 100
        assert isinstance(data["timestamp"], str)
