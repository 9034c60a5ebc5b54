"""
Pytest configuration and shared fixtures
"""

import json
import os
from typing import List, Optional, Sequence, Union

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["CORS_ORIGINS"] = "http://localhost:3000,http://localhost:8000"
for _key in ("DEEPSEEK_API_KEY", "GEMINI_API_KEY", "REDIS_URL"):
    os.environ.pop(_key, None)

from mealgen.cache import InMemoryCacheStore
from mealgen.models import AIRequest, AIResponse, ProviderConfig, TokenUsage
from mealgen.orchestrator import RequestOrchestrator
from mealgen.providers.base import ProviderAdapter
from mealgen.quota import InMemoryQuotaCounter, QuotaGate
from mealgen.usage import UsageTracker


VALID_RECIPE = {
    "title": "Vegan Chickpea Curry",
    "description": "A quick weeknight curry",
    "servings": 2,
    "calories": 520,
    "ingredients": [
        {"name": "Chickpeas", "amount": 400, "unit": "grams"},
        {"name": "Coconut milk", "amount": 1, "unit": "can"},
        {"name": "Curry paste", "amount": "2", "unit": "tablespoons"},
    ],
    "instructions": [
        {"step": 1, "instruction": "Fry the curry paste for a minute"},
        {"step": 2, "instruction": "Add chickpeas and coconut milk and simmer"},
    ],
}


def meal_plan_payload(days: int = 7) -> dict:
    return {
        "title": "Plant-based week",
        "overview": {"averageCalories": 2000},
        "days": [
            {"day": day, "meals": [{"mealType": "dinner", "title": f"Dinner {day}"}]}
            for day in range(1, days + 1)
        ],
    }


QUICK_MEALS = {
    "suggestions": [
        {
            "title": "Peanut Noodles",
            "ingredients": ["noodles", "peanut butter", "soy sauce"],
            "quickInstructions": ["Boil noodles", "Toss with sauce"],
        }
    ]
}


Outcome = Union[str, Exception]


class FakeAdapter(ProviderAdapter):
    """Provider double that replays scripted outcomes and counts calls"""

    def __init__(
        self,
        name: str = "primary",
        outcomes: Optional[Sequence[Outcome]] = None,
        max_retries: int = 3,
        max_prompt_length: int = 50000,
    ):
        self.config = ProviderConfig(
            name=name,
            api_key="test-key",
            base_url="https://fake.test",
            model=f"{name}-model",
            max_retries=max_retries,
            input_token_cost=0.000001,
            output_token_cost=0.000002,
        )
        self._owns_client = False
        self._client = None
        self.max_prompt_length = max_prompt_length
        self.outcomes: List[Outcome] = list(outcomes or [json.dumps(VALID_RECIPE)])
        self.calls = 0
        self.requests: List[AIRequest] = []
        self.closed = False

    def _endpoint(self, model):
        return "https://fake.test/generate"

    def _headers(self):
        return {}

    def _build_body(self, request):
        return {"prompt": request.prompt}

    def _parse_body(self, payload):
        return payload["content"], TokenUsage()

    def _classify(self, status_code, error):
        return self._classify_status(status_code)

    async def generate(self, request: AIRequest) -> AIResponse:
        self.calls += 1
        self.requests.append(request)
        outcome = self.outcomes[min(self.calls - 1, len(self.outcomes) - 1)]
        if isinstance(outcome, Exception):
            raise outcome

        return AIResponse(
            content=outcome,
            provider=self.name,
            model=self.config.model,
            usage=TokenUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30),
            cost=self.calculate_cost(10, 20),
            request_id=request.request_id,
        )

    async def close(self):
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float):
        self.delays.append(seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def recipe_json():
    return json.dumps(VALID_RECIPE)


@pytest.fixture
def make_orchestrator(clock, sleeper):
    """Build an orchestrator over fake adapters with a fake clock and no-op sleeps"""

    def _make(*adapters, quota_limit: int = 10, cache: bool = True, retry_delay: float = 2.0):
        return RequestOrchestrator(
            list(adapters),
            cache=InMemoryCacheStore(max_size=100, ttl=3600, clock=clock) if cache else None,
            quota=QuotaGate(
                InMemoryQuotaCounter(limit=quota_limit, window_seconds=60, clock=clock),
                retry_wait=0,
            ),
            usage=UsageTracker(retry_wait=0),
            retry_delay=retry_delay,
            sleep=sleeper,
        )

    return _make
