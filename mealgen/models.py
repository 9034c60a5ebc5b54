"""
Canonical request/response models for the generation layer
Provider-agnostic shapes produced and consumed by the adapters
"""

import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

FALLBACK_PROVIDER = "fallback"


class GenerationKind(str, Enum):
    """Structured content kinds the validator understands"""
    RECIPE = "recipe"
    MEAL_PLAN = "mealplan"
    QUICK_MEAL = "quickmeal"


def generate_request_id() -> str:
    """Generate a tracing id like req_1700000000000_k3j9x2a8b"""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Immutable model that accepts and emits camelCase field names"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class AIRequest(CamelModel):
    """A single generation request; request_id is for tracing, not cache identity"""
    prompt: str
    request_id: str = Field(default_factory=generate_request_id)
    user_id: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class TokenUsage(CamelModel):
    """Token accounting reported by a provider"""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class AIResponse(CamelModel):
    """Generated content plus provenance; owned by the caller once returned"""
    content: str
    provider: str
    model: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = 0.0
    request_id: str
    timestamp: datetime = Field(default_factory=utc_now)

    @property
    def is_fallback(self) -> bool:
        return self.provider == FALLBACK_PROVIDER


class ProviderConfig(BaseModel):
    """Static per-provider settings, loaded once at start"""

    model_config = ConfigDict(frozen=True)

    name: str
    api_key: str = Field(..., repr=False)
    base_url: str
    model: str
    max_tokens: int = 4000
    temperature: float = 0.7
    top_p: float = 0.9
    timeout: float = 30.0
    max_retries: int = 3
    input_token_cost: float = 0.0
    output_token_cost: float = 0.0


@dataclass
class CacheEntry:
    """Cached response; timestamp and ttl are in clock seconds"""
    key: str
    value: AIResponse
    timestamp: float
    ttl: float
    hits: int = 0


@dataclass(frozen=True)
class UsageRecord:
    """Append-only usage log entry, one per completed request"""
    user_id: Optional[str]
    provider: str
    model: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost: float
    timestamp: datetime
    request_type: str
    success: bool

    @property
    def tokens(self) -> int:
        return self.total_tokens

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "provider": self.provider,
            "model": self.model,
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
            "cost": self.cost,
            "timestamp": self.timestamp.isoformat(),
            "request_type": self.request_type,
            "success": self.success,
        }
