"""
MealGen AI orchestration layer
Provider failover, retries, validation, quota and caching for meal generation
"""

from .cache import InMemoryCacheStore, make_cache_key
from .errors import ErrorKind, GenerationError, user_message
from .models import AIRequest, AIResponse, GenerationKind, ProviderConfig, TokenUsage, UsageRecord
from .orchestrator import RequestOrchestrator, build_orchestrator
from .quota import InMemoryQuotaCounter, QuotaGate, RedisQuotaCounter
from .service import MealPlanningService
from .usage import UsageTracker
from .validation import ResponseValidator

__version__ = "1.0.0"

__all__ = [
    "AIRequest",
    "AIResponse",
    "ErrorKind",
    "GenerationError",
    "GenerationKind",
    "InMemoryCacheStore",
    "InMemoryQuotaCounter",
    "MealPlanningService",
    "ProviderConfig",
    "QuotaGate",
    "RedisQuotaCounter",
    "RequestOrchestrator",
    "ResponseValidator",
    "TokenUsage",
    "UsageRecord",
    "UsageTracker",
    "build_orchestrator",
    "make_cache_key",
    "user_message",
]
