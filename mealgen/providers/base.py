"""
Base provider adapter
Shared HTTP call, error classification and cost accounting for language-model providers
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple

import httpx

from ..errors import ErrorKind, GenerationError
from ..models import AIRequest, AIResponse, ProviderConfig, TokenUsage, utc_now

logger = logging.getLogger(__name__)

COST_PRECISION = Decimal("0.000001")
CHARS_PER_TOKEN = 4


@dataclass(frozen=True)
class RequestCheck:
    """Result of provider-specific request limits"""
    is_valid: bool
    error: Optional[str] = None


class ProviderAdapter(ABC):
    """Translates canonical requests into one provider's HTTP API and back"""

    max_prompt_length = 50000
    max_tokens_limit = 4000
    min_temperature = 0.0
    max_temperature = 2.0

    def __init__(self, config: ProviderConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.timeout)

    @property
    def name(self) -> str:
        return self.config.name

    @abstractmethod
    def _endpoint(self, model: str) -> str:
        """Absolute URL for a generation call"""

    @abstractmethod
    def _headers(self) -> Dict[str, str]:
        """Auth and content headers"""

    @abstractmethod
    def _build_body(self, request: AIRequest) -> Dict[str, Any]:
        """Provider-specific request body"""

    @abstractmethod
    def _parse_body(self, payload: Dict[str, Any]) -> Tuple[str, TokenUsage]:
        """Extract content and usage, raising GenerationError for unusable payloads"""

    @abstractmethod
    def _classify(self, status_code: int, error: Dict[str, Any]) -> ErrorKind:
        """Map a non-2xx status and the provider error object to an ErrorKind"""

    def validate_request(self, request: AIRequest) -> RequestCheck:
        """Provider limits that must hold before any network call"""

        if not request.prompt or not request.prompt.strip():
            return RequestCheck(False, "Prompt is required")

        if len(request.prompt) > self.max_prompt_length:
            return RequestCheck(False, f"Prompt is too long (max {self.max_prompt_length:,} characters)")

        if request.max_tokens is not None and not 1 <= request.max_tokens <= self.max_tokens_limit:
            return RequestCheck(False, f"Max tokens must be between 1 and {self.max_tokens_limit}")

        if request.temperature is not None and not (
            self.min_temperature <= request.temperature <= self.max_temperature
        ):
            return RequestCheck(
                False,
                f"Temperature must be between {self.min_temperature:g} and {self.max_temperature:g}",
            )

        return RequestCheck(True)

    async def generate(self, request: AIRequest) -> AIResponse:
        """Issue a single generation call and return the canonical response"""

        check = self.validate_request(request)
        if not check.is_valid:
            raise GenerationError(check.error, ErrorKind.INVALID_REQUEST, provider=self.name, status_code=400)

        model = request.model or self.config.model
        payload = await self._post(self._endpoint(model), self._build_body(request))
        content, usage = self._parse_body(payload)

        return AIResponse(
            content=content,
            provider=self.name,
            model=model,
            usage=usage,
            cost=self.calculate_cost(usage.prompt_tokens, usage.completion_tokens),
            request_id=request.request_id,
            timestamp=utc_now(),
        )

    async def _post(self, url: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(
                url,
                json=body,
                headers=self._headers(),
                timeout=self.config.timeout,
            )
        except httpx.TimeoutException as e:
            raise GenerationError(
                f"Request timed out after {self.config.timeout:g}s",
                ErrorKind.TIMEOUT,
                provider=self.name,
                status_code=408,
            ) from e
        except httpx.TransportError as e:
            raise GenerationError(
                f"Network connection failed: {type(e).__name__}",
                ErrorKind.NETWORK_ERROR,
                provider=self.name,
                status_code=502,
            ) from e

        if not response.is_success:
            raise self._error_from_response(response)

        try:
            payload = response.json()
        except ValueError as e:
            raise GenerationError(
                "Provider returned a non-JSON body",
                ErrorKind.PARSING_ERROR,
                provider=self.name,
                status_code=response.status_code,
            ) from e

        if not isinstance(payload, dict):
            raise GenerationError(
                "Provider returned an unexpected body",
                ErrorKind.PARSING_ERROR,
                provider=self.name,
                status_code=response.status_code,
            )
        return payload

    def _error_from_response(self, response: httpx.Response) -> GenerationError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            error = {}

        kind = self._classify(response.status_code, error)
        message = error.get("message") or response.reason_phrase or "Unknown error"
        logger.warning(f"{self.name} returned HTTP {response.status_code} ({kind.code})")

        return GenerationError(
            f"{self.name} API error: {response.status_code} - {message}",
            kind,
            provider=self.name,
            status_code=response.status_code,
        )

    @staticmethod
    def _classify_status(status_code: int) -> ErrorKind:
        """Status-only classification shared by all providers"""

        if status_code in (401, 403):
            return ErrorKind.INVALID_API_KEY
        if status_code == 402:
            return ErrorKind.QUOTA_EXCEEDED
        if status_code == 408:
            return ErrorKind.TIMEOUT
        if status_code == 429:
            return ErrorKind.RATE_LIMIT_EXCEEDED
        if 500 <= status_code < 600:
            return ErrorKind.SERVICE_UNAVAILABLE
        if 400 <= status_code < 500:
            return ErrorKind.INVALID_REQUEST
        return ErrorKind.UNKNOWN_ERROR

    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Cost from published per-token rates, rounded to 6 decimal places"""

        cost = (
            Decimal(prompt_tokens) * Decimal(str(self.config.input_token_cost))
            + Decimal(completion_tokens) * Decimal(str(self.config.output_token_cost))
        )
        return float(cost.quantize(COST_PRECISION, rounding=ROUND_HALF_UP))

    def estimate_cost(self, prompt: str, max_tokens: int = 1000) -> float:
        """Rough pre-call estimate assuming about 4 characters per token"""

        estimated_input_tokens = math.ceil(len(prompt) / CHARS_PER_TOKEN)
        return self.calculate_cost(estimated_input_tokens, max_tokens)

    async def health_check(self) -> bool:
        try:
            response = await self.generate(AIRequest(prompt="Health check", max_tokens=10, temperature=0.1))
            return bool(response.content)
        except GenerationError as e:
            logger.warning(f"{self.name} health check failed: {e.code}")
            return False

    def model_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "cost_per_token": {
                "input": self.config.input_token_cost,
                "output": self.config.output_token_cost,
            },
        }

    async def close(self):
        """Clean up resources"""
        if self._owns_client:
            await self._client.aclose()
