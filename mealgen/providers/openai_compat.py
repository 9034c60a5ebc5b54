"""
OpenAI-compatible chat-completions adapter (DeepSeek and similar APIs)
"""

import logging
from typing import Any, Dict, Tuple

from ..errors import ErrorKind, GenerationError
from ..models import AIRequest, TokenUsage
from .base import ProviderAdapter

logger = logging.getLogger(__name__)

QUOTA_ERROR_CODES = {"insufficient_quota", "insufficient_balance", "billing_hard_limit_reached"}
INVALID_KEY_ERROR_CODES = {"invalid_api_key", "authentication_error"}


class OpenAICompatibleAdapter(ProviderAdapter):
    """POST {base_url}/chat/completions with a bearer token"""

    max_prompt_length = 50000
    max_tokens_limit = 4000
    min_temperature = 0.0
    max_temperature = 2.0

    def _endpoint(self, model: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

    def _build_body(self, request: AIRequest) -> Dict[str, Any]:
        return {
            "model": request.model or self.config.model,
            "messages": [{"role": "user", "content": request.prompt}],
            "temperature": request.temperature if request.temperature is not None else self.config.temperature,
            "max_tokens": request.max_tokens or self.config.max_tokens,
            "top_p": self.config.top_p,
            "stream": False,
        }

    def _parse_body(self, payload: Dict[str, Any]) -> Tuple[str, TokenUsage]:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise GenerationError("No choices in response", ErrorKind.PARSING_ERROR, provider=self.name)

        choice = choices[0]
        if choice.get("finish_reason") == "content_filter":
            raise GenerationError("Content was filtered by the provider", ErrorKind.CONTENT_BLOCKED, provider=self.name)

        message = choice.get("message") or {}
        content = message.get("content")
        if not isinstance(content, str):
            raise GenerationError("No message content in response", ErrorKind.PARSING_ERROR, provider=self.name)

        usage = payload.get("usage") or {}
        prompt_tokens = int(usage.get("prompt_tokens") or 0)
        completion_tokens = int(usage.get("completion_tokens") or 0)

        return content, TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=int(usage.get("total_tokens") or prompt_tokens + completion_tokens),
        )

    def _classify(self, status_code: int, error: Dict[str, Any]) -> ErrorKind:
        codes = {str(error.get("code") or ""), str(error.get("type") or "")}

        if codes & QUOTA_ERROR_CODES:
            return ErrorKind.QUOTA_EXCEEDED
        if codes & INVALID_KEY_ERROR_CODES:
            return ErrorKind.INVALID_API_KEY

        return self._classify_status(status_code)
