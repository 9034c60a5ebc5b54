"""
Gemini generateContent adapter
Safety-filtered completions with content-block detection
"""

import logging
from typing import Any, Dict, List, Tuple

from ..errors import ErrorKind, GenerationError
from ..models import AIRequest, TokenUsage
from .base import ProviderAdapter

logger = logging.getLogger(__name__)

BLOCKED_FINISH_REASONS = {"SAFETY", "RECITATION", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII"}
INVALID_KEY_REASONS = {"API_KEY_INVALID", "API_KEY_EXPIRED"}
INVALID_KEY_STATUSES = {"UNAUTHENTICATED", "PERMISSION_DENIED"}
QUOTA_FAILURE_TYPE = "type.googleapis.com/google.rpc.QuotaFailure"


class GeminiAdapter(ProviderAdapter):
    """POST {base_url}/models/{model}:generateContent"""

    max_prompt_length = 30000
    max_tokens_limit = 4000
    min_temperature = 0.0
    max_temperature = 1.0
    top_k = 40

    def _endpoint(self, model: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{model}:generateContent"

    def _headers(self) -> Dict[str, str]:
        # header auth keeps the key out of logged URLs
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.config.api_key,
        }

    def get_safety_settings(self) -> List[Dict[str, str]]:
        """Configure safety settings for content moderation"""
        return [
            {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
            {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
            {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
            {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        ]

    def _build_body(self, request: AIRequest) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": request.prompt}]}],
            "generationConfig": {
                "temperature": request.temperature if request.temperature is not None else self.config.temperature,
                "maxOutputTokens": request.max_tokens or self.config.max_tokens,
                "topP": self.config.top_p,
                "topK": self.top_k,
            },
            "safetySettings": self.get_safety_settings(),
        }

    def _parse_body(self, payload: Dict[str, Any]) -> Tuple[str, TokenUsage]:
        feedback = payload.get("promptFeedback") or {}
        if feedback.get("blockReason"):
            raise GenerationError(
                f"Prompt blocked: {feedback['blockReason']}",
                ErrorKind.CONTENT_BLOCKED,
                provider=self.name,
            )

        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            raise GenerationError("No candidates in response", ErrorKind.PARSING_ERROR, provider=self.name)

        candidate = candidates[0]
        finish_reason = candidate.get("finishReason")
        if finish_reason in BLOCKED_FINISH_REASONS:
            raise GenerationError(
                f"Content blocked by safety filters: {finish_reason}",
                ErrorKind.CONTENT_BLOCKED,
                provider=self.name,
            )

        parts = (candidate.get("content") or {}).get("parts")
        if not isinstance(parts, list) or not parts:
            raise GenerationError("No content parts in response", ErrorKind.PARSING_ERROR, provider=self.name)

        texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
        if not texts:
            raise GenerationError("No text in response", ErrorKind.PARSING_ERROR, provider=self.name)

        metadata = payload.get("usageMetadata") or {}
        prompt_tokens = int(metadata.get("promptTokenCount") or 0)
        completion_tokens = int(metadata.get("candidatesTokenCount") or 0)

        return "".join(texts), TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=int(metadata.get("totalTokenCount") or prompt_tokens + completion_tokens),
        )

    def _classify(self, status_code: int, error: Dict[str, Any]) -> ErrorKind:
        details = [d for d in error.get("details") or [] if isinstance(d, dict)]

        if any(d.get("reason") in INVALID_KEY_REASONS for d in details):
            return ErrorKind.INVALID_API_KEY
        if error.get("status") in INVALID_KEY_STATUSES:
            return ErrorKind.INVALID_API_KEY

        if status_code == 429 or error.get("status") == "RESOURCE_EXHAUSTED":
            # per-day quota ids mean the allowance is spent; anything else is per-minute throttling
            for detail in details:
                if detail.get("@type") != QUOTA_FAILURE_TYPE:
                    continue
                for violation in detail.get("violations") or []:
                    if "PerDay" in str(violation.get("quotaId", "")):
                        return ErrorKind.QUOTA_EXCEEDED
            return ErrorKind.RATE_LIMIT_EXCEEDED

        return self._classify_status(status_code)
