"""
Request and Response models for the MealGen AI Service
Ingress validation and the standard response envelope
"""

from typing import Any, Dict, List, Optional
from datetime import datetime

from pydantic import Field, field_validator

from mealgen.models import AIRequest, AIResponse, CamelModel, GenerationKind, utc_now


class GenerateRequest(CamelModel):
    """Raw prompt generation request"""
    prompt: str = Field(..., min_length=1, max_length=50000)
    user_id: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1, le=4000)
    kind: Optional[GenerationKind] = None

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v):
        if not v.strip():
            raise ValueError("Prompt cannot be blank")
        return v

    def to_ai_request(self) -> AIRequest:
        return AIRequest(
            prompt=self.prompt,
            user_id=self.user_id,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


class ResponseMetadata(CamelModel):
    """Provenance of a generation"""
    provider: str
    model: str
    tokens_used: int = 0
    cost: float = 0.0
    request_id: str
    degraded: bool = False

    @classmethod
    def from_response(cls, response: AIResponse, degraded: Optional[bool] = None) -> "ResponseMetadata":
        return cls(
            provider=response.provider,
            model=response.model,
            tokens_used=response.usage.total_tokens,
            cost=response.cost,
            request_id=response.request_id,
            degraded=response.is_fallback if degraded is None else degraded,
        )


class GenerationEnvelope(CamelModel):
    """Standard response envelope for every generation route"""
    success: bool = True
    data: Any = None
    metadata: Optional[ResponseMetadata] = None
    error: Optional[str] = None


class ErrorResponse(CamelModel):
    """Standardized error response"""
    success: bool = False
    error: str
    code: str
    request_id: Optional[str] = None
    errors: Optional[List[Dict[str, Any]]] = None


class HealthResponse(CamelModel):
    """Health check response"""
    status: str
    service: str
    version: str
    timestamp: datetime = Field(default_factory=utc_now)
    checks: Dict[str, bool] = Field(default_factory=dict)
    cache: Optional[Dict[str, Any]] = None
    usage: Dict[str, Any] = Field(default_factory=dict)
    uptime: Optional[float] = None
