"""
Canonical error taxonomy for AI generation
Every provider failure is converted to one of these kinds before the orchestrator sees it
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Failure kinds with their fixed retryable flag"""
    TIMEOUT = ("TIMEOUT", True)
    NETWORK_ERROR = ("NETWORK_ERROR", True)
    RATE_LIMIT_EXCEEDED = ("RATE_LIMIT_EXCEEDED", True)
    SERVICE_UNAVAILABLE = ("SERVICE_UNAVAILABLE", True)
    INVALID_API_KEY = ("INVALID_API_KEY", False)
    QUOTA_EXCEEDED = ("QUOTA_EXCEEDED", False)
    INVALID_REQUEST = ("INVALID_REQUEST", False)
    CONTENT_BLOCKED = ("CONTENT_BLOCKED", False)
    PARSING_ERROR = ("PARSING_ERROR", False)
    VALIDATION_ERROR = ("VALIDATION_ERROR", False)
    UNKNOWN_ERROR = ("UNKNOWN_ERROR", True)

    def __init__(self, code: str, retryable: bool):
        self.code = code
        self.retryable = retryable


class GenerationError(Exception):
    """Canonical error raised by adapters, the validator and the quota gate"""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN_ERROR,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.provider = provider
        self.status_code = status_code
        self.retryable = kind.retryable if retryable is None else retryable

    @property
    def code(self) -> str:
        return self.kind.code

    def to_dict(self):
        return {
            "message": self.message,
            "code": self.code,
            "provider": self.provider,
            "status_code": self.status_code,
            "retryable": self.retryable,
        }

    def __repr__(self):
        return f"{type(self).__name__}({self.code}, provider={self.provider!r}, message={self.message!r})"


class ResponseParsingError(GenerationError):
    """No JSON object could be extracted from provider text"""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message, ErrorKind.PARSING_ERROR, provider=provider)


class ResponseValidationError(GenerationError):
    """Parsed content failed the structural rules for its kind"""

    def __init__(self, errors, provider: Optional[str] = None):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors), ErrorKind.VALIDATION_ERROR, provider=provider)


class TemplateError(GenerationError):
    """Unknown template id or unresolved variables in strict mode"""

    def __init__(self, message: str):
        super().__init__(message, ErrorKind.INVALID_REQUEST)


USER_MESSAGES = {
    ErrorKind.TIMEOUT: "The meal assistant took too long to respond. Please try again.",
    ErrorKind.NETWORK_ERROR: "Network connection failed. Please check your internet connection.",
    ErrorKind.RATE_LIMIT_EXCEEDED: "You're sending requests too quickly. Please wait a moment and try again.",
    ErrorKind.SERVICE_UNAVAILABLE: "The meal assistant is temporarily unavailable. Please try again shortly.",
    ErrorKind.INVALID_API_KEY: "The meal assistant is misconfigured. Please contact support.",
    ErrorKind.QUOTA_EXCEEDED: "Daily limit reached. Upgrade to premium or try again tomorrow.",
    ErrorKind.INVALID_REQUEST: "Please check your input and try again.",
    ErrorKind.CONTENT_BLOCKED: "We couldn't generate that request. Please try rephrasing it.",
    ErrorKind.PARSING_ERROR: "We received an unreadable answer. Please try again.",
    ErrorKind.VALIDATION_ERROR: "We received an incomplete answer. Please try again.",
    ErrorKind.UNKNOWN_ERROR: "Something went wrong. Please try again.",
}


def user_message(error: Exception) -> str:
    """Map an error to a friendly, caller-facing string"""
    if isinstance(error, GenerationError):
        return USER_MESSAGES[error.kind]
    return USER_MESSAGES[ErrorKind.UNKNOWN_ERROR]
