"""
Configuration management for the MealGen AI Service
Centralized settings with proper validation and security
"""

from functools import lru_cache
from typing import Annotated, List, Optional
from enum import Enum

from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from mealgen.models import ProviderConfig


class Environment(str, Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "MealGen AI Service"
    app_version: str = "1.0.0"
    environment: Environment = Environment.PRODUCTION
    debug: bool = False

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    # Security
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["https://mealgen.app"])
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = Field(default_factory=lambda: ["GET", "POST"])
    cors_allow_headers: List[str] = Field(default_factory=lambda: ["*"])

    # Provider order
    primary_provider: str = "deepseek"
    fallback_provider: str = "gemini"

    # DeepSeek (OpenAI-compatible chat completions)
    deepseek_api_key: Optional[str] = None
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    deepseek_model: str = "deepseek-chat"
    deepseek_max_tokens: int = Field(default=4000, ge=1)
    deepseek_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    deepseek_top_p: float = Field(default=0.9, gt=0.0, le=1.0)
    deepseek_timeout: float = Field(default=30.0, gt=0)
    deepseek_max_retries: int = Field(default=3, ge=1, le=10)
    deepseek_input_token_cost: float = Field(default=0.0000014, ge=0)
    deepseek_output_token_cost: float = Field(default=0.0000028, ge=0)

    # Gemini (generateContent)
    gemini_api_key: Optional[str] = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-1.5-flash"
    gemini_max_tokens: int = Field(default=4000, ge=1)
    gemini_temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    gemini_top_p: float = Field(default=0.9, gt=0.0, le=1.0)
    gemini_timeout: float = Field(default=30.0, gt=0)
    gemini_max_retries: int = Field(default=3, ge=1, le=10)
    gemini_input_token_cost: float = Field(default=0.0000010, ge=0)
    gemini_output_token_cost: float = Field(default=0.0000020, ge=0)

    # Retry Configuration
    retry_delay: float = Field(default=2.0, ge=0.0)  # seconds, multiplied by attempt number

    # Cache Configuration
    cache_enabled: bool = True
    cache_ttl: float = Field(default=3600, gt=0)  # seconds
    cache_max_size: int = Field(default=1000, ge=1)

    # Quota Configuration
    quota_requests: int = Field(default=10, ge=1)
    quota_window_seconds: int = Field(default=60, ge=1)
    redis_url: Optional[str] = None

    # Usage tracking
    usage_sink_retries: int = Field(default=3, ge=1)

    # Monitoring & Logging
    log_level: LogLevel = LogLevel.INFO
    enable_access_logs: bool = True

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("debug")
    @classmethod
    def validate_debug(cls, v, info: ValidationInfo):
        env = info.data.get("environment")
        if env == Environment.PRODUCTION and v:
            raise ValueError("Debug mode not allowed in production")
        return v

    @field_validator("fallback_provider")
    @classmethod
    def validate_fallback_provider(cls, v, info: ValidationInfo):
        if v == info.data.get("primary_provider"):
            raise ValueError("Fallback provider must differ from the primary provider")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    def _provider_config(self, name: str) -> Optional[ProviderConfig]:
        api_key = getattr(self, f"{name}_api_key", None)
        if not api_key:
            return None

        return ProviderConfig(
            name=name,
            api_key=api_key,
            base_url=getattr(self, f"{name}_base_url"),
            model=getattr(self, f"{name}_model"),
            max_tokens=getattr(self, f"{name}_max_tokens"),
            temperature=getattr(self, f"{name}_temperature"),
            top_p=getattr(self, f"{name}_top_p"),
            timeout=getattr(self, f"{name}_timeout"),
            max_retries=getattr(self, f"{name}_max_retries"),
            input_token_cost=getattr(self, f"{name}_input_token_cost"),
            output_token_cost=getattr(self, f"{name}_output_token_cost"),
        )

    def provider_configs(self) -> List[ProviderConfig]:
        """Provider configs in failover order, skipping providers without an API key"""
        configs = []
        for name in (self.primary_provider, self.fallback_provider):
            config = self._provider_config(name)
            if config is not None:
                configs.append(config)
        return configs


@lru_cache()
def get_settings() -> Settings:
    """Get application settings"""
    return Settings()


# Validation functions
def validate_production_config(config: Settings) -> List[str]:
    """Validate configuration for production deployment"""
    issues = []

    if config.debug:
        issues.append("Debug mode should be disabled in production")

    if "*" in config.cors_origins:
        issues.append("CORS origins should not include wildcards in production")

    if not config.provider_configs():
        issues.append("No AI provider API key configured; every request will get fallback content")

    if config.log_level == LogLevel.DEBUG:
        issues.append("Log level should not be DEBUG in production")

    return issues
