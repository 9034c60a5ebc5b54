"""
Settings tests
"""

import pytest
from pydantic import ValidationError

from config import LogLevel, Settings, validate_production_config


def test_debug_not_allowed_in_production():
    with pytest.raises(ValidationError):
        Settings(environment="production", debug=True)


def test_fallback_must_differ_from_primary():
    with pytest.raises(ValidationError):
        Settings(environment="testing", primary_provider="gemini", fallback_provider="gemini")


def test_cors_origins_from_comma_separated_env(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")

    assert Settings(environment="testing").cors_origins == ["https://a.example", "https://b.example"]


def test_provider_configs_skip_missing_keys():
    settings = Settings(environment="testing", gemini_api_key="g-key")

    configs = settings.provider_configs()

    assert [c.name for c in configs] == ["gemini"]
    assert configs[0].model == "gemini-1.5-flash"
    assert configs[0].api_key == "g-key"


def test_provider_configs_follow_failover_order():
    settings = Settings(
        environment="testing",
        primary_provider="gemini",
        fallback_provider="deepseek",
        deepseek_api_key="d-key",
        gemini_api_key="g-key",
        deepseek_max_retries=5,
    )

    configs = settings.provider_configs()

    assert [c.name for c in configs] == ["gemini", "deepseek"]
    assert configs[1].max_retries == 5
    assert configs[1].base_url == "https://api.deepseek.com/v1"


def test_api_key_hidden_from_repr():
    config = Settings(environment="testing", deepseek_api_key="secret-key").provider_configs()[0]

    assert "secret-key" not in repr(config)


def test_validate_production_config():
    settings = Settings(
        environment="production",
        cors_origins=["*"],
        log_level=LogLevel.DEBUG,
    )

    issues = validate_production_config(settings)

    assert any("CORS" in issue for issue in issues)
    assert any("DEBUG" in issue for issue in issues)
    assert any("API key" in issue for issue in issues)


def test_validate_production_config_clean():
    settings = Settings(environment="production", deepseek_api_key="d-key")

    assert validate_production_config(settings) == []
