"""
Tests for configuration management in `trigger_engine/config.py`.

Covers:
- Environment parsing and debug defaults
- Logging level coercion to the expected Literal
- Analysis threshold overrides
- get_config cache behavior
- AppConfig validation (debug only allowed in development)
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from trigger_engine.config import (
    AnalysisConfig,
    AppConfig,
    LoggingConfig,
    get_config,
    load_config_from_env,
    reset_config_cache,
)
from trigger_engine.logging_config import configure_logging

ANALYSIS_ENV_VARS = (
    "ANALYSIS_MIN_EVENTS",
    "ANALYSIS_MIN_JOINED_SAMPLES",
    "ANALYSIS_TRAIN_FRACTION",
    "ANALYSIS_WINDOW_HOURS",
    "ANALYSIS_MIN_CONFIDENCE",
)


@pytest.fixture(autouse=True)
def clear_config_cache(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Ensure get_config cache is cleared and analysis overrides unset around each test."""
    for name in ANALYSIS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config_cache()
    yield
    reset_config_cache()


def test_load_config_dev_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    config = load_config_from_env()

    assert config.environment == "development"
    assert config.debug is True
    assert config.logging.format == "console"
    assert config.logging.level == "INFO"
    assert config.analysis == AnalysisConfig()


def test_production_uses_json_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "prod")

    config = load_config_from_env()

    assert config.environment == "production"
    assert config.debug is False
    assert config.logging.format == "json"


def test_staging_alias(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "stage")

    assert load_config_from_env().environment == "staging"


def test_logging_level_literal_coercion(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")

    # Unknown level should coerce to INFO
    monkeypatch.setenv("LOG_LEVEL", "unknown")
    config = load_config_from_env()
    assert config.logging.level == "INFO"

    # Known level should pass through
    monkeypatch.setenv("LOG_LEVEL", "debug")
    config = load_config_from_env()
    assert config.logging.level == "DEBUG"


def test_analysis_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANALYSIS_MIN_EVENTS", "25")
    monkeypatch.setenv("ANALYSIS_MIN_JOINED_SAMPLES", "14")
    monkeypatch.setenv("ANALYSIS_TRAIN_FRACTION", "0.8")
    monkeypatch.setenv("ANALYSIS_WINDOW_HOURS", "48")
    monkeypatch.setenv("ANALYSIS_MIN_CONFIDENCE", "0.5")

    analysis = load_config_from_env().analysis

    assert analysis.min_events_floor == 25
    assert analysis.min_joined_samples == 14
    assert analysis.train_fraction == 0.8
    assert analysis.default_window_hours == 48
    assert analysis.default_min_confidence == 0.5


def test_invalid_analysis_override_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANALYSIS_TRAIN_FRACTION", "1.5")

    with pytest.raises(ValidationError):
        load_config_from_env()


def test_analysis_config_validation() -> None:
    with pytest.raises(ValueError):
        AnalysisConfig(train_fraction=1.0)

    with pytest.raises(ValueError):
        AnalysisConfig(min_daily_points=2)

    with pytest.raises(ValueError):
        AnalysisConfig(high_severity_threshold=11)


def test_get_config_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")

    # First call populates cache
    c1 = get_config()
    c2 = get_config()
    assert c1 is c2  # same object due to lru_cache

    reset_config_cache()
    assert get_config() is not c1


def test_app_config_debug_only_in_dev_validation() -> None:
    with pytest.raises(ValueError, match="debug mode is only allowed"):
        AppConfig(environment="production", debug=True, logging=LoggingConfig())


def test_configure_logging_sets_level() -> None:
    configure_logging(LoggingConfig(level="WARNING", format="console"))

    assert logging.getLogger().level == logging.WARNING

    configure_logging(LoggingConfig(level="DEBUG", format="json"))

    assert logging.getLogger().level == logging.DEBUG
