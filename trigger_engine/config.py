"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Analysis thresholds live here, not scattered through the services
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()


class AnalysisConfig(BaseModel):
    """Sample-size floors and thresholds for correlation and classification runs."""

    # Global floor: below this many raw events the whole invocation is refused
    min_events_floor: int = Field(
        default=10, ge=1, description="Minimum exposures and outcomes per invocation"
    )

    # Correlation analysis
    min_pair_events: int = Field(
        default=3, ge=1, description="Events required on each side of a category/outcome pair"
    )
    min_daily_points: int = Field(
        default=5, ge=3, description="Daily data points required for a correlation"
    )
    default_window_hours: int = Field(default=24, gt=0)
    default_min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    trigger_min_score: float = Field(default=0.2, ge=-1.0, le=1.0)
    beneficial_max_score: float = Field(default=-0.3, ge=-1.0, le=1.0)
    beneficial_min_confidence: float = Field(default=0.4, ge=0.0, le=1.0)

    # Classification validation
    min_joined_samples: int = Field(
        default=10, ge=2, description="Joined feature/label samples required per outcome"
    )
    train_fraction: float = Field(
        default=0.7, gt=0.0, lt=1.0, description="Leading share of samples used for training"
    )
    min_train_per_class: int = Field(default=3, ge=1)
    min_test_per_class: int = Field(default=1, ge=1)
    high_severity_threshold: int = Field(
        default=7, ge=1, le=10, description="Severity at or above which the label is 1"
    )
    top_feature_count: int = Field(default=3, ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    analysis_config = AnalysisConfig(
        min_events_floor=int(os.getenv("ANALYSIS_MIN_EVENTS", "10")),
        min_joined_samples=int(os.getenv("ANALYSIS_MIN_JOINED_SAMPLES", "10")),
        train_fraction=float(os.getenv("ANALYSIS_TRAIN_FRACTION", "0.7")),
        default_window_hours=int(os.getenv("ANALYSIS_WINDOW_HOURS", "24")),
        default_min_confidence=float(os.getenv("ANALYSIS_MIN_CONFIDENCE", "0.3")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        analysis=analysis_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def reset_config_cache() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    get_config.cache_clear()
