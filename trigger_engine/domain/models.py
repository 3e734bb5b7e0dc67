"""
Domain models for exposure/outcome correlation analysis.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation and are frozen so a result handed to a caller
can never be modified behind the cache's back.
"""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC. Naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class ExposureCategory(str, Enum):
    """Trigger categories an intake can be tagged with. Declaration order is canonical."""

    GLUTEN = "gluten"
    DAIRY = "dairy"
    CAFFEINE = "caffeine"
    FRIED = "fried"
    ACIDIC_NIGHTSHADE = "acidic_nightshade"
    HISTAMINE = "histamine"
    SOY = "soy"
    SUGAR = "sugar"
    MAGNESIUM_CITRATE = "magnesium_citrate"
    H1_ANTIHISTAMINE = "h1_antihistamine"
    H2_ANTIHISTAMINE = "h2_antihistamine"
    PSEUDOEPHEDRINE = "pseudoephedrine"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class LagWindow(str, Enum):
    """Half-open lag ranges (hours before the outcome), earlier bound inclusive."""

    H0_6 = "0_6h"
    H6_12 = "6_12h"
    H12_24 = "12_24h"
    H24_48 = "24_48h"

    @property
    def start_hour(self) -> int:
        return _WINDOW_BOUNDS[self][0]

    @property
    def end_hour(self) -> int:
        return _WINDOW_BOUNDS[self][1]

    @property
    def hours(self) -> range:
        return range(self.start_hour, self.end_hour)

    @property
    def label(self) -> str:
        return f"{self.start_hour}–{self.end_hour}h"


_WINDOW_BOUNDS: dict[LagWindow, tuple[int, int]] = {
    LagWindow.H0_6: (0, 6),
    LagWindow.H6_12: (6, 12),
    LagWindow.H12_24: (12, 24),
    LagWindow.H24_48: (24, 48),
}

MAX_LAG_HOURS = 48


def feature_key(category: ExposureCategory, window: LagWindow) -> str:
    return f"{category.value}_{window.value}"


def pretty_feature_name(feature: str) -> str:
    """Render ``histamine_12_24h`` as ``Histamine (12–24h prior)``."""
    for category in ExposureCategory:
        for window in LagWindow:
            if feature == feature_key(category, window):
                return f"{category.display_name} ({window.label} prior)"
    return feature


class ExposureEvent(BaseModel):
    """A timed food or medication intake tagged with one trigger category."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    category: ExposureCategory
    quantity: float = Field(default=1.0, ge=0.0, allow_inf_nan=False)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return to_utc(v)


class OutcomeEvent(BaseModel):
    """A timed symptom severity reading."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    outcome_id: str = Field(min_length=1, description="Symptom identifier")
    severity: int = Field(ge=1, le=10)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return to_utc(v)

    @field_validator("outcome_id", mode="before")
    @classmethod
    def coerce_outcome_id(cls, v: object) -> object:
        # storage hands out integer primary keys
        return str(v) if isinstance(v, int) else v

    def label(self, threshold: int = 7) -> int:
        """Binary high-severity label."""
        return 1 if self.severity >= threshold else 0


class LagFeatures(BaseModel):
    """Summed exposure per category and lag window. Every field defaults to zero."""

    model_config = ConfigDict(frozen=True)

    gluten_0_6h: float = 0.0
    gluten_6_12h: float = 0.0
    gluten_12_24h: float = 0.0
    gluten_24_48h: float = 0.0
    dairy_0_6h: float = 0.0
    dairy_6_12h: float = 0.0
    dairy_12_24h: float = 0.0
    dairy_24_48h: float = 0.0
    caffeine_0_6h: float = 0.0
    caffeine_6_12h: float = 0.0
    caffeine_12_24h: float = 0.0
    caffeine_24_48h: float = 0.0
    fried_0_6h: float = 0.0
    fried_6_12h: float = 0.0
    fried_12_24h: float = 0.0
    fried_24_48h: float = 0.0
    acidic_nightshade_0_6h: float = 0.0
    acidic_nightshade_6_12h: float = 0.0
    acidic_nightshade_12_24h: float = 0.0
    acidic_nightshade_24_48h: float = 0.0
    histamine_0_6h: float = 0.0
    histamine_6_12h: float = 0.0
    histamine_12_24h: float = 0.0
    histamine_24_48h: float = 0.0
    soy_0_6h: float = 0.0
    soy_6_12h: float = 0.0
    soy_12_24h: float = 0.0
    soy_24_48h: float = 0.0
    sugar_0_6h: float = 0.0
    sugar_6_12h: float = 0.0
    sugar_12_24h: float = 0.0
    sugar_24_48h: float = 0.0
    magnesium_citrate_0_6h: float = 0.0
    magnesium_citrate_6_12h: float = 0.0
    magnesium_citrate_12_24h: float = 0.0
    magnesium_citrate_24_48h: float = 0.0
    h1_antihistamine_0_6h: float = 0.0
    h1_antihistamine_6_12h: float = 0.0
    h1_antihistamine_12_24h: float = 0.0
    h1_antihistamine_24_48h: float = 0.0
    h2_antihistamine_0_6h: float = 0.0
    h2_antihistamine_6_12h: float = 0.0
    h2_antihistamine_12_24h: float = 0.0
    h2_antihistamine_24_48h: float = 0.0
    pseudoephedrine_0_6h: float = 0.0
    pseudoephedrine_6_12h: float = 0.0
    pseudoephedrine_12_24h: float = 0.0
    pseudoephedrine_24_48h: float = 0.0

    @classmethod
    def feature_names(cls) -> list[str]:
        return list(cls.model_fields)

    def value(self, category: ExposureCategory, window: LagWindow) -> float:
        return float(getattr(self, feature_key(category, window)))

    def as_vector(self) -> list[float]:
        return [float(getattr(self, name)) for name in self.feature_names()]


class AlignedRecord(BaseModel):
    """Lagged exposure features for one outcome timestamp."""

    model_config = ConfigDict(frozen=True)

    outcome_timestamp: datetime
    features: LagFeatures = Field(default_factory=LagFeatures)
    label: int | None = Field(default=None, ge=0, le=1)


class CorrelationResult(BaseModel):
    """Association between one exposure category and one outcome."""

    model_config = ConfigDict(frozen=True)

    exposure_category: ExposureCategory
    outcome_id: str
    score: float = Field(ge=-1.0, le=1.0, description="Pearson correlation coefficient")
    confidence: float = Field(ge=0.0, le=1.0)
    sample_size: int = Field(ge=0, description="Number of daily data points")
    window_hours: int = Field(gt=0)
    p_value: float = Field(ge=0.0, le=1.0)
    mean_with_exposure: float
    mean_without_exposure: float

    @property
    def rank_score(self) -> float:
        return abs(self.score) * self.confidence


class FeatureImportance(BaseModel):
    """One lagged feature and its correlation with the training label."""

    model_config = ConfigDict(frozen=True)

    feature: str
    pretty_name: str
    correlation_importance: float = Field(ge=0.0, le=1.0)
    correlation_coef: float = Field(ge=-1.0, le=1.0)


class ClassificationResult(BaseModel):
    """Held-out validation metrics for one outcome."""

    model_config = ConfigDict(frozen=True)

    outcome_id: str
    test_accuracy: float = Field(ge=0.0, le=1.0)
    baseline_accuracy: float = Field(ge=0.0, le=1.0)
    test_precision: float = Field(ge=0.0, le=1.0)
    test_recall: float = Field(ge=0.0, le=1.0)
    test_f1: float = Field(ge=0.0, le=1.0)
    pr_auc: float = Field(ge=0.0, le=1.0)
    train_size: int = Field(gt=0)
    test_size: int = Field(gt=0)
    top_features: list[FeatureImportance] = Field(default_factory=list)


class SymptomTrendPoint(BaseModel):
    """Mean daily severity per outcome; None marks a day without readings."""

    model_config = ConfigDict(frozen=True)

    day: date
    severities: dict[str, float | None]


class CorrelationInsights(BaseModel):
    """Summary of a correlation run in plain terms."""

    model_config = ConfigDict(frozen=True)

    top_triggers: list[CorrelationResult]
    beneficial_exposures: list[CorrelationResult]
    risk_score: float = Field(ge=0.0, le=100.0)
    recommendations: list[str]
