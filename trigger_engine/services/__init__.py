"""
Core services for trigger analysis.

This package contains the pipeline stages (normalization, hour bucketing, lag
aggregation, correlation, classification validation) and the engine facade
that ties them together.
"""

from .aggregator import LagWindowAggregator, align
from .aligner import ExposureIndex, hour_key
from .classification import ClassificationValidator
from .correlation import CorrelationAnalyzer, correlation_insights, symptom_trends
from .engine import TriggerAnalysisEngine
from .normalizer import EventNormalizer
from .result import Result
from .result_cache import ClassificationCache

__all__ = [
    "ClassificationCache",
    "ClassificationValidator",
    "CorrelationAnalyzer",
    "EventNormalizer",
    "ExposureIndex",
    "LagWindowAggregator",
    "Result",
    "TriggerAnalysisEngine",
    "align",
    "correlation_insights",
    "hour_key",
    "symptom_trends",
]
