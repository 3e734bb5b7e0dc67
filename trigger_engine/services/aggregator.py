"""
Lag window aggregation.

For each outcome timestamp the aggregator sums every category's exposure over
the four lag windows before it. Work is bounded by outcomes x categories x 48
hourly lookups regardless of how many exposures were logged.
"""

from collections.abc import Iterable
from datetime import datetime

import structlog

from trigger_engine.domain.models import (
    AlignedRecord,
    ExposureCategory,
    ExposureEvent,
    LagFeatures,
    LagWindow,
    OutcomeEvent,
    feature_key,
)
from trigger_engine.services.aligner import ExposureIndex, hour_key

logger = structlog.get_logger(__name__)


class LagWindowAggregator:
    """Builds fixed-shape lag feature records from an exposure index."""

    def __init__(self, index: ExposureIndex) -> None:
        self.index = index

    def features_at(self, timestamp: datetime) -> LagFeatures:
        anchor = hour_key(timestamp)
        sums: dict[str, float] = {}
        for category in ExposureCategory:
            for window in LagWindow:
                total = 0.0
                for hours_back in window.hours:
                    total += self.index.quantity_before(anchor, hours_back, category)
                sums[feature_key(category, window)] = total
        return LagFeatures(**sums)

    def aggregate(self, outcomes: Iterable[OutcomeEvent]) -> list[AlignedRecord]:
        """One unlabeled record per distinct outcome timestamp, ascending."""
        timestamps = sorted({outcome.timestamp for outcome in outcomes})
        records = [
            AlignedRecord(outcome_timestamp=ts, features=self.features_at(ts)) for ts in timestamps
        ]
        logger.debug("lag_features_aggregated", records=len(records))
        return records


def align(exposures: Iterable[ExposureEvent], outcomes: Iterable[OutcomeEvent]) -> list[AlignedRecord]:
    """Index exposures and aggregate lag features for every outcome timestamp."""
    return LagWindowAggregator(ExposureIndex.from_events(exposures)).aggregate(outcomes)
