"""
Hour-bucketed exposure index.

Every exposure is accumulated into the UTC hour it happened in. Buckets are
created lazily and an absent bucket means zero exposure, so lookups are plain
dictionary reads and the index is a pure function of its input events.
"""

from collections import defaultdict
from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta

import structlog

from trigger_engine.domain.models import ExposureCategory, ExposureEvent, to_utc

logger = structlog.get_logger(__name__)


def hour_key(timestamp: datetime) -> datetime:
    """Canonical bucket key: the UTC timestamp truncated to the hour."""
    return to_utc(timestamp).replace(minute=0, second=0, microsecond=0)


class ExposureIndex:
    """Maps hour keys to per-category accumulated quantities."""

    def __init__(self, buckets: dict[datetime, dict[ExposureCategory, float]]) -> None:
        self._buckets = buckets

    @classmethod
    def from_events(cls, events: Iterable[ExposureEvent]) -> "ExposureIndex":
        buckets: defaultdict[datetime, dict[ExposureCategory, float]] = defaultdict(dict)
        count = 0
        for event in events:
            bucket = buckets[hour_key(event.timestamp)]
            bucket[event.category] = bucket.get(event.category, 0.0) + event.quantity
            count += 1

        logger.debug("exposure_index_built", events=count, buckets=len(buckets))
        return cls(dict(buckets))

    def quantity(self, hour: datetime, category: ExposureCategory) -> float:
        bucket = self._buckets.get(hour)
        if bucket is None:
            return 0.0
        return bucket.get(category, 0.0)

    def quantity_before(self, hour: datetime, hours_back: int, category: ExposureCategory) -> float:
        return self.quantity(hour - timedelta(hours=hours_back), category)

    def total(self, category: ExposureCategory) -> float:
        return sum(bucket.get(category, 0.0) for bucket in self._buckets.values())

    def hours(self) -> Iterator[datetime]:
        return iter(sorted(self._buckets))

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, hour: object) -> bool:
        return hour in self._buckets
