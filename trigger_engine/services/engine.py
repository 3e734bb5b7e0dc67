"""
Trigger analysis engine: the in-process call contract.

Pipeline: exposure index -> lag features -> {correlation, classification} ->
result cache. The engine performs no I/O; the storage layer hands it ordered
event lists and decides what to do with the returned records.

Key patterns demonstrated:
- Fail fast on a global data floor, degrade gracefully per outcome
- Structured concurrency with asyncio.TaskGroup for independent outcomes
- Atomic cache replacement at the end of a run
"""

import asyncio
import time
from collections.abc import Sequence
from datetime import date

import structlog

from trigger_engine.config import AnalysisConfig
from trigger_engine.domain.errors import InsufficientDataError
from trigger_engine.domain.models import (
    AlignedRecord,
    ClassificationResult,
    CorrelationInsights,
    CorrelationResult,
    ExposureEvent,
    OutcomeEvent,
    SymptomTrendPoint,
)
from trigger_engine.services.aggregator import align
from trigger_engine.services.classification import ClassificationValidator
from trigger_engine.services.correlation import (
    CorrelationAnalyzer,
    correlation_insights,
    symptom_trends,
)
from trigger_engine.services.result_cache import ClassificationCache

logger = structlog.get_logger(__name__)


def _in_time_order(events: Sequence) -> list:
    # stable: events sharing a timestamp keep the caller's order
    return sorted(events, key=lambda e: e.timestamp)


class TriggerAnalysisEngine:
    """
    Orchestrates correlation and classification runs over one user's events.

    Design principles:
    - Only the global data floor can abort an invocation
    - Per-pair and per-outcome insufficiencies produce no result, never an error
    - Deterministic: identical input yields identical output
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        cache: ClassificationCache | None = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self.cache = cache or ClassificationCache()
        self.analyzer = CorrelationAnalyzer(self.config)
        self.validator = ClassificationValidator(self.config)
        self.logger = logger.bind(component="trigger_analysis_engine")

    def ensure_sufficient_data(
        self, exposures: Sequence[ExposureEvent], outcomes: Sequence[OutcomeEvent]
    ) -> None:
        floor = self.config.min_events_floor
        if len(exposures) < floor or len(outcomes) < floor:
            self.logger.warning(
                "insufficient_data",
                exposures=len(exposures),
                outcomes=len(outcomes),
                floor=floor,
            )
            raise InsufficientDataError(len(exposures), len(outcomes), floor)

    def align(
        self, exposures: Sequence[ExposureEvent], outcomes: Sequence[OutcomeEvent]
    ) -> list[AlignedRecord]:
        """Lag feature records for every distinct outcome timestamp, in time order."""
        return align(_in_time_order(exposures), _in_time_order(outcomes))

    def align_and_correlate(
        self,
        exposures: Sequence[ExposureEvent],
        outcomes: Sequence[OutcomeEvent],
        window_hours: int | None = None,
        min_confidence: float | None = None,
    ) -> list[CorrelationResult]:
        """Ranked category/outcome correlations at or above min_confidence."""
        self.ensure_sufficient_data(exposures, outcomes)
        start_time = time.perf_counter()

        results = self.analyzer.analyze_all(
            _in_time_order(exposures),
            _in_time_order(outcomes),
            window_hours=window_hours,
            min_confidence=min_confidence,
        )

        self.logger.info(
            "correlation_completed",
            results=len(results),
            exposures=len(exposures),
            outcomes=len(outcomes),
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )
        return results

    def validate_classification(
        self, exposures: Sequence[ExposureEvent], outcomes: Sequence[OutcomeEvent]
    ) -> list[ClassificationResult]:
        """Validate every outcome and replace the cached run with the results."""
        self.ensure_sufficient_data(exposures, outcomes)
        start_time = time.perf_counter()

        ordered_outcomes = _in_time_order(outcomes)
        records = self.align(exposures, ordered_outcomes)
        results = self.validator.validate(records, ordered_outcomes)

        self.cache.store(results)
        self.logger.info(
            "classification_completed",
            validated_outcomes=len(results),
            aligned_records=len(records),
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )
        return results

    async def validate_classification_async(
        self, exposures: Sequence[ExposureEvent], outcomes: Sequence[OutcomeEvent]
    ) -> list[ClassificationResult]:
        """
        Same contract as validate_classification, with outcomes validated concurrently.

        Each outcome runs in a worker thread; results are gathered back in outcome
        order so the output matches the synchronous run exactly.
        """
        self.ensure_sufficient_data(exposures, outcomes)
        start_time = time.perf_counter()

        ordered_outcomes = _in_time_order(outcomes)
        records = await asyncio.to_thread(self.align, exposures, ordered_outcomes)
        outcome_ids = list(dict.fromkeys(o.outcome_id for o in ordered_outcomes))

        async with asyncio.TaskGroup() as task_group:
            tasks = [
                task_group.create_task(
                    asyncio.to_thread(
                        self.validator.try_validate_outcome, outcome_id, records, ordered_outcomes
                    )
                )
                for outcome_id in outcome_ids
            ]

        results = [r for r in (task.result() for task in tasks) if r is not None]

        self.cache.store(results)
        self.logger.info(
            "classification_completed",
            validated_outcomes=len(results),
            aligned_records=len(records),
            concurrent=True,
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )
        return results

    def get_cached_classification(self) -> list[ClassificationResult] | None:
        return self.cache.get()

    def top_triggers(
        self,
        exposures: Sequence[ExposureEvent],
        outcomes: Sequence[OutcomeEvent],
        outcome_id: str | None = None,
        limit: int = 10,
    ) -> list[CorrelationResult]:
        return self.analyzer.top_triggers(
            _in_time_order(exposures), _in_time_order(outcomes), outcome_id, limit
        )

    def beneficial_exposures(
        self,
        exposures: Sequence[ExposureEvent],
        outcomes: Sequence[OutcomeEvent],
        min_benefit: float | None = None,
    ) -> list[CorrelationResult]:
        return self.analyzer.beneficial_exposures(
            _in_time_order(exposures), _in_time_order(outcomes), min_benefit
        )

    def symptom_trends(
        self, outcomes: Sequence[OutcomeEvent], days: int = 30, end: date | None = None
    ) -> list[SymptomTrendPoint]:
        return symptom_trends(_in_time_order(outcomes), days=days, end=end)

    def correlation_insights(
        self, correlations: Sequence[CorrelationResult]
    ) -> CorrelationInsights:
        return correlation_insights(correlations, min_confidence=self.config.beneficial_min_confidence)
