"""
Exposure/outcome correlation analysis.

Each (exposure category, outcome) pair is reduced to one row per UTC day on
which the outcome was recorded: whether the category was consumed that day and
the day's mean severity. Pearson's r over those rows, with a banded p-value and
a composite confidence, is the pair's association. Pairs without enough data
produce no result rather than an error.
"""

from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta

import structlog

from trigger_engine.config import AnalysisConfig
from trigger_engine.domain.models import (
    CorrelationInsights,
    CorrelationResult,
    ExposureCategory,
    ExposureEvent,
    OutcomeEvent,
    SymptomTrendPoint,
)
from trigger_engine.services.statistics import (
    approximate_p_value,
    confidence_score,
    mean,
    pearson_correlation,
)

logger = structlog.get_logger(__name__)


def _utc_day(timestamp: datetime) -> date:
    return timestamp.astimezone(UTC).date()


def _outcome_ids(outcomes: Sequence[OutcomeEvent]) -> list[str]:
    """Distinct outcome ids in order of first appearance."""
    return list(dict.fromkeys(outcome.outcome_id for outcome in outcomes))


class CorrelationAnalyzer:
    """
    Pairwise correlation between exposure categories and outcomes.

    Design principles:
    - Pure: results depend only on the events passed in
    - Quiet failure per pair: insufficient samples yield None
    - Deterministic ordering: categories in canonical order, outcomes by first appearance
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()
        self.logger = logger.bind(component="correlation_analyzer")

    def _window_hours(self, window_hours: int | None) -> int:
        if window_hours is None:
            return self.config.default_window_hours
        if window_hours <= 0:
            raise ValueError(f"window_hours must be positive, got {window_hours}")
        return window_hours

    def analyze_pair(
        self,
        category: ExposureCategory,
        outcome_id: str,
        exposures: Sequence[ExposureEvent],
        outcomes: Sequence[OutcomeEvent],
        window_hours: int | None = None,
    ) -> CorrelationResult | None:
        """Correlate daily exposure to one category with the day's mean severity."""
        window_hours = self._window_hours(window_hours)
        relevant_exposures = [e for e in exposures if e.category == category]
        relevant_outcomes = [o for o in outcomes if o.outcome_id == outcome_id]

        if (
            len(relevant_exposures) < self.config.min_pair_events
            or len(relevant_outcomes) < self.config.min_pair_events
        ):
            return None

        exposed_days = {_utc_day(e.timestamp) for e in relevant_exposures}
        severities_by_day: defaultdict[date, list[int]] = defaultdict(list)
        for outcome in relevant_outcomes:
            severities_by_day[_utc_day(outcome.timestamp)].append(outcome.severity)

        exposure_values: list[float] = []
        severity_values: list[float] = []
        with_exposure: list[float] = []
        without_exposure: list[float] = []

        # only days with at least one outcome reading contribute a row
        for day in sorted(exposed_days | severities_by_day.keys()):
            day_severities = severities_by_day.get(day)
            if not day_severities:
                continue
            avg_severity = mean(day_severities)
            exposed = day in exposed_days
            exposure_values.append(1.0 if exposed else 0.0)
            severity_values.append(avg_severity)
            (with_exposure if exposed else without_exposure).append(avg_severity)

        sample_size = len(exposure_values)
        if sample_size < self.config.min_daily_points:
            return None

        score = pearson_correlation(exposure_values, severity_values)
        p_value = approximate_p_value(score, sample_size)
        confidence = confidence_score(score, sample_size, p_value)

        return CorrelationResult(
            exposure_category=category,
            outcome_id=outcome_id,
            score=score,
            confidence=confidence,
            sample_size=sample_size,
            window_hours=window_hours,
            p_value=p_value,
            mean_with_exposure=mean(with_exposure),
            mean_without_exposure=mean(without_exposure),
        )

    def analyze_all(
        self,
        exposures: Sequence[ExposureEvent],
        outcomes: Sequence[OutcomeEvent],
        window_hours: int | None = None,
        min_confidence: float | None = None,
    ) -> list[CorrelationResult]:
        """Every pair at or above min_confidence, strongest |r| x confidence first."""
        window_hours = self._window_hours(window_hours)
        if min_confidence is None:
            min_confidence = self.config.default_min_confidence

        present = {e.category for e in exposures}
        categories = [c for c in ExposureCategory if c in present]
        results: list[CorrelationResult] = []
        skipped = 0
        for category in categories:
            for outcome_id in _outcome_ids(outcomes):
                result = self.analyze_pair(category, outcome_id, exposures, outcomes, window_hours)
                if result is None:
                    skipped += 1
                    continue
                if result.confidence >= min_confidence:
                    results.append(result)

        results.sort(key=lambda r: r.rank_score, reverse=True)
        self.logger.info(
            "correlations_analyzed",
            results=len(results),
            insufficient_pairs=skipped,
            min_confidence=min_confidence,
        )
        return results

    def top_triggers(
        self,
        exposures: Sequence[ExposureEvent],
        outcomes: Sequence[OutcomeEvent],
        outcome_id: str | None = None,
        limit: int = 10,
    ) -> list[CorrelationResult]:
        """Positively associated categories (score above the trigger threshold)."""
        outcome_ids = [outcome_id] if outcome_id is not None else _outcome_ids(outcomes)
        present = {e.category for e in exposures}
        results: list[CorrelationResult] = []
        for category in ExposureCategory:
            if category not in present:
                continue
            for oid in outcome_ids:
                result = self.analyze_pair(category, oid, exposures, outcomes)
                if result is not None and result.score > self.config.trigger_min_score:
                    results.append(result)

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]

    def beneficial_exposures(
        self,
        exposures: Sequence[ExposureEvent],
        outcomes: Sequence[OutcomeEvent],
        min_benefit: float | None = None,
    ) -> list[CorrelationResult]:
        """Categories whose consumption coincides with lower severity, most negative first."""
        if min_benefit is None:
            min_benefit = self.config.beneficial_max_score

        candidates = self.analyze_all(exposures, outcomes)
        beneficial = [
            c
            for c in candidates
            if c.score <= min_benefit and c.confidence > self.config.beneficial_min_confidence
        ]
        beneficial.sort(key=lambda c: c.score)
        return beneficial


def symptom_trends(
    outcomes: Sequence[OutcomeEvent], days: int = 30, end: date | None = None
) -> list[SymptomTrendPoint]:
    """Daily mean severity per outcome over the last ``days`` days, gaps as None."""
    end = end or datetime.now(UTC).date()
    start = end - timedelta(days=days)
    outcome_ids = _outcome_ids(outcomes)

    readings: defaultdict[tuple[date, str], list[int]] = defaultdict(list)
    for outcome in outcomes:
        day = _utc_day(outcome.timestamp)
        if start <= day <= end:
            readings[(day, outcome.outcome_id)].append(outcome.severity)

    points: list[SymptomTrendPoint] = []
    day = start
    while day <= end:
        severities: dict[str, float | None] = {}
        for outcome_id in outcome_ids:
            values = readings.get((day, outcome_id))
            severities[outcome_id] = round(mean(values), 1) if values else None
        points.append(SymptomTrendPoint(day=day, severities=severities))
        day += timedelta(days=1)
    return points


def correlation_insights(
    correlations: Sequence[CorrelationResult],
    min_confidence: float = 0.4,
    limit: int = 5,
) -> CorrelationInsights:
    """Summarize correlations into triggers, helpful exposures, a risk score and advice."""
    ranked = sorted(
        (c for c in correlations if c.confidence >= min_confidence),
        key=lambda c: c.rank_score,
        reverse=True,
    )
    top_triggers = [c for c in ranked if c.score > 0][:limit]
    beneficial = sorted(
        (c for c in correlations if c.score < -0.2 and c.confidence > min_confidence),
        key=lambda c: c.score,
    )[:limit]

    risk_score = min(100.0, sum(c.score * c.confidence * 20 for c in ranked if c.score > 0.5))

    recommendations: list[str] = []
    if top_triggers:
        trigger = top_triggers[0]
        recommendations.append(
            f"Consider avoiding {trigger.exposure_category.display_name.lower()} as it shows "
            f"a strong correlation with {trigger.outcome_id}"
        )
    if beneficial:
        helper = beneficial[0]
        recommendations.append(
            f"Try including more {helper.exposure_category.display_name.lower()} which may help "
            f"reduce {helper.outcome_id}"
        )
    if risk_score > 60:
        recommendations.append(
            "Consider consulting with a healthcare provider about your symptom patterns"
        )
    if len(ranked) < 3:
        recommendations.append("Continue logging consistently to identify more patterns")

    return CorrelationInsights(
        top_triggers=top_triggers,
        beneficial_exposures=beneficial,
        risk_score=risk_score,
        recommendations=recommendations,
    )
