"""
Classification validation harness.

A deterministic, correlation-weighted linear scorer evaluated on a held-out,
time-ordered test split. This is a validation harness, not a trained model:
each feature's weight is its Pearson correlation with the training label and
nothing is fitted by gradient descent. Samples are never shuffled, so no
future observation can inform a past prediction.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

import structlog

from trigger_engine.config import AnalysisConfig
from trigger_engine.domain.errors import (
    DegenerateFeatureError,
    InsufficientClassBalanceError,
    InsufficientSamplesError,
    OutcomeSkippedError,
)
from trigger_engine.domain.models import (
    AlignedRecord,
    ClassificationResult,
    FeatureImportance,
    LagFeatures,
    OutcomeEvent,
    pretty_feature_name,
)
from trigger_engine.services.statistics import pearson_correlation

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ConfusionMetrics:
    accuracy: float
    precision: float
    recall: float
    f1: float


def confusion_metrics(y_true: Sequence[int], y_pred: Sequence[int]) -> ConfusionMetrics:
    """Accuracy, precision, recall and F1; empty denominators give 0.0."""
    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have the same length")

    tp = fp = tn = fn = 0
    for truth, pred in zip(y_true, y_pred, strict=True):
        if truth == 1 and pred == 1:
            tp += 1
        elif truth == 0 and pred == 1:
            fp += 1
        elif truth == 0 and pred == 0:
            tn += 1
        else:
            fn += 1

    total = tp + fp + tn + fn
    accuracy = (tp + tn) / total if total else 0.0
    precision = tp / (tp + fp) if tp + fp else 0.0
    recall = tp / (tp + fn) if tp + fn else 0.0
    f1 = 2 * precision * recall / (precision + recall) if precision + recall else 0.0
    return ConfusionMetrics(accuracy=accuracy, precision=precision, recall=recall, f1=f1)


def pr_auc(y_true: Sequence[int], scores: Sequence[float]) -> float:
    """
    Area under the precision-recall curve.

    Every distinct score is a threshold, highest first; the curve starts at
    (recall 0, precision 1) and is integrated with the trapezoid rule.
    """
    if len(y_true) != len(scores):
        return 0.0

    thresholds = sorted(set(scores), reverse=True)
    if len(thresholds) < 2:
        return 0.0

    auc = 0.0
    prev_recall, prev_precision = 0.0, 1.0
    for threshold in thresholds:
        predictions = [1 if s >= threshold else 0 for s in scores]
        m = confusion_metrics(y_true, predictions)
        auc += (m.recall - prev_recall) * (m.precision + prev_precision) / 2
        prev_recall, prev_precision = m.recall, m.precision

    return max(0.0, min(1.0, auc))


def median_threshold(scores: Sequence[float]) -> float:
    """Upper median: the element at index n // 2 of the sorted scores."""
    ordered = sorted(scores)
    return ordered[len(ordered) // 2]


def join_labels(
    records: Sequence[AlignedRecord],
    outcomes: Sequence[OutcomeEvent],
    outcome_id: str,
    threshold: int = 7,
) -> list[AlignedRecord]:
    """Attach one outcome's binary labels to records by exact timestamp, keeping time order."""
    labels: dict[datetime, int] = {}
    for outcome in outcomes:
        if outcome.outcome_id == outcome_id:
            # a later reading at the same instant wins
            labels[outcome.timestamp] = outcome.label(threshold)

    joined = [
        record.model_copy(update={"label": labels[record.outcome_timestamp]})
        for record in records
        if record.outcome_timestamp in labels
    ]
    joined.sort(key=lambda r: r.outcome_timestamp)
    return joined


class ClassificationValidator:
    """
    Per-outcome validation of the correlation-weighted scorer.

    Design principles:
    - Time-ordered split, never shuffled
    - Class-balance gate before any metric is trusted
    - Per-outcome failures are raised as OutcomeSkippedError and never abort a run
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()
        self.feature_names = LagFeatures.feature_names()
        self.logger = logger.bind(component="classification_validator")

    def validate_outcome(
        self, outcome_id: str, records: Sequence[AlignedRecord], outcomes: Sequence[OutcomeEvent]
    ) -> ClassificationResult:
        """Validate one outcome. Raises an OutcomeSkippedError subclass when it cannot."""
        samples = join_labels(records, outcomes, outcome_id, self.config.high_severity_threshold)
        if len(samples) < self.config.min_joined_samples:
            raise InsufficientSamplesError(
                outcome_id, f"{len(samples)} < {self.config.min_joined_samples}"
            )

        split_index = int(len(samples) * self.config.train_fraction)
        train, test = samples[:split_index], samples[split_index:]

        train_y = [r.label for r in train]
        test_y = [r.label for r in test]
        train_pos, test_pos = sum(train_y), sum(test_y)
        train_neg, test_neg = len(train_y) - train_pos, len(test_y) - test_pos
        if (
            train_pos < self.config.min_train_per_class
            or train_neg < self.config.min_train_per_class
            or test_pos < self.config.min_test_per_class
            or test_neg < self.config.min_test_per_class
        ):
            raise InsufficientClassBalanceError(
                outcome_id,
                f"train +{train_pos}/-{train_neg}, test +{test_pos}/-{test_neg}",
            )

        train_x = [r.features.as_vector() for r in train]
        test_x = [r.features.as_vector() for r in test]

        # columns constant across training carry no signal and have no defined correlation
        kept = [
            i
            for i in range(len(self.feature_names))
            if any(row[i] != train_x[0][i] for row in train_x)
        ]
        if not kept:
            raise DegenerateFeatureError(outcome_id)

        importances: list[FeatureImportance] = []
        weights: list[float] = []
        for i in kept:
            name = self.feature_names[i]
            coef = pearson_correlation([row[i] for row in train_x], train_y)
            weights.append(coef)
            importances.append(
                FeatureImportance(
                    feature=name,
                    pretty_name=pretty_feature_name(name),
                    correlation_importance=abs(coef),
                    correlation_coef=coef,
                )
            )
            self.logger.debug("feature_correlation", outcome_id=outcome_id, feature=name, r=coef)

        test_scores = [
            sum(row[i] * w for i, w in zip(kept, weights, strict=True)) for row in test_x
        ]
        threshold = median_threshold(test_scores)
        predictions = [1 if s >= threshold else 0 for s in test_scores]

        metrics = confusion_metrics(test_y, predictions)
        baseline = max(test_pos, test_neg) / len(test_y)

        # stable sort: ties keep canonical feature order
        ranked = sorted(importances, key=lambda f: f.correlation_importance, reverse=True)

        return ClassificationResult(
            outcome_id=outcome_id,
            test_accuracy=metrics.accuracy,
            baseline_accuracy=baseline,
            test_precision=metrics.precision,
            test_recall=metrics.recall,
            test_f1=metrics.f1,
            pr_auc=pr_auc(test_y, test_scores),
            train_size=len(train),
            test_size=len(test),
            top_features=ranked[: self.config.top_feature_count],
        )

    def try_validate_outcome(
        self, outcome_id: str, records: Sequence[AlignedRecord], outcomes: Sequence[OutcomeEvent]
    ) -> ClassificationResult | None:
        """validate_outcome, with skips logged and turned into None."""
        try:
            result = self.validate_outcome(outcome_id, records, outcomes)
        except OutcomeSkippedError as e:
            self.logger.info(
                "outcome_skipped",
                outcome_id=outcome_id,
                reason=type(e).__name__,
                detail=e.detail,
            )
            return None

        self.logger.info(
            "outcome_validated",
            outcome_id=outcome_id,
            test_accuracy=round(result.test_accuracy, 3),
            baseline_accuracy=round(result.baseline_accuracy, 3),
            pr_auc=round(result.pr_auc, 3),
        )
        return result

    def validate(
        self, records: Sequence[AlignedRecord], outcomes: Sequence[OutcomeEvent]
    ) -> list[ClassificationResult]:
        """Validate every outcome id, in order of first appearance."""
        outcome_ids = list(dict.fromkeys(o.outcome_id for o in outcomes))
        results = []
        for outcome_id in outcome_ids:
            result = self.try_validate_outcome(outcome_id, records, outcomes)
            if result is not None:
                results.append(result)
        return results
