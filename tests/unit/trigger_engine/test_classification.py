"""
Tests for the classification validation harness.

Covers:
- Confusion metrics, PR-AUC and the upper-median threshold
- Exact-timestamp label join
- Sample-count, class-balance and degenerate-feature gates
- The alternating dairy diary end to end
"""

from datetime import UTC, datetime

import pytest

from trigger_engine.config import AnalysisConfig
from trigger_engine.domain.errors import (
    DegenerateFeatureError,
    InsufficientClassBalanceError,
    InsufficientSamplesError,
    OutcomeSkippedError,
)
from trigger_engine.domain.models import AlignedRecord, OutcomeEvent
from trigger_engine.services.aggregator import align
from trigger_engine.services.classification import (
    ClassificationValidator,
    confusion_metrics,
    join_labels,
    median_threshold,
    pr_auc,
)


@pytest.fixture
def validator() -> ClassificationValidator:
    return ClassificationValidator(AnalysisConfig())


class TestMetrics:
    def test_confusion_metrics(self) -> None:
        m = confusion_metrics([1, 1, 0, 0, 1], [1, 0, 1, 0, 1])

        assert m.accuracy == pytest.approx(3 / 5)
        assert m.precision == pytest.approx(2 / 3)
        assert m.recall == pytest.approx(2 / 3)
        assert m.f1 == pytest.approx(2 / 3)

    def test_empty_denominators_are_zero(self) -> None:
        m = confusion_metrics([0, 0], [0, 0])

        assert m.accuracy == 1.0
        assert m.precision == 0.0
        assert m.recall == 0.0
        assert m.f1 == 0.0

    def test_length_mismatch_rejected(self) -> None:
        with pytest.raises(ValueError):
            confusion_metrics([1, 0], [1])

    def test_pr_auc_perfectly_separable(self) -> None:
        assert pr_auc([0, 0, 1, 1], [0.1, 0.2, 0.8, 0.9]) == pytest.approx(1.0)

    def test_pr_auc_overlapping(self) -> None:
        auc = pr_auc([0, 1, 0, 1], [0.1, 0.4, 0.6, 0.8])

        assert auc < 1.0
        assert auc == pytest.approx(0.5 + 0.5 * (0.5 + 2 / 3) / 2)

    def test_pr_auc_single_threshold_is_zero(self) -> None:
        assert pr_auc([0, 1, 1], [0.5, 0.5, 0.5]) == 0.0

    def test_upper_median(self) -> None:
        assert median_threshold([3.0, 1.0, 2.0, 4.0]) == 3.0
        assert median_threshold([5.0, -1.0, 2.0]) == 2.0


class TestJoinLabels:
    def test_joins_one_outcome_by_exact_timestamp(self) -> None:
        t1 = datetime(2024, 3, 1, 10, tzinfo=UTC)
        t2 = datetime(2024, 3, 2, 10, tzinfo=UTC)
        records = [AlignedRecord(outcome_timestamp=t2), AlignedRecord(outcome_timestamp=t1)]
        outcomes = [
            OutcomeEvent(timestamp=t1, outcome_id="bloating", severity=7),
            OutcomeEvent(timestamp=t2, outcome_id="headache", severity=9),
        ]

        joined = join_labels(records, outcomes, "bloating")

        assert [(r.outcome_timestamp, r.label) for r in joined] == [(t1, 1)]

    def test_threshold_controls_label(self) -> None:
        t1 = datetime(2024, 3, 1, 10, tzinfo=UTC)
        outcomes = [OutcomeEvent(timestamp=t1, outcome_id="bloating", severity=5)]

        (strict,) = join_labels([AlignedRecord(outcome_timestamp=t1)], outcomes, "bloating")
        (lenient,) = join_labels([AlignedRecord(outcome_timestamp=t1)], outcomes, "bloating", 5)

        assert strict.label == 0
        assert lenient.label == 1


class TestValidateOutcome:
    def test_alternating_dairy_diary(
        self, validator: ClassificationValidator, dairy_ten_days
    ) -> None:
        exposures, outcomes = dairy_ten_days
        records = align(exposures, outcomes)

        result = validator.validate_outcome("bloating", records, outcomes)

        assert result.outcome_id == "bloating"
        assert result.train_size == 7
        assert result.test_size == 3
        top = result.top_features[0]
        assert top.feature == "dairy_0_6h"
        assert top.correlation_coef > 0.7
        assert top.pretty_name == "Dairy (0–6h prior)"
        # yesterday's dairy predicts today's low reading
        assert [f.feature for f in result.top_features] == ["dairy_0_6h", "dairy_24_48h"]
        assert result.top_features[1].correlation_coef == pytest.approx(-1.0)
        assert result.baseline_accuracy == pytest.approx(2 / 3)
        assert result.test_recall == 1.0
        assert result.pr_auc == pytest.approx(1.0)

    def test_fewer_than_ten_samples_skipped(
        self, validator: ClassificationValidator, diary_factory
    ) -> None:
        exposures, outcomes = diary_factory([d % 2 == 0 for d in range(9)])
        records = align(exposures, outcomes)

        with pytest.raises(InsufficientSamplesError):
            validator.validate_outcome("bloating", records, outcomes)
        assert validator.validate(records, outcomes) == []

    def test_two_training_positives_skipped(
        self, validator: ClassificationValidator, diary_factory
    ) -> None:
        pattern = [True, True, False, False, False, False, False, True, False, True]
        exposures, outcomes = diary_factory(pattern)
        records = align(exposures, outcomes)

        with pytest.raises(InsufficientClassBalanceError, match=r"train \+2/-5"):
            validator.validate_outcome("bloating", records, outcomes)
        assert validator.try_validate_outcome("bloating", records, outcomes) is None

    def test_test_split_without_positive_skipped(
        self, validator: ClassificationValidator, diary_factory
    ) -> None:
        pattern = [True, False, True, False, True, False, True, False, False, False]
        exposures, outcomes = diary_factory(pattern)
        records = align(exposures, outcomes)

        with pytest.raises(InsufficientClassBalanceError):
            validator.validate_outcome("bloating", records, outcomes)

    def test_all_zero_features_are_degenerate(
        self, validator: ClassificationValidator, dairy_ten_days
    ) -> None:
        _, outcomes = dairy_ten_days
        records = align([], outcomes)

        with pytest.raises(DegenerateFeatureError) as exc_info:
            validator.validate_outcome("bloating", records, outcomes)
        assert isinstance(exc_info.value, OutcomeSkippedError)
        assert exc_info.value.outcome_id == "bloating"

    def test_validation_is_deterministic(
        self, validator: ClassificationValidator, dairy_ten_days
    ) -> None:
        exposures, outcomes = dairy_ten_days
        records = align(exposures, outcomes)

        first = validator.validate_outcome("bloating", records, outcomes)
        second = validator.validate_outcome("bloating", records, outcomes)

        assert first.model_dump() == second.model_dump()


class TestValidate:
    def test_skipped_outcome_does_not_abort_run(
        self, validator: ClassificationValidator, dairy_ten_days
    ) -> None:
        exposures, outcomes = dairy_ten_days
        headaches = [
            OutcomeEvent(
                timestamp=datetime(2024, 3, day, 18, tzinfo=UTC), outcome_id="headache", severity=8
            )
            for day in (1, 2, 3)
        ]
        all_outcomes = [*headaches, *outcomes]
        records = align(exposures, all_outcomes)

        results = validator.validate(records, all_outcomes)

        assert [r.outcome_id for r in results] == ["bloating"]

    def test_top_feature_count_configurable(self, dairy_ten_days) -> None:
        exposures, outcomes = dairy_ten_days
        validator = ClassificationValidator(AnalysisConfig(top_feature_count=1))

        (result,) = validator.validate(align(exposures, outcomes), outcomes)

        assert [f.feature for f in result.top_features] == ["dairy_0_6h"]
