"""
Tests for correlation statistics.

Property-based tests pin the algebraic identities of Pearson's r; the banded
p-value and confidence score are checked against hand-computed points.
"""

import math

import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from trigger_engine.services.statistics import (
    approximate_p_value,
    confidence_score,
    mean,
    pearson_correlation,
    t_statistic,
)

P_BANDS = [0.5, 0.1, 0.05, 0.01, 0.001]

int_lists = st.lists(st.integers(min_value=-100, max_value=100), min_size=2, max_size=30)


@st.composite
def paired_lists(draw: st.DrawFn) -> tuple[list[int], list[int]]:
    x = draw(int_lists)
    y = draw(st.lists(st.integers(min_value=-100, max_value=100), min_size=len(x), max_size=len(x)))
    return x, y


class TestPearsonCorrelation:
    @given(pair=paired_lists())
    def test_bounded(self, pair: tuple[list[int], list[int]]) -> None:
        x, y = pair
        assert -1.0 <= pearson_correlation(x, y) <= 1.0

    @given(x=int_lists)
    def test_self_correlation_is_one(self, x: list[int]) -> None:
        assume(len(set(x)) > 1)
        assert pearson_correlation(x, x) == pytest.approx(1.0)

    @given(x=int_lists)
    def test_negated_correlation_is_minus_one(self, x: list[int]) -> None:
        assume(len(set(x)) > 1)
        assert pearson_correlation(x, [-v for v in x]) == pytest.approx(-1.0)

    @given(pair=paired_lists())
    def test_symmetric(self, pair: tuple[list[int], list[int]]) -> None:
        x, y = pair
        assert pearson_correlation(x, y) == pearson_correlation(y, x)

    @given(x=int_lists, offset=st.sampled_from([1e6, 1e8, -1e9]))
    def test_offset_does_not_change_correlation(self, x: list[int], offset: float) -> None:
        assume(len(set(x)) > 1)
        shifted = [v + offset for v in x]
        assert pearson_correlation(shifted, shifted) == pytest.approx(1.0)
        assert pearson_correlation(shifted, [-v for v in shifted]) == pytest.approx(-1.0)

    def test_large_offset_self_correlation(self) -> None:
        x = [1e8, 1e8 + 1, 1e8 + 2]
        assert pearson_correlation(x, x) == 1.0

    def test_constant_series_gives_zero(self) -> None:
        assert pearson_correlation([3, 3, 3, 3], [1, 2, 3, 4]) == 0.0

    def test_empty_and_mismatched_give_zero(self) -> None:
        assert pearson_correlation([], []) == 0.0
        assert pearson_correlation([1, 2, 3], [1, 2]) == 0.0

    def test_known_value(self) -> None:
        # y = 2 + 6x for a binary x
        assert pearson_correlation([1, 0, 1, 0, 1], [8, 2, 8, 2, 8]) == pytest.approx(1.0)
        assert pearson_correlation([1, 2, 3, 4], [2, 1, 4, 3]) == pytest.approx(0.6)


class TestPValueBands:
    @pytest.mark.parametrize(
        ("r", "n", "expected"),
        [
            (0.0, 10, 0.5),  # t = 0
            (0.5, 10, 0.1),  # t ~ 1.63
            (0.6, 10, 0.05),  # t ~ 2.12
            (0.7, 10, 0.01),  # t ~ 2.77
            (0.9, 10, 0.001),  # t ~ 5.84
            (1.0, 10, 0.001),  # t infinite
            (-0.9, 10, 0.001),
        ],
    )
    def test_band_lookup(self, r: float, n: int, expected: float) -> None:
        assert approximate_p_value(r, n) == expected

    @pytest.mark.parametrize("n", [0, 1, 2])
    def test_too_few_points_is_not_significant(self, n: int) -> None:
        assert approximate_p_value(0.99, n) == 1.0

    def test_t_statistic_for_perfect_correlation(self) -> None:
        assert t_statistic(1.0, 10) == math.inf
        assert t_statistic(-1.0, 10) == -math.inf


class TestConfidenceScore:
    @pytest.mark.parametrize(
        ("r", "n", "p", "expected"),
        [
            (0.9, 4, 0.001, 0.1),
            (0.9, 8, 0.001, 0.5),
            (0.9, 8, 0.5, 0.5),
            (0.9, 15, 0.001, 0.7),
            (0.5, 15, 0.5, 0.5),
            (0.5, 20, 0.1, 0.95),  # 0.9 + 0.2 + 0.05 capped
            (0.1, 30, 0.5, 0.71),
        ],
    )
    def test_tiers(self, r: float, n: int, p: float, expected: float) -> None:
        assert confidence_score(r, n, p) == pytest.approx(expected)

    @given(
        r=st.floats(min_value=-1.0, max_value=1.0),
        n=st.integers(min_value=3, max_value=200),
        step=st.integers(min_value=1, max_value=100),
        p=st.sampled_from(P_BANDS),
    )
    def test_non_decreasing_in_sample_size(self, r: float, n: int, step: int, p: float) -> None:
        assert confidence_score(r, n, p) <= confidence_score(r, n + step, p)

    @given(
        r=st.floats(min_value=-1.0, max_value=1.0),
        n=st.integers(min_value=0, max_value=500),
        p=st.sampled_from(P_BANDS),
    )
    def test_bounded(self, r: float, n: int, p: float) -> None:
        assert 0.0 <= confidence_score(r, n, p) <= 0.95


def test_mean_of_empty_is_zero() -> None:
    assert mean([]) == 0.0
    assert mean([2, 4, 9]) == 5.0
