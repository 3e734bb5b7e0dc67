"""
Correlation statistics.

The p-value is a coarse band lookup on the t-statistic rather than an exact
t-distribution computation. Results stay deterministic and dependency-free;
swapping in an exact routine would change confidence scores.
"""

import math
from collections.abc import Sequence
from statistics import fmean

# (|t| upper bound, p-value) pairs checked in order
P_VALUE_BANDS: tuple[tuple[float, float], ...] = (
    (1.0, 0.5),
    (2.0, 0.1),
    (2.576, 0.05),
    (3.291, 0.01),
)
MIN_P_VALUE = 0.001


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson's r; 0.0 for empty or mismatched input or a zero-variance side."""
    if len(x) != len(y) or not x:
        return 0.0

    n = len(x)
    # shifting by the first point keeps the sums small for offset data
    dx = [xi - x[0] for xi in x]
    dy = [yi - y[0] for yi in y]
    sum_x = math.fsum(dx)
    sum_y = math.fsum(dy)
    sum_xy = math.fsum(a * b for a, b in zip(dx, dy, strict=True))
    sum_x2 = math.fsum(a * a for a in dx)
    sum_y2 = math.fsum(b * b for b in dy)

    numerator = n * sum_xy - sum_x * sum_y
    spread_x = n * sum_x2 - sum_x * sum_x
    spread_y = n * sum_y2 - sum_y * sum_y
    # rounding can leave a constant series with a tiny negative spread
    if spread_x <= 0 or spread_y <= 0:
        return 0.0
    denominator = math.sqrt(spread_x * spread_y)
    if denominator == 0:
        return 0.0

    r = numerator / denominator
    if math.isnan(r):
        return 0.0
    return max(-1.0, min(1.0, r))


def t_statistic(r: float, n: int) -> float:
    if abs(r) >= 1.0:
        return math.copysign(math.inf, r)
    return r * math.sqrt((n - 2) / (1 - r * r))


def approximate_p_value(r: float, n: int) -> float:
    """Banded two-sided p-value approximation for a correlation of n points."""
    if n <= 2:
        return 1.0

    abs_t = abs(t_statistic(r, n))
    for bound, p_value in P_VALUE_BANDS:
        if abs_t < bound:
            return p_value
    return MIN_P_VALUE


def confidence_score(r: float, n: int, p_value: float) -> float:
    """Composite 0-1 confidence from significance, sample size and strength."""
    if n < 5:
        return 0.1
    if n < 10:
        return min(0.5, 1 - p_value)
    if n < 20:
        return min(0.7, 1 - p_value)

    base_confidence = 1 - p_value
    sample_bonus = min(0.2, n / 100)
    strength_bonus = abs(r) * 0.1
    return min(0.95, base_confidence + sample_bonus + strength_bonus)


def mean(values: Sequence[float]) -> float:
    return fmean(values) if values else 0.0
