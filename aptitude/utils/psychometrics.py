"""
Aptitude Compass: psychometric primitives used by calibration.

Every statistic whose preconditions are not met returns ``None`` rather
than raising; callers treat ``None`` as a normal "undefined" result.
"""

from __future__ import annotations

import math
import statistics
from typing import Optional, Sequence

# ── Weight bounds ───────────────────────────────────────────────────────────

LIKERT_WEIGHT_MIN: float = 0.4
LIKERT_WEIGHT_MAX: float = 1.6
LIKERT_CORRELATION_SCALE: float = 0.5

OPTION_WEIGHT_MIN: float = 0.5
OPTION_WEIGHT_MAX: float = 1.4

# (exclusive lower variance bound, weight), checked top-down
OPTION_VARIANCE_BUCKETS: tuple[tuple[float, float], ...] = (
    (2.0, 1.2),
    (1.0, 1.0),
    (0.5, 0.8),
)
OPTION_VARIANCE_FLOOR_WEIGHT: float = 0.6

# (exclusive upper bound, multiplier), checked bottom-up
TIME_MULTIPLIER_BUCKETS: tuple[tuple[float, float], ...] = (
    (1500.0, 0.85),
    (2500.0, 0.93),
    (4500.0, 1.00),
    (6500.0, 1.05),
)
TIME_MULTIPLIER_CEILING: float = 1.10

CONFIDENCE_MULTIPLIER_BUCKETS: tuple[tuple[float, float], ...] = (
    (0.3, 0.8),
    (0.5, 0.9),
    (0.7, 1.0),
    (0.85, 1.05),
)
CONFIDENCE_MULTIPLIER_CEILING: float = 1.1


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def mean_or_none(values: Sequence[float]) -> Optional[float]:
    return statistics.fmean(values) if values else None


def sample_variance(values: Sequence[float]) -> float:
    """Bessel-corrected variance; 0.0 for fewer than two observations."""
    if len(values) <= 1:
        return 0.0
    return statistics.variance(values)


def sample_std(values: Sequence[float]) -> Optional[float]:
    if len(values) <= 1:
        return None
    return statistics.stdev(values)


def pearson(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    """Pearson correlation, or ``None`` for mismatched, short or flat input."""
    if len(xs) != len(ys) or len(xs) < 2:
        return None
    mx = statistics.fmean(xs)
    my = statistics.fmean(ys)
    numerator = 0.0
    sum_sq_x = 0.0
    sum_sq_y = 0.0
    for x, y in zip(xs, ys):
        dx = x - mx
        dy = y - my
        numerator += dx * dy
        sum_sq_x += dx * dx
        sum_sq_y += dy * dy
    denominator = math.sqrt(sum_sq_x * sum_sq_y)
    if denominator == 0.0:
        return None
    return numerator / denominator


def cronbach_alpha(item_variances: Sequence[float], respondent_count: int) -> Optional[float]:
    """Axis reliability from the per-item variances of that axis.

    ``alpha = (k / (k - 1)) * (1 - sum(v) / (k * mean(v)))``

    Undefined for fewer than two items, fewer than two respondents or a
    zero mean variance.
    """
    k = len(item_variances)
    if k < 2 or respondent_count < 2:
        return None
    total = math.fsum(item_variances)
    average = total / k
    if average == 0.0:
        return None
    return (k / (k - 1.0)) * (1.0 - total / (k * average))


# ── Weight recommendations ──────────────────────────────────────────────────

def likert_recommended_weight(correlation: Optional[float]) -> float:
    if correlation is None:
        return 1.0
    return clamp(
        1.0 + correlation * LIKERT_CORRELATION_SCALE,
        LIKERT_WEIGHT_MIN,
        LIKERT_WEIGHT_MAX,
    )


def option_recommended_weight(variance: float) -> float:
    weight = OPTION_VARIANCE_FLOOR_WEIGHT
    for threshold, bucket_weight in OPTION_VARIANCE_BUCKETS:
        if variance > threshold:
            weight = bucket_weight
            break
    return clamp(weight, OPTION_WEIGHT_MIN, OPTION_WEIGHT_MAX)


def time_multiplier(average_time_ms: Optional[float]) -> float:
    if average_time_ms is None or average_time_ms <= 0:
        return 1.0
    for upper, multiplier in TIME_MULTIPLIER_BUCKETS:
        if average_time_ms < upper:
            return multiplier
    return TIME_MULTIPLIER_CEILING


def confidence_multiplier(average_confidence: Optional[float]) -> float:
    if average_confidence is None:
        return 1.0
    for upper, multiplier in CONFIDENCE_MULTIPLIER_BUCKETS:
        if average_confidence < upper:
            return multiplier
    return CONFIDENCE_MULTIPLIER_CEILING
