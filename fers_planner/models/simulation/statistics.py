"""Aggregate statistics over Monte Carlo outcomes.

Percentiles and medians are rank-based: the value at ``sorted[k]`` for a
fixed index ``k`` rather than an interpolated quantile. Volatility is the
population standard deviation.
"""

from typing import Sequence

import numpy as np

from .result import PercentileRanges


def percentile_ranges(values: Sequence[float]) -> PercentileRanges:
    """P10/P25/P50/P75/P90 at ranks n//10, n//4, n//2, 3n//4 and 9n//10."""
    if len(values) == 0:
        return PercentileRanges()

    ordered = np.sort(np.asarray(values, dtype=float))
    n = len(ordered)
    return PercentileRanges(
        p10=float(ordered[n // 10]),
        p25=float(ordered[n // 4]),
        p50=float(ordered[n // 2]),
        p75=float(ordered[3 * n // 4]),
        p90=float(ordered[9 * n // 10]),
    )


def rank_median(values: Sequence[float]) -> float:
    """Upper median, ``sorted[n // 2]``; 0 for no values."""
    if len(values) == 0:
        return 0.0
    ordered = np.sort(np.asarray(values, dtype=float))
    return float(ordered[len(ordered) // 2])


def population_std(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def rate(count: int, total: int) -> float:
    """Share of ``total``; 0 when there is nothing to divide by."""
    if total <= 0:
        return 0.0
    return count / total


def max_drawdown(balances: Sequence[float]) -> float:
    """Largest peak-to-trough decline of a balance path as a fraction of the peak."""
    peak = 0.0
    worst = 0.0
    for balance in balances:
        if balance > peak:
            peak = balance
        if peak > 0:
            worst = max(worst, (peak - balance) / peak)
    return worst
