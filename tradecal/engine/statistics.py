"""
Confidence statistics — does confidence predict outcomes?

Pure functions over sequences of outcome-shaped records (anything with
``confidence``, ``pnl_percent`` and ``is_winner``), reused for raw
outcomes and for outcomes re-scored through a calibration curve.
"""

import math
import statistics
from dataclasses import dataclass
from typing import Protocol, Sequence

DEFAULT_HIGH_CONFIDENCE_THRESHOLD: float = 0.7


class ScoredOutcome(Protocol):
    confidence: float
    pnl_percent: float
    is_winner: bool


@dataclass(frozen=True)
class WinRateSplit:
    """Win rates above/below a confidence threshold."""
    threshold: float
    high_win_rate: float
    low_win_rate: float
    high_count: int
    low_count: int

    @property
    def gap(self) -> float:
        return self.high_win_rate - self.low_win_rate


def correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """
    Pearson product-moment correlation.

    Returns 0.0 for fewer than two pairs, when either series is constant,
    or when any value is not finite. The result is clamped to [-1, 1]
    against rounding drift.
    """
    n = min(len(xs), len(ys))
    if n < 2:
        return 0.0
    xs, ys = xs[:n], ys[:n]
    if not all(math.isfinite(v) for v in (*xs, *ys)):
        return 0.0
    # A constant series has zero variance even when its mean does not round exactly.
    if max(xs) == min(xs) or max(ys) == min(ys):
        return 0.0

    mean_x = sum(xs) / n
    mean_y = sum(ys) / n

    numerator = 0.0
    sum_sq_x = 0.0
    sum_sq_y = 0.0
    for x, y in zip(xs, ys):
        dx = x - mean_x
        dy = y - mean_y
        numerator += dx * dy
        sum_sq_x += dx * dx
        sum_sq_y += dy * dy

    denominator = math.sqrt(sum_sq_x * sum_sq_y)
    if denominator == 0:
        return 0.0
    return max(-1.0, min(1.0, numerator / denominator))


def confidence_pnl_correlation(outcomes: Sequence[ScoredOutcome]) -> float:
    """Correlation between confidence and PnL% across outcomes."""
    return correlation(
        [o.confidence for o in outcomes],
        [o.pnl_percent for o in outcomes],
    )


def _win_rate(outcomes: Sequence[ScoredOutcome]) -> float:
    if not outcomes:
        return 0.0
    return sum(1 for o in outcomes if o.is_winner) / len(outcomes)


def win_rate_split(
    outcomes: Sequence[ScoredOutcome],
    threshold: float = DEFAULT_HIGH_CONFIDENCE_THRESHOLD,
) -> WinRateSplit:
    """Partition by ``confidence >= threshold``; an empty side has win rate 0."""
    high = [o for o in outcomes if o.confidence >= threshold]
    low = [o for o in outcomes if o.confidence < threshold]
    return WinRateSplit(
        threshold=threshold,
        high_win_rate=_win_rate(high),
        low_win_rate=_win_rate(low),
        high_count=len(high),
        low_count=len(low),
    )


def median(values: Sequence[float]) -> float:
    """Median of a sequence (0.0 when empty)."""
    if not values:
        return 0.0
    return statistics.median(values)


def median_confidence(outcomes: Sequence[ScoredOutcome]) -> float:
    """Split point used for calibrated scores, which cluster near observed win rates."""
    return median([o.confidence for o in outcomes])
