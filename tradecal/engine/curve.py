"""
Calibration curve — build from pooled buckets, apply to new scores.

The curve is anchored at (0.0, 0.0), has one breakpoint per pooled bucket
at the bucket's midpoint, and ends at raw 1.0. Beyond the last populated
bucket the curve stays flat at the last calibrated value rather than
extrapolating upward.
"""

from typing import Sequence

from tradecal.engine.buckets import ConfidenceBucket
from tradecal.schemas.calibration import CalibrationData, CalibrationPoint


def _clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


def build_curve(buckets: Sequence[ConfidenceBucket]) -> list[CalibrationPoint]:
    """
    Convert monotonic buckets into calibration breakpoints.

    Args:
        buckets: Output of ``pool_adjacent_violators`` (non-decreasing win rates).

    Returns:
        Points sorted by raw confidence, first at 0.0 and last at 1.0.
    """
    points = [CalibrationPoint(raw_confidence=0.0, calibrated_confidence=0.0)]

    for bucket in buckets:
        if bucket.is_empty:
            continue
        points.append(CalibrationPoint(
            raw_confidence=bucket.midpoint,
            calibrated_confidence=_clamp(bucket.win_rate),
        ))

    last = points[-1]
    if last.raw_confidence < 1.0:
        points.append(CalibrationPoint(
            raw_confidence=1.0,
            calibrated_confidence=_clamp(last.calibrated_confidence),
        ))

    return points


def interpolate(raw_score: float, points: Sequence[CalibrationPoint]) -> float:
    """
    Map a raw score through the curve by linear interpolation.

    - No points: the (clamped) score is returned unchanged.
    - One point: that point's calibrated value, whatever the score.
    - A score on a breakpoint returns that breakpoint's value exactly.
    """
    score = _clamp(raw_score)

    if not points:
        return score
    if len(points) == 1:
        return points[0].calibrated_confidence

    lower, upper = points[0], points[-1]
    for left, right in zip(points, points[1:]):
        if left.raw_confidence <= score <= right.raw_confidence:
            lower, upper = left, right
            break

    if score == lower.raw_confidence:
        return lower.calibrated_confidence
    if score == upper.raw_confidence:
        return upper.calibrated_confidence

    span = upper.raw_confidence - lower.raw_confidence
    if span == 0:
        return lower.calibrated_confidence

    ratio = (score - lower.raw_confidence) / span
    calibrated = lower.calibrated_confidence + ratio * (
        upper.calibrated_confidence - lower.calibrated_confidence
    )
    return _clamp(calibrated)


def apply_calibration(raw_score: float, calibration: CalibrationData | None) -> float:
    """Apply a calibration to a raw score. Never raises; no curve means passthrough."""
    if calibration is None:
        return _clamp(raw_score)
    return interpolate(raw_score, calibration.points)
