"""
Calibration Validator — does the curve make confidence more informative?

Re-scores the window's historical outcomes through a calibration curve and
compares diagnostics before and after:

- raw scores are split at the fixed high-confidence threshold (0.7)
- calibrated scores are split at their median, since they cluster around
  observed win rates rather than spreading across [0, 1]

Validation passes when correlation improves by at least the configured
gain, calibrated high-confidence trades out-win low-confidence ones, and
the win-rate gap does not shrink.
"""

from dataclasses import replace
from typing import Optional, Sequence

import structlog

from tradecal.config import settings
from tradecal.engine.curve import apply_calibration
from tradecal.engine.outcomes import TradeOutcome
from tradecal.engine.statistics import (
    confidence_pnl_correlation,
    median_confidence,
    win_rate_split,
)
from tradecal.schemas.calibration import CalibrationData, ConfidenceMetrics, ValidationResult
from tradecal.services.calibration import ConfidenceCalibrationService

logger = structlog.get_logger(__name__)


def measure(outcomes: Sequence[TradeOutcome], threshold: float) -> ConfidenceMetrics:
    """Correlation and win-rate split of outcomes at ``threshold``."""
    split = win_rate_split(outcomes, threshold=threshold)
    return ConfidenceMetrics(
        correlation=confidence_pnl_correlation(outcomes),
        threshold=threshold,
        high_win_rate=split.high_win_rate,
        low_win_rate=split.low_win_rate,
        high_count=split.high_count,
        low_count=split.low_count,
    )


def rescore(outcomes: Sequence[TradeOutcome], calibration: CalibrationData) -> list[TradeOutcome]:
    """Replace each outcome's confidence with its calibrated value; PnL is untouched."""
    return [
        replace(o, confidence=apply_calibration(o.confidence, calibration))
        for o in outcomes
    ]


class CalibrationValidator:
    """Compare raw and calibrated confidence on the same outcomes."""

    def __init__(
        self,
        service: ConfidenceCalibrationService,
        min_correlation_gain: Optional[float] = None,
    ):
        self.service = service
        self.min_correlation_gain = (
            settings.validation_min_correlation_gain
            if min_correlation_gain is None else min_correlation_gain
        )

    def evaluate(
        self,
        calibration: CalibrationData,
        outcomes: Sequence[TradeOutcome],
    ) -> ValidationResult:
        """Score ``outcomes`` raw and through ``calibration`` and gate the result."""
        raw = measure(outcomes, self.service.high_confidence_threshold)

        rescored = rescore(outcomes, calibration)
        calibrated = measure(rescored, median_confidence(rescored))

        correlation_improvement = calibrated.correlation - raw.correlation
        gap_improvement = calibrated.gap - raw.gap

        issues: list[str] = []
        if correlation_improvement < self.min_correlation_gain:
            issues.append(
                f"Correlation improvement ({correlation_improvement:.3f}) is below "
                f"target ({self.min_correlation_gain:.2f})"
            )
        if calibrated.high_win_rate <= calibrated.low_win_rate:
            issues.append("Calibrated high confidence win rate does not exceed low confidence")
        if gap_improvement < 0:
            issues.append("Win-rate gap decreased after calibration")

        result = ValidationResult(
            market=calibration.market,
            window_days=calibration.window_days,
            sample_size=len(outcomes),
            raw=raw,
            calibrated=calibrated,
            correlation_improvement=correlation_improvement,
            gap_improvement=gap_improvement,
            passes=not issues,
            issues=issues,
        )

        logger.info(
            "calibration_validated",
            market=calibration.market,
            passes=result.passes,
            raw_correlation=round(raw.correlation, 4),
            calibrated_correlation=round(calibrated.correlation, 4),
            correlation_improvement=round(correlation_improvement, 4),
            gap_improvement=round(gap_improvement, 4),
            n_issues=len(issues),
        )
        return result

    async def validate(
        self,
        market: str,
        window_days: Optional[int] = None,
        calibration: Optional[CalibrationData] = None,
    ) -> ValidationResult:
        """
        Validate a calibration against the market's historical outcomes.

        Args:
            market: Market symbol
            window_days: Look-back window; defaults to settings
            calibration: Curve to test; computed fresh from the same window if omitted

        Raises:
            InsufficientDataError: not enough directional records in the window.
        """
        window = settings.calibration_window_days if window_days is None else window_days
        outcomes = await self.service.load_outcomes(market, window)
        if calibration is None:
            calibration = self.service.calibrate_outcomes(market, window, outcomes)
        return self.evaluate(calibration, outcomes)
