"""
Calibration Schemas.

The calibration curve, its persisted form, and the reporting models
built on top of it (market status, retroactive validation).
"""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field, TypeAdapter


class CalibrationPoint(BaseModel):
    """One breakpoint of the piecewise-linear raw → calibrated mapping."""
    raw_confidence: float = Field(ge=0.0, le=1.0)
    calibrated_confidence: float = Field(ge=0.0, le=1.0)


_POINTS_ADAPTER = TypeAdapter(list[CalibrationPoint])


def serialize_points(points: list[CalibrationPoint]) -> str:
    """Encode a curve as a JSON array (exact float round-trip)."""
    return _POINTS_ADAPTER.dump_json(points).decode("utf-8")


def deserialize_points(blob: str | bytes) -> list[CalibrationPoint]:
    return _POINTS_ADAPTER.validate_json(blob)


class CalibrationData(BaseModel):
    """A calibration curve for one market plus the diagnostics it was built with."""
    market: str
    window_days: int
    points: list[CalibrationPoint] = Field(default_factory=list)
    sample_size: int = 0
    correlation: float = 0.0            # Pearson r, raw confidence vs PnL%
    high_conf_win_rate: float = 0.0     # confidence >= high threshold
    low_conf_win_rate: float = 0.0      # confidence < high threshold

    @property
    def win_rate_gap(self) -> float:
        return self.high_conf_win_rate - self.low_conf_win_rate

    def is_monotonic(self) -> bool:
        """Raw ascending and calibrated non-decreasing across the curve."""
        return all(
            a.raw_confidence <= b.raw_confidence
            and a.calibrated_confidence <= b.calibrated_confidence
            for a, b in zip(self.points, self.points[1:])
        )

    def is_anchored(self) -> bool:
        """Curve starts at raw 0.0 and ends at raw 1.0."""
        return bool(self.points) and (
            self.points[0].raw_confidence == 0.0
            and self.points[-1].raw_confidence == 1.0
        )


class CalibrationRecordCreate(BaseModel):
    """Row written to the storage collaborator. Immutable once stored."""
    timestamp: int                      # creation time, epoch millis
    market: str
    window_days: int
    calibration_data: str               # serialized points
    sample_size: int
    correlation: float
    high_conf_win_rate: float
    low_conf_win_rate: float


class CalibrationRecord(CalibrationRecordCreate):
    id: int

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)

    def to_calibration_data(self) -> CalibrationData:
        return CalibrationData(
            market=self.market,
            window_days=self.window_days,
            points=deserialize_points(self.calibration_data),
            sample_size=self.sample_size,
            correlation=self.correlation,
            high_conf_win_rate=self.high_conf_win_rate or 0.0,
            low_conf_win_rate=self.low_conf_win_rate or 0.0,
        )


class CalibrationHealth(StrEnum):
    HEALTHY = "HEALTHY"
    WARNING = "WARNING"
    NEEDS_RECALIBRATION = "NEEDS_RECALIBRATION"
    MISSING = "MISSING"


class MarketStatus(BaseModel):
    """Health snapshot of the latest calibration for one market."""
    market: str
    health: CalibrationHealth
    has_calibration: bool
    calibrated_at: Optional[datetime] = None
    age_days: Optional[int] = None
    sample_size: Optional[int] = None
    correlation: Optional[float] = None
    high_conf_win_rate: Optional[float] = None
    low_conf_win_rate: Optional[float] = None
    win_rate_gap: Optional[float] = None
    interpretation: str = ""
    recommendation: str = ""


class ConfidenceMetrics(BaseModel):
    """Correlation and high/low win-rate split for one scoring of the outcomes."""
    correlation: float
    threshold: float                    # split point used for high vs low
    high_win_rate: float
    low_win_rate: float
    high_count: int = 0
    low_count: int = 0

    @property
    def gap(self) -> float:
        return self.high_win_rate - self.low_win_rate


class ValidationResult(BaseModel):
    """Raw vs calibrated comparison over the same historical outcomes."""
    market: str
    window_days: int
    sample_size: int
    raw: ConfidenceMetrics
    calibrated: ConfidenceMetrics
    correlation_improvement: float
    gap_improvement: float
    passes: bool
    issues: list[str] = Field(default_factory=list)
