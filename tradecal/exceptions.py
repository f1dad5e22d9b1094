"""
Custom exceptions for TradeCal.

Provides structured error handling with recovery hints and error codes.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for TradeCal."""
    # General errors (1xxx)
    UNKNOWN_ERROR = "E1000"
    CONFIGURATION_ERROR = "E1002"

    # Data errors (2xxx)
    INSUFFICIENT_DATA = "E2001"
    DATA_CORRUPT = "E2003"


@dataclass
class RecoveryHint:
    """A hint for recovering from an error."""
    action: str
    description: str
    suggestions: List[str] = field(default_factory=list)
    requires_human: bool = False


class CalibrationError(Exception):
    """
    Base exception for TradeCal.

    All custom exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        recovery_hint: Optional[RecoveryHint] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.recovery_hint = recovery_hint
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        result: Dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.recovery_hint:
            result["recovery"] = {
                "action": self.recovery_hint.action,
                "description": self.recovery_hint.description,
                "suggestions": list(self.recovery_hint.suggestions),
            }
        return result

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"


class InsufficientDataError(CalibrationError):
    """Too few directional recommendations in the window to calibrate."""

    def __init__(
        self,
        found: int,
        required: int,
        market: str = "",
        window_days: Optional[int] = None,
    ):
        window = f" in the last {window_days} days" if window_days is not None else ""
        super().__init__(
            message=(
                f"Insufficient data{' for ' + market if market else ''}: "
                f"need at least {required} directional trades, found {found}{window}"
            ),
            error_code=ErrorCode.INSUFFICIENT_DATA,
            recovery_hint=RecoveryHint(
                action="collect_more_data",
                description=f"At least {required} long/short recommendations are required",
                suggestions=[
                    "Keep recording trade recommendations for this market",
                    "Widen the calibration window",
                    "Lower the minimum sample size if the market trades rarely",
                ],
                requires_human=True,
            ),
        )
        self.found = found
        self.required = required
        self.market = market
        self.window_days = window_days


class MalformedRecordError(CalibrationError):
    """A trade record cannot be turned into an outcome (e.g. non-positive price)."""

    def __init__(
        self,
        message: str,
        market: str = "",
        timestamp: Optional[datetime] = None,
        price: Optional[float] = None,
    ):
        super().__init__(
            message=message,
            error_code=ErrorCode.DATA_CORRUPT,
            recovery_hint=RecoveryHint(
                action="fix_record",
                description="Correct or remove the offending trade recommendation",
                requires_human=True,
            ),
        )
        self.market = market
        self.record_timestamp = timestamp
        self.price = price


class ConfigurationError(CalibrationError):
    """Error raised when a parameter or setting is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            recovery_hint=RecoveryHint(
                action="check_config",
                description="Review configuration settings",
                requires_human=True,
            ),
        )
        self.config_key = config_key
