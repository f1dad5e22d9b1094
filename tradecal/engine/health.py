"""
Calibration health — classify a stored calibration from its quality and age.

State is never persisted; it is recomputed on every read:

    NEEDS_RECALIBRATION  correlation < critical  OR  age > critical days
    WARNING              critical <= correlation <= warning  OR  warning <= age <= critical days
    HEALTHY              otherwise
    MISSING              no calibration stored (decided by the caller)

The worst state is checked first, so an old calibration with a strong
correlation still needs recalibrating.
"""

from dataclasses import dataclass

from tradecal.schemas.calibration import CalibrationHealth

CORRELATION_CRITICAL: float = 0.1
CORRELATION_WARNING: float = 0.2
AGE_WARNING_DAYS: int = 7
AGE_CRITICAL_DAYS: int = 14


@dataclass(frozen=True)
class HealthThresholds:
    correlation_critical: float = CORRELATION_CRITICAL
    correlation_warning: float = CORRELATION_WARNING
    age_warning_days: float = AGE_WARNING_DAYS
    age_critical_days: float = AGE_CRITICAL_DAYS


def evaluate_health(
    correlation: float,
    age_days: float,
    thresholds: HealthThresholds = HealthThresholds(),
) -> CalibrationHealth:
    """Classify a calibration from its stored correlation and its age in days."""
    t = thresholds
    if correlation < t.correlation_critical or age_days > t.age_critical_days:
        return CalibrationHealth.NEEDS_RECALIBRATION

    if (
        t.correlation_critical <= correlation <= t.correlation_warning
        or t.age_warning_days <= age_days <= t.age_critical_days
    ):
        return CalibrationHealth.WARNING

    return CalibrationHealth.HEALTHY


def describe_correlation(r: float) -> str:
    """How much predictive power a confidence/PnL correlation indicates."""
    if r >= 0.3:
        return "Strong predictive power."
    if r >= 0.2:
        return "Moderate predictive power."
    if r >= 0.1:
        return "Weak predictive power."
    if r >= 0.0:
        return "Very weak predictive power."
    return "Anti-predictive (inverted)."


def describe_age(
    age_days: float,
    thresholds: HealthThresholds = HealthThresholds(),
) -> str:
    if age_days > thresholds.age_critical_days:
        return "Calibration is stale."
    if age_days > thresholds.age_warning_days:
        return "Calibration aging."
    return "Calibration is fresh."


def interpret(
    correlation: float,
    age_days: float,
    thresholds: HealthThresholds = HealthThresholds(),
) -> str:
    return f"{describe_correlation(correlation)} {describe_age(age_days, thresholds)}"


def recommend(health: CalibrationHealth) -> str:
    """Next step for an operator looking at a market in this state."""
    if health == CalibrationHealth.MISSING:
        return "No calibration stored. Compute and save one for this market."
    if health == CalibrationHealth.NEEDS_RECALIBRATION:
        return "Recalibrate now."
    if health == CalibrationHealth.WARNING:
        return "Consider recalibrating soon."
    return "Calibration is in good health."
