"""
Confidence Calibration Service — compute, persist, serve, and judge calibrations.

Flow for one market:
    store.query_trade_records → directional filter → min-sample gate
    → derive outcomes → bucketize → PAVA → curve → statistics
    → CalibrationData (not persisted until save_calibration)

Calibrations are append-only. The active calibration for a market is the
most recently created row; staleness and health are computed on read.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import structlog

from tradecal.config import settings
from tradecal.db.store import CalibrationStore
from tradecal.engine.buckets import bucketize
from tradecal.engine.curve import apply_calibration, build_curve
from tradecal.engine.health import (
    HealthThresholds,
    evaluate_health,
    interpret,
    recommend,
)
from tradecal.engine.isotonic import pool_adjacent_violators
from tradecal.engine.outcomes import TradeOutcome, derive_outcomes, directional_only
from tradecal.engine.statistics import confidence_pnl_correlation, win_rate_split
from tradecal.exceptions import ConfigurationError, InsufficientDataError
from tradecal.schemas.calibration import (
    CalibrationData,
    CalibrationHealth,
    CalibrationRecord,
    CalibrationRecordCreate,
    MarketStatus,
    serialize_points,
)

logger = structlog.get_logger(__name__)

MS_PER_DAY: int = 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


class ConfidenceCalibrationService:
    """
    Owns the read/write path for calibration records.

    The store is injected; the caller opens and closes it.
    """

    def __init__(
        self,
        store: CalibrationStore,
        min_samples: Optional[int] = None,
        n_buckets: Optional[int] = None,
        high_confidence_threshold: Optional[float] = None,
        health_thresholds: Optional[HealthThresholds] = None,
    ):
        self.store = store
        self.min_samples = settings.calibration_min_samples if min_samples is None else min_samples
        self.n_buckets = settings.calibration_bucket_count if n_buckets is None else n_buckets
        self.high_confidence_threshold = (
            settings.high_confidence_threshold
            if high_confidence_threshold is None else high_confidence_threshold
        )
        self.health_thresholds = health_thresholds or HealthThresholds(
            correlation_critical=settings.health_correlation_critical,
            correlation_warning=settings.health_correlation_warning,
            age_warning_days=settings.health_age_warning_days,
            age_critical_days=settings.health_age_critical_days,
        )

        if self.n_buckets < 1:
            raise ConfigurationError("n_buckets must be at least 1", config_key="calibration_bucket_count")
        if not 0.0 <= self.high_confidence_threshold <= 1.0:
            raise ConfigurationError(
                "high_confidence_threshold must be within [0, 1]",
                config_key="high_confidence_threshold",
            )

    # ── Computation ──────────────────────────────────────────────────────

    async def load_outcomes(self, market: str, window_days: int) -> list[TradeOutcome]:
        """
        Realized outcomes for a market over the last ``window_days``.

        Raises:
            InsufficientDataError: fewer than ``min_samples`` long/short records.
            MalformedRecordError: a record has a non-positive entry price.
        """
        if window_days <= 0:
            raise ConfigurationError("window_days must be positive", config_key="window_days")

        since = datetime.now(timezone.utc) - timedelta(days=window_days)
        records = await self.store.query_trade_records(market, since)
        directional = directional_only(records)

        if len(directional) < self.min_samples:
            logger.warning(
                "calibration_insufficient_data",
                market=market,
                window_days=window_days,
                found=len(directional),
                required=self.min_samples,
            )
            raise InsufficientDataError(
                found=len(directional),
                required=self.min_samples,
                market=market,
                window_days=window_days,
            )

        return derive_outcomes(directional)

    def calibrate_outcomes(
        self,
        market: str,
        window_days: int,
        outcomes: Sequence[TradeOutcome],
    ) -> CalibrationData:
        """Build the curve and diagnostics from already-derived outcomes."""
        buckets = bucketize(outcomes, n_buckets=self.n_buckets)
        pooled = pool_adjacent_violators(buckets)
        points = build_curve(pooled)

        split = win_rate_split(outcomes, threshold=self.high_confidence_threshold)

        return CalibrationData(
            market=market,
            window_days=window_days,
            points=points,
            sample_size=len(outcomes),
            correlation=confidence_pnl_correlation(outcomes),
            high_conf_win_rate=split.high_win_rate,
            low_conf_win_rate=split.low_win_rate,
        )

    async def compute_calibration(self, market: str, window_days: Optional[int] = None) -> CalibrationData:
        """
        Compute (but do not save) a calibration for ``market``.

        Args:
            market: Market symbol (e.g. "BTC")
            window_days: Look-back window; defaults to settings

        Returns:
            CalibrationData with a monotonic, anchored curve
        """
        window = settings.calibration_window_days if window_days is None else window_days
        outcomes = await self.load_outcomes(market, window)
        calibration = self.calibrate_outcomes(market, window, outcomes)

        logger.info(
            "calibration_computed",
            market=market,
            window_days=window,
            sample_size=calibration.sample_size,
            n_points=len(calibration.points),
            correlation=round(calibration.correlation, 4),
            high_conf_win_rate=round(calibration.high_conf_win_rate, 4),
            low_conf_win_rate=round(calibration.low_conf_win_rate, 4),
        )
        return calibration

    # ── Persistence ──────────────────────────────────────────────────────

    async def save_calibration(self, calibration: CalibrationData) -> int:
        """Persist as a new immutable row; earlier rows are kept as history."""
        record = CalibrationRecordCreate(
            timestamp=_now_ms(),
            market=calibration.market,
            window_days=calibration.window_days,
            calibration_data=serialize_points(calibration.points),
            sample_size=calibration.sample_size,
            correlation=calibration.correlation,
            high_conf_win_rate=calibration.high_conf_win_rate,
            low_conf_win_rate=calibration.low_conf_win_rate,
        )
        record_id = await self.store.insert_calibration_record(record)
        logger.info("calibration_saved", market=calibration.market, id=record_id)
        return record_id

    async def get_latest_record(self, market: str) -> Optional[CalibrationRecord]:
        return await self.store.query_latest_calibration_record(market)

    async def get_latest_calibration(self, market: str) -> Optional[CalibrationData]:
        """Most recently created calibration for ``market``, or None."""
        record = await self.get_latest_record(market)
        return record.to_calibration_data() if record is not None else None

    async def get_latest_calibration_timestamp(self, market: str) -> Optional[datetime]:
        record = await self.get_latest_record(market)
        return record.created_at if record is not None else None

    async def get_calibration_history(self, market: str, limit: int = 50) -> list[CalibrationRecord]:
        """Stored calibrations for ``market``, newest first."""
        return await self.store.query_calibration_history(market, limit=limit)

    # ── Inference ────────────────────────────────────────────────────────

    @staticmethod
    def apply_calibration(raw_score: float, calibration: Optional[CalibrationData]) -> float:
        """Map a raw score through a curve. Never raises."""
        return apply_calibration(raw_score, calibration)

    async def calibrate_score(self, market: str, raw_score: float) -> float:
        """Score a new recommendation with the latest curve; passthrough if none exists."""
        calibration = await self.get_latest_calibration(market)
        if calibration is None:
            logger.debug("calibration_unavailable_passthrough", market=market)
        return self.apply_calibration(raw_score, calibration)

    # ── Staleness / health ───────────────────────────────────────────────

    @staticmethod
    def age_days(record: CalibrationRecord, now_ms: Optional[int] = None) -> float:
        now = _now_ms() if now_ms is None else now_ms
        return (now - record.timestamp) / MS_PER_DAY

    async def is_calibration_stale(self, market: str, max_age_days: Optional[int] = None) -> bool:
        """True when no calibration exists or the latest is older than ``max_age_days``."""
        max_age = settings.stale_max_age_days if max_age_days is None else max_age_days
        record = await self.get_latest_record(market)
        if record is None:
            return True
        return self.age_days(record) > max_age

    async def get_market_status(self, market: str) -> MarketStatus:
        """Health snapshot for the latest calibration of ``market``."""
        record = await self.get_latest_record(market)
        if record is None:
            return MarketStatus(
                market=market,
                health=CalibrationHealth.MISSING,
                has_calibration=False,
                recommendation=recommend(CalibrationHealth.MISSING),
            )

        # Whole elapsed days, so a 13.9-day-old calibration reads as 13.
        age = int(self.age_days(record))
        health = evaluate_health(record.correlation, age, self.health_thresholds)

        return MarketStatus(
            market=market,
            health=health,
            has_calibration=True,
            calibrated_at=record.created_at,
            age_days=age,
            sample_size=record.sample_size,
            correlation=record.correlation,
            high_conf_win_rate=record.high_conf_win_rate,
            low_conf_win_rate=record.low_conf_win_rate,
            win_rate_gap=record.high_conf_win_rate - record.low_conf_win_rate,
            interpretation=interpret(record.correlation, age, self.health_thresholds),
            recommendation=recommend(health),
        )

    async def get_status_report(self, markets: Optional[Sequence[str]] = None) -> list[MarketStatus]:
        statuses = []
        for market in markets or settings.default_markets:
            statuses.append(await self.get_market_status(market))
        return statuses
