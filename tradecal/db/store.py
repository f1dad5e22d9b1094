"""
Calibration storage collaborator.

``CalibrationStore`` is the narrow interface the calibration service
depends on. ``SqlCalibrationStore`` implements it on a ``Database``; each
call runs in its own session (commit on success, rollback on error).
Storage errors propagate unchanged and are never retried here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

import structlog

from tradecal.db.engine import Database
from tradecal.db.repositories.calibration import CalibrationRepository
from tradecal.db.repositories.trade_recommendation import TradeRecommendationRepository
from tradecal.schemas.calibration import CalibrationRecord, CalibrationRecordCreate
from tradecal.schemas.trade import TradeAction, TradeRecord

logger = structlog.get_logger(__name__)


class CalibrationStore(Protocol):
    async def query_trade_records(
        self, market: str, since: datetime
    ) -> list[TradeRecord]:
        """Records for ``market`` at or after ``since``, ascending by timestamp."""
        ...

    async def insert_calibration_record(self, record: CalibrationRecordCreate) -> int:
        ...

    async def query_latest_calibration_record(
        self, market: str
    ) -> Optional[CalibrationRecord]:
        ...

    async def query_calibration_history(
        self, market: str, limit: int = 50
    ) -> list[CalibrationRecord]:
        ...


class SqlCalibrationStore:
    """``CalibrationStore`` backed by SQLAlchemy."""

    def __init__(
        self,
        database: Database,
        trades: Optional[TradeRecommendationRepository] = None,
        calibrations: Optional[CalibrationRepository] = None,
    ):
        self.database = database
        self.trades = trades or TradeRecommendationRepository()
        self.calibrations = calibrations or CalibrationRepository()

    async def query_trade_records(self, market: str, since: datetime) -> list[TradeRecord]:
        async with self.database.session() as session:
            rows = await self.trades.list_since(session, market, since)
            return [self.trades.to_record(r) for r in rows]

    async def insert_calibration_record(self, record: CalibrationRecordCreate) -> int:
        async with self.database.session() as session:
            row = await self.calibrations.create(session, record)
            record_id = row.id
        logger.debug("calibration_record_inserted", market=record.market, id=record_id)
        return record_id

    async def query_latest_calibration_record(self, market: str) -> Optional[CalibrationRecord]:
        async with self.database.session() as session:
            row = await self.calibrations.get_latest(session, market)
            return self.calibrations.to_record(row) if row is not None else None

    async def query_calibration_history(
        self, market: str, limit: int = 50
    ) -> list[CalibrationRecord]:
        async with self.database.session() as session:
            rows = await self.calibrations.list_history(session, market, limit=limit)
            return [self.calibrations.to_record(r) for r in rows]

    async def record_trade_recommendation(
        self,
        market: str,
        price: float | Decimal,
        action: TradeAction | str,
        confidence: float,
        timestamp: datetime,
        raw_confidence: Optional[float] = None,
        **extra: object,
    ) -> int:
        """Append a recommendation (ingest path for generators and seeding)."""
        async with self.database.session() as session:
            row = await self.trades.create(
                session,
                market=market,
                price=price,
                action=action,
                confidence=confidence,
                timestamp=timestamp,
                raw_confidence=raw_confidence,
                **extra,
            )
            return row.id

    async def record_trade_recommendations(self, records: Sequence[TradeRecord]) -> int:
        """Bulk-append records in one transaction; returns how many were written."""
        async with self.database.session() as session:
            for r in records:
                await self.trades.create(
                    session,
                    market=r.market,
                    price=r.price,
                    action=r.action,
                    confidence=r.raw_confidence,
                    raw_confidence=r.raw_confidence,
                    timestamp=r.timestamp,
                )
        return len(records)
