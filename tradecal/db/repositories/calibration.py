"""Queries over confidence_calibrations (append-only)."""

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradecal.db.models import ConfidenceCalibration
from tradecal.schemas.calibration import CalibrationRecord, CalibrationRecordCreate


class CalibrationRepository:
    """Insert and read calibration rows. There is no update or delete."""

    def __init__(self, model: type[ConfidenceCalibration] = ConfidenceCalibration):
        self.model = model

    async def create(self, db: AsyncSession, data: CalibrationRecordCreate) -> ConfidenceCalibration:
        obj = self.model(**data.model_dump())
        db.add(obj)
        await db.flush()
        await db.refresh(obj)
        return obj

    async def get_latest(self, db: AsyncSession, market: str) -> Optional[ConfidenceCalibration]:
        """Most recent row for a market by creation timestamp (id breaks ties)."""
        result = await db.execute(
            select(self.model)
            .where(self.model.market == market)
            .order_by(self.model.timestamp.desc(), self.model.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_history(
        self,
        db: AsyncSession,
        market: str,
        limit: int = 50,
    ) -> Sequence[ConfidenceCalibration]:
        result = await db.execute(
            select(self.model)
            .where(self.model.market == market)
            .order_by(self.model.timestamp.desc(), self.model.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    def to_record(row: ConfidenceCalibration) -> CalibrationRecord:
        return CalibrationRecord(
            id=row.id,
            timestamp=row.timestamp,
            market=row.market,
            window_days=row.window_days,
            calibration_data=row.calibration_data,
            sample_size=row.sample_size,
            correlation=row.correlation,
            high_conf_win_rate=row.high_conf_win_rate or 0.0,
            low_conf_win_rate=row.low_conf_win_rate or 0.0,
        )
