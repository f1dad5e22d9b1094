"""Queries over trade_recommendations."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradecal.db.models import TradeRecommendation
from tradecal.schemas.trade import TradeAction, TradeRecord


def to_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TradeRecommendationRepository:
    """Read and append trade recommendations."""

    def __init__(self, model: type[TradeRecommendation] = TradeRecommendation):
        self.model = model

    async def create(
        self,
        db: AsyncSession,
        market: str,
        price: float | Decimal,
        action: TradeAction | str,
        confidence: float,
        timestamp: datetime,
        raw_confidence: Optional[float] = None,
        size_usd: Optional[float | Decimal] = None,
        timeframe: str = "short",
        reasoning: str = "",
    ) -> TradeRecommendation:
        obj = self.model(
            market=market,
            price=Decimal(str(price)),
            action=TradeAction(action).value,
            confidence=confidence,
            raw_confidence=raw_confidence,
            size_usd=Decimal(str(size_usd)) if size_usd is not None else None,
            timeframe=timeframe,
            reasoning=reasoning,
            timestamp=to_naive_utc(timestamp),
        )
        db.add(obj)
        await db.flush()
        await db.refresh(obj)
        return obj

    async def list_since(
        self,
        db: AsyncSession,
        market: str,
        since: datetime,
    ) -> Sequence[TradeRecommendation]:
        """Recommendations for a market at or after ``since``, oldest first."""
        stmt = select(self.model).where(
            self.model.market == market,
            self.model.timestamp >= to_naive_utc(since),
        ).order_by(self.model.timestamp.asc(), self.model.id.asc())
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    def to_record(row: TradeRecommendation) -> TradeRecord:
        """Calibrate against the model's own score; legacy rows fall back to ``confidence``."""
        raw = row.raw_confidence if row.raw_confidence is not None else row.confidence
        return TradeRecord(
            timestamp=row.timestamp.replace(tzinfo=timezone.utc),
            market=row.market,
            price=float(row.price),
            action=TradeAction(row.action),
            raw_confidence=float(raw),
        )
