"""
TradeCal SQLAlchemy Models.

- trade_recommendations: AI trade recommendations (input, read-only for calibration)
- confidence_calibrations: append-only calibration history, one row per computation
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from tradecal.db.engine import Base


class TradeRecommendation(Base):
    """
    One recommendation as generated: market, price, action, confidence.

    ``confidence`` is the score shown to users (possibly calibrated);
    ``raw_confidence`` is the model's own score. Legacy rows predate the
    split and only carry ``confidence``.
    """

    __tablename__ = "trade_recommendations"
    __table_args__ = (
        Index("tr_market_idx", "market"),
        Index("tr_timestamp_idx", "timestamp"),
        Index("tr_action_idx", "action"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    market: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(30, 10), nullable=False)
    action: Mapped[str] = mapped_column(String(10), nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    raw_confidence: Mapped[Optional[float]] = mapped_column(Float)
    size_usd: Mapped[Optional[Decimal]] = mapped_column(Numeric(30, 10))
    timeframe: Mapped[str] = mapped_column(String(20), nullable=False, default="short")
    reasoning: Mapped[str] = mapped_column(Text, nullable=False, default="")


class ConfidenceCalibration(Base):
    """
    A computed calibration curve with its diagnostics.

    Immutable: recalibrating inserts a new row. The latest row per market
    (by ``timestamp``) is the active calibration.
    """

    __tablename__ = "confidence_calibrations"
    __table_args__ = (
        Index("cc_market_timestamp_idx", "market", "timestamp"),
        Index("cc_timestamp_idx", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch millis
    market: Mapped[str] = mapped_column(String(255), nullable=False)
    window_days: Mapped[int] = mapped_column(Integer, nullable=False)
    calibration_data: Mapped[str] = mapped_column(Text, nullable=False)  # JSON points
    sample_size: Mapped[int] = mapped_column(Integer, nullable=False)
    correlation: Mapped[float] = mapped_column(Float, nullable=False)
    high_conf_win_rate: Mapped[Optional[float]] = mapped_column(Float)
    low_conf_win_rate: Mapped[Optional[float]] = mapped_column(Float)
