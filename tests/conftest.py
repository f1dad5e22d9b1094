"""
Test fixtures for TradeCal.

Provides:
- In-memory SQLite ``Database`` (aiosqlite) with all tables
- ``SqlCalibrationStore`` and an in-memory fake store
- Calibration services bound to either store
"""

from datetime import datetime
from typing import AsyncGenerator, Optional, Sequence

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from tradecal.db.engine import Database
from tradecal.db.store import SqlCalibrationStore
from tradecal.schemas.calibration import CalibrationRecord, CalibrationRecordCreate
from tradecal.schemas.trade import TradeRecord
from tradecal.services.calibration import ConfidenceCalibrationService

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# ── In-memory fake store ─────────────────────────────────────────────────


class InMemoryCalibrationStore:
    """Dict-backed ``CalibrationStore`` for service-level tests."""

    def __init__(self, records: Sequence[TradeRecord] = ()):
        self.trade_records: list[TradeRecord] = list(records)
        self.calibrations: list[CalibrationRecord] = []
        self.trade_queries: list[tuple[str, datetime]] = []

    def add_records(self, records: Sequence[TradeRecord]) -> None:
        self.trade_records.extend(records)

    async def query_trade_records(self, market: str, since: datetime) -> list[TradeRecord]:
        self.trade_queries.append((market, since))
        rows = [r for r in self.trade_records if r.market == market and r.timestamp >= since]
        return sorted(rows, key=lambda r: r.timestamp)

    async def insert_calibration_record(self, record: CalibrationRecordCreate) -> int:
        row = CalibrationRecord(id=len(self.calibrations) + 1, **record.model_dump())
        self.calibrations.append(row)
        return row.id

    async def query_latest_calibration_record(self, market: str) -> Optional[CalibrationRecord]:
        rows = [c for c in self.calibrations if c.market == market]
        if not rows:
            return None
        return max(rows, key=lambda c: (c.timestamp, c.id))

    async def query_calibration_history(self, market: str, limit: int = 50) -> list[CalibrationRecord]:
        rows = [c for c in self.calibrations if c.market == market]
        return sorted(rows, key=lambda c: (c.timestamp, c.id), reverse=True)[:limit]


@pytest.fixture
def fake_store() -> InMemoryCalibrationStore:
    return InMemoryCalibrationStore()


@pytest.fixture
def fake_service(fake_store) -> ConfidenceCalibrationService:
    return ConfidenceCalibrationService(fake_store, min_samples=10)


# ── Database fixtures ────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """A fresh in-memory database per test."""
    db = Database(url=TEST_DB_URL, echo=False, create_tables=True, poolclass=StaticPool)
    await db.open()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def sql_store(database) -> SqlCalibrationStore:
    return SqlCalibrationStore(database)


@pytest_asyncio.fixture
async def sql_service(sql_store) -> ConfidenceCalibrationService:
    return ConfidenceCalibrationService(sql_store, min_samples=10)
