"""
SQL Calibration Store Tests.

Runs against in-memory SQLite (aiosqlite).
"""

from datetime import datetime, timedelta, timezone

import pytest

from tradecal.db.engine import Database
from tradecal.db.repositories.trade_recommendation import to_naive_utc
from tradecal.schemas.calibration import (
    CalibrationPoint,
    CalibrationRecordCreate,
    deserialize_points,
    serialize_points,
)
from tradecal.schemas.trade import TradeAction
from tests.factories import make_records

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


def _calibration_row(market: str = "BTC", timestamp: int = 1_700_000_000_000, **overrides):
    values = dict(
        timestamp=timestamp,
        market=market,
        window_days=60,
        calibration_data=serialize_points([
            CalibrationPoint(raw_confidence=0.0, calibrated_confidence=0.0),
            CalibrationPoint(raw_confidence=0.15, calibrated_confidence=1 / 3),
            CalibrationPoint(raw_confidence=1.0, calibrated_confidence=1 / 3),
        ]),
        sample_size=24,
        correlation=0.23456789,
        high_conf_win_rate=0.6,
        low_conf_win_rate=0.4,
    )
    values.update(overrides)
    return CalibrationRecordCreate(**values)


class TestTradeRecords:
    @pytest.mark.asyncio
    async def test_roundtrip_ordered_ascending(self, sql_store):
        records = make_records([100.0, 101.5, 99.25], [0.8, 0.6, 0.9])
        await sql_store.record_trade_recommendations(list(reversed(records)))

        since = records[0].timestamp - timedelta(minutes=1)
        loaded = await sql_store.query_trade_records("BTC", since)

        assert [r.price for r in loaded] == [100.0, 101.5, 99.25]
        assert [r.raw_confidence for r in loaded] == [0.8, 0.6, 0.9]
        assert all(r.timestamp.tzinfo is not None for r in loaded)
        assert loaded[0].timestamp == records[0].timestamp

    @pytest.mark.asyncio
    async def test_filters_market_and_window(self, sql_store):
        now = datetime.now(timezone.utc)
        await sql_store.record_trade_recommendation("BTC", 100, "long", 0.5, now - timedelta(days=90))
        await sql_store.record_trade_recommendation("BTC", 101, "short", 0.5, now - timedelta(days=1))
        await sql_store.record_trade_recommendation("ETH", 3000, "long", 0.5, now - timedelta(days=1))

        loaded = await sql_store.query_trade_records("BTC", now - timedelta(days=60))

        assert len(loaded) == 1
        assert loaded[0].action == TradeAction.SHORT

    @pytest.mark.asyncio
    async def test_returns_all_actions(self, sql_store):
        records = make_records([1, 2, 3], [0.5] * 3, actions=["long", "hold", "close"])
        await sql_store.record_trade_recommendations(records)

        loaded = await sql_store.query_trade_records("BTC", records[0].timestamp)
        assert [r.action for r in loaded] == [TradeAction.LONG, TradeAction.HOLD, TradeAction.CLOSE]

    @pytest.mark.asyncio
    async def test_raw_confidence_falls_back_to_confidence(self, sql_store):
        ts = datetime.now(timezone.utc) - timedelta(hours=1)
        await sql_store.record_trade_recommendation("BTC", 100, "long", 0.66, ts)
        await sql_store.record_trade_recommendation("BTC", 101, "long", 0.66, ts + timedelta(minutes=5), raw_confidence=0.42)

        loaded = await sql_store.query_trade_records("BTC", ts - timedelta(minutes=1))
        assert [r.raw_confidence for r in loaded] == [0.66, 0.42]


class TestCalibrationRecords:
    @pytest.mark.asyncio
    async def test_latest_is_none_when_empty(self, sql_store):
        assert await sql_store.query_latest_calibration_record("BTC") is None

    @pytest.mark.asyncio
    async def test_roundtrip_preserves_values(self, sql_store):
        row = _calibration_row()
        record_id = await sql_store.insert_calibration_record(row)

        latest = await sql_store.query_latest_calibration_record("BTC")
        assert latest.id == record_id
        assert latest.correlation == 0.23456789
        assert latest.timestamp == row.timestamp
        assert deserialize_points(latest.calibration_data) == deserialize_points(row.calibration_data)

    @pytest.mark.asyncio
    async def test_latest_by_timestamp(self, sql_store):
        await sql_store.insert_calibration_record(_calibration_row(timestamp=3_000))
        await sql_store.insert_calibration_record(_calibration_row(timestamp=1_000))
        await sql_store.insert_calibration_record(_calibration_row(market="ETH", timestamp=9_000))

        latest = await sql_store.query_latest_calibration_record("BTC")
        assert latest.timestamp == 3_000

    @pytest.mark.asyncio
    async def test_same_timestamp_newest_id_wins(self, sql_store):
        await sql_store.insert_calibration_record(_calibration_row(sample_size=10))
        second = await sql_store.insert_calibration_record(_calibration_row(sample_size=20))

        latest = await sql_store.query_latest_calibration_record("BTC")
        assert latest.id == second
        assert latest.sample_size == 20

    @pytest.mark.asyncio
    async def test_history_newest_first(self, sql_store):
        for ts in (1_000, 2_000, 3_000):
            await sql_store.insert_calibration_record(_calibration_row(timestamp=ts))

        history = await sql_store.query_calibration_history("BTC")
        assert [h.timestamp for h in history] == [3_000, 2_000, 1_000]

        limited = await sql_store.query_calibration_history("BTC", limit=2)
        assert len(limited) == 2


class TestDatabase:
    @pytest.mark.asyncio
    async def test_session_requires_open(self):
        db = Database(url=TEST_DB_URL)
        with pytest.raises(RuntimeError):
            async with db.session():
                pass

    @pytest.mark.asyncio
    async def test_context_manager_closes(self):
        async with Database(url=TEST_DB_URL, create_tables=True) as db:
            assert db.is_open
        assert not db.is_open

    @pytest.mark.asyncio
    async def test_session_rolls_back_on_error(self, database, sql_store):
        with pytest.raises(ValueError):
            async with database.session() as session:
                await sql_store.calibrations.create(session, _calibration_row())
                raise ValueError("boom")

        assert await sql_store.query_latest_calibration_record("BTC") is None


def test_to_naive_utc():
    aware = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert to_naive_utc(aware) == datetime(2024, 1, 1, 10, 0)
    naive = datetime(2024, 1, 1, 12, 0)
    assert to_naive_utc(naive) is naive
