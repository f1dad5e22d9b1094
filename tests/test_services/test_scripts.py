"""
Command-line entry point tests.

Each test runs a script's ``main`` against a throwaway SQLite file.
"""

import asyncio

import pytest

from tradecal.db.engine import Database
from tradecal.db.store import SqlCalibrationStore
from tradecal.exceptions import InsufficientDataError, MalformedRecordError
from tradecal.scripts import calibrate, reset_db, status, validate
from tradecal.scripts._common import report_failure
from tests.factories import make_records, rising_records


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'tradecal-test.db'}"


def _seed(url: str, records) -> None:
    async def _run():
        async with Database(url=url, create_tables=True) as database:
            await SqlCalibrationStore(database).record_trade_recommendations(records)

    asyncio.run(_run())


def _history(url: str, market: str):
    async def _run():
        async with Database(url=url, create_tables=True) as database:
            return await SqlCalibrationStore(database).query_calibration_history(market)

    return asyncio.run(_run())


_SEPARABLE = make_records(
    [100, 99, 98, 97, 96, 95, 94, 95, 96, 97, 98, 99],
    [0.3] * 6 + [0.9] * 6,
)


class TestCalibrateScript:
    def test_saves_calibration(self, db_url):
        _seed(db_url, rising_records(12))

        assert calibrate.main(["--market", "btc", "--database-url", db_url]) == 0

        history = _history(db_url, "BTC")
        assert len(history) == 1
        assert history[0].sample_size == 11

    def test_dry_run_saves_nothing(self, db_url):
        _seed(db_url, rising_records(12))

        assert calibrate.main(["-m", "BTC", "--dry-run", "--database-url", db_url]) == 0
        assert _history(db_url, "BTC") == []

    def test_insufficient_data_exit_code(self, db_url):
        _seed(db_url, rising_records(3))
        assert calibrate.main(["-m", "BTC", "--database-url", db_url]) == 1

    def test_days_option(self):
        args = calibrate.build_parser().parse_args(["-m", "ETH", "--days", "30"])
        assert args.days == 30
        assert not args.dry_run


class TestStatusScript:
    def test_missing_calibration_exit_code(self, db_url):
        assert status.main(["-m", "BTC", "--database-url", db_url]) == 1

    def test_healthy_calibration_exit_code(self, db_url):
        _seed(db_url, _SEPARABLE)
        assert calibrate.main(["-m", "BTC", "--database-url", db_url]) == 0
        assert status.main(["-m", "BTC", "--database-url", db_url]) == 0


class TestValidateScript:
    def test_use_latest_without_calibration(self, db_url):
        _seed(db_url, _SEPARABLE)
        assert validate.main(["-m", "BTC", "--use-latest", "--database-url", db_url]) == 1

    def test_insufficient_data_exit_code(self, db_url):
        assert validate.main(["-m", "BTC", "--database-url", db_url]) == 1


class TestResetDb:
    def test_drops_existing_rows(self, db_url):
        _seed(db_url, rising_records(12))
        assert calibrate.main(["-m", "BTC", "--database-url", db_url]) == 0

        asyncio.run(reset_db.reset(db_url))

        assert _history(db_url, "BTC") == []


class TestReportFailure:
    def test_handles_both_error_kinds(self):
        report_failure(InsufficientDataError(found=3, required=10, market="BTC", window_days=60))
        report_failure(MalformedRecordError("bad price", market="BTC", price=0.0))
