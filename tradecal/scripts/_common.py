"""Shared plumbing for the command-line entry points."""

import argparse
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog

from tradecal.config import settings
from tradecal.db.engine import Database
from tradecal.db.store import SqlCalibrationStore
from tradecal.exceptions import CalibrationError, InsufficientDataError
from tradecal.services.calibration import ConfidenceCalibrationService

logger = structlog.get_logger(__name__)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    parser.add_argument("--log-format", choices=["console", "json"], default=None)


@asynccontextmanager
async def calibration_service(database_url: str | None = None) -> AsyncGenerator[ConfidenceCalibrationService, None]:
    """Open a database, yield a service bound to it, always close."""
    database = Database(url=database_url, create_tables=settings.environment.lower() == "development")
    await database.open()
    try:
        yield ConfidenceCalibrationService(SqlCalibrationStore(database))
    finally:
        await database.close()


def report_failure(exc: CalibrationError) -> None:
    """Log a calibration failure; insufficient data gets its remediation hints."""
    if isinstance(exc, InsufficientDataError):
        logger.warning(
            "calibration_insufficient_data",
            market=exc.market,
            found=exc.found,
            required=exc.required,
            window_days=exc.window_days,
            hints=exc.recovery_hint.suggestions if exc.recovery_hint else [],
        )
    else:
        logger.error("calibration_failed", **exc.to_dict())
