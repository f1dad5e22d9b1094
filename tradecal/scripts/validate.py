"""
Validate that calibration improves confidence on historical data.

Usage:
    python -m tradecal.scripts.validate --market BTC [--days 60] [--use-latest]

Exits 0 when validation passes, 1 otherwise.
"""

import argparse
import asyncio
import sys

import structlog

from tradecal.config import settings
from tradecal.exceptions import CalibrationError
from tradecal.logging_config import configure_logging
from tradecal.scripts._common import add_common_arguments, calibration_service, report_failure
from tradecal.services.validation import CalibrationValidator

logger = structlog.get_logger(__name__)


async def run(args: argparse.Namespace) -> int:
    market = args.market.upper()
    structlog.contextvars.bind_contextvars(market=market)

    async with calibration_service(args.database_url) as service:
        calibration = await service.get_latest_calibration(market) if args.use_latest else None
        if args.use_latest and calibration is None:
            logger.warning("calibration_missing", hint="Run tradecal.scripts.calibrate first")
            return 1
        try:
            result = await CalibrationValidator(service).validate(market, args.days, calibration)
        except CalibrationError as exc:
            report_failure(exc)
            return 1

    for issue in result.issues:
        logger.warning("calibration_validation_issue", issue=issue)
    return 0 if result.passes else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate calibration on historical data")
    parser.add_argument("-m", "--market", required=True)
    parser.add_argument("--days", type=int, default=settings.calibration_window_days)
    parser.add_argument(
        "--use-latest", action="store_true",
        help="Validate the stored calibration instead of computing a fresh one",
    )
    add_common_arguments(parser)
    args = parser.parse_args(argv)
    configure_logging(fmt=args.log_format)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
