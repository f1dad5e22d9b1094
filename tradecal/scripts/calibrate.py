"""
Compute and save a confidence calibration for one market.

Usage:
    python -m tradecal.scripts.calibrate --market BTC [--days 60] [--dry-run]
"""

import argparse
import asyncio
import sys

import structlog

from tradecal.config import settings
from tradecal.exceptions import CalibrationError
from tradecal.logging_config import configure_logging
from tradecal.scripts._common import add_common_arguments, calibration_service, report_failure

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("-m", "--market", required=True)
    parser.add_argument("--days", type=int, default=settings.calibration_window_days)
    parser.add_argument("--dry-run", action="store_true", help="Compute without saving")
    add_common_arguments(parser)
    return parser


async def run(args: argparse.Namespace) -> int:
    market = args.market.upper()
    structlog.contextvars.bind_contextvars(market=market)

    async with calibration_service(args.database_url) as service:
        try:
            calibration = await service.compute_calibration(market, args.days)
        except CalibrationError as exc:
            report_failure(exc)
            return 1

        logger.info(
            "calibration_curve",
            points=[
                (round(p.raw_confidence, 2), round(p.calibrated_confidence, 4))
                for p in calibration.points
            ],
            win_rate_gap=round(calibration.win_rate_gap, 4),
        )

        if args.dry_run:
            logger.info("calibration_dry_run", saved=False)
            return 0

        record_id = await service.save_calibration(calibration)
        logger.info("calibration_activated", id=record_id)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(fmt=args.log_format)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
