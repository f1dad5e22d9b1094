"""
Report calibration health for one or more markets.

Usage:
    python -m tradecal.scripts.status [--market BTC]

Exit code is 1 when any market is missing a calibration or needs recalibrating.
"""

import argparse
import asyncio
import sys

import structlog

from tradecal.logging_config import configure_logging
from tradecal.schemas.calibration import CalibrationHealth
from tradecal.scripts._common import add_common_arguments, calibration_service

logger = structlog.get_logger(__name__)

_ACTION_REQUIRED = {CalibrationHealth.MISSING, CalibrationHealth.NEEDS_RECALIBRATION}


async def run(args: argparse.Namespace) -> int:
    markets = [args.market.upper()] if args.market else None

    async with calibration_service(args.database_url) as service:
        statuses = await service.get_status_report(markets)

    for status in statuses:
        logger.info("calibration_status", **status.model_dump(mode="json"))

    counts = {h.value: sum(1 for s in statuses if s.health == h) for h in CalibrationHealth}
    logger.info("calibration_status_summary", **counts)

    return 1 if any(s.health in _ACTION_REQUIRED for s in statuses) else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Report calibration health")
    parser.add_argument("-m", "--market", default=None)
    add_common_arguments(parser)
    args = parser.parse_args(argv)
    configure_logging(fmt=args.log_format)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
