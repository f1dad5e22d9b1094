"""
Outcome Deriver — turn recommendations into realized trade outcomes.

Each directional recommendation is treated as a position opened at its
price and closed at the price of the next directional recommendation for
the same market. PnL is signed by direction:

    long:  (exit - entry) / entry × 100
    short: (entry - exit) / entry × 100

An outcome is a winner only when PnL is strictly positive; break-even
counts as a loss.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import structlog

from tradecal.exceptions import MalformedRecordError
from tradecal.schemas.trade import TradeAction, TradeRecord

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TradeOutcome:
    """Realized result of one recommendation."""
    confidence: float       # raw confidence at entry
    pnl_percent: float
    is_winner: bool

    @classmethod
    def from_pnl(cls, confidence: float, pnl_percent: float) -> "TradeOutcome":
        return cls(confidence=confidence, pnl_percent=pnl_percent, is_winner=pnl_percent > 0)


def directional_only(records: Iterable[TradeRecord]) -> list[TradeRecord]:
    """Keep long/short recommendations, preserving order."""
    return [r for r in records if r.is_directional]


def compute_pnl_percent(action: TradeAction, entry_price: float, exit_price: float) -> float:
    """Percentage PnL of a position from entry to exit."""
    if action == TradeAction.LONG:
        return (exit_price - entry_price) / entry_price * 100
    if action == TradeAction.SHORT:
        return (entry_price - exit_price) / entry_price * 100
    raise ValueError(f"PnL is undefined for non-directional action {action!r}")


def derive_outcomes(records: Sequence[TradeRecord]) -> list[TradeOutcome]:
    """
    Pair record i (entry) with record i+1 (exit).

    Args:
        records: Directional records for a single market, ascending by timestamp.

    Returns:
        len(records) - 1 outcomes (empty for fewer than two records).

    Raises:
        MalformedRecordError: an entry price is zero, negative or not finite,
            or an exit price is not finite.
    """
    outcomes: list[TradeOutcome] = []

    for entry, exit_ in zip(records, records[1:]):
        entry_price = float(entry.price)
        if not (math.isfinite(entry_price) and entry_price > 0):
            logger.error(
                "outcome_malformed_entry_price",
                market=entry.market,
                timestamp=entry.timestamp.isoformat(),
                price=entry_price,
            )
            raise MalformedRecordError(
                f"Entry price must be a positive finite number, got {entry_price} "
                f"for {entry.market} at {entry.timestamp.isoformat()}",
                market=entry.market,
                timestamp=entry.timestamp,
                price=entry_price,
            )

        exit_price = float(exit_.price)
        if not math.isfinite(exit_price):
            logger.error(
                "outcome_malformed_exit_price",
                market=exit_.market,
                timestamp=exit_.timestamp.isoformat(),
                price=exit_price,
            )
            raise MalformedRecordError(
                f"Exit price must be finite, got {exit_price} "
                f"for {exit_.market} at {exit_.timestamp.isoformat()}",
                market=exit_.market,
                timestamp=exit_.timestamp,
                price=exit_price,
            )

        pnl = compute_pnl_percent(entry.action, entry_price, exit_price)
        outcomes.append(TradeOutcome.from_pnl(entry.raw_confidence, pnl))

    return outcomes
