"""
Bucketizer — group outcomes into fixed-width confidence bands.

Bands are [i/n, (i+1)/n) except the last, which is closed on both ends so
that a confidence of exactly 1.0 is counted.
"""

from dataclasses import dataclass, field
from typing import Sequence

from tradecal.engine.outcomes import TradeOutcome

N_CONFIDENCE_BUCKETS: int = 10


@dataclass(frozen=True)
class ConfidenceBucket:
    """A confidence band and the outcomes that fell in it."""
    min_confidence: float
    max_confidence: float
    outcomes: tuple[TradeOutcome, ...] = field(default_factory=tuple)
    win_rate: float = 0.0
    count: int = 0

    @property
    def midpoint(self) -> float:
        return (self.min_confidence + self.max_confidence) / 2

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def pool(self, other: "ConfidenceBucket") -> "ConfidenceBucket":
        """Merge with the adjacent bucket to the right (count-weighted win rate)."""
        count = self.count + other.count
        win_rate = (
            (self.win_rate * self.count + other.win_rate * other.count) / count
            if count else 0.0
        )
        return ConfidenceBucket(
            min_confidence=self.min_confidence,
            max_confidence=other.max_confidence,
            outcomes=self.outcomes + other.outcomes,
            win_rate=win_rate,
            count=count,
        )


def _in_band(confidence: float, lower: float, upper: float, is_last: bool) -> bool:
    if is_last:
        return lower <= confidence <= upper
    return lower <= confidence < upper


def bucketize(
    outcomes: Sequence[TradeOutcome],
    n_buckets: int = N_CONFIDENCE_BUCKETS,
) -> list[ConfidenceBucket]:
    """
    Partition outcomes into ``n_buckets`` bands over [0, 1].

    Always returns ``n_buckets`` buckets; empty ones are kept as placeholders.
    """
    buckets: list[ConfidenceBucket] = []

    for i in range(n_buckets):
        lower = i / n_buckets
        upper = (i + 1) / n_buckets
        is_last = i == n_buckets - 1

        members = tuple(o for o in outcomes if _in_band(o.confidence, lower, upper, is_last))
        winners = sum(1 for o in members if o.is_winner)

        buckets.append(ConfidenceBucket(
            min_confidence=lower,
            max_confidence=upper,
            outcomes=members,
            win_rate=winners / len(members) if members else 0.0,
            count=len(members),
        ))

    return buckets
