"""
Isotonic Calibrator — pool adjacent violators (PAVA).

Enforces a non-decreasing win rate across confidence buckets. Whenever a
bucket's win rate exceeds its right neighbour's, the two are pooled into
one bucket with the count-weighted win rate and the scan restarts from
the left. At most ``n_buckets - 1`` merges can happen, so the quadratic
restart is negligible.
"""

from typing import Sequence

import structlog

from tradecal.engine.buckets import ConfidenceBucket

logger = structlog.get_logger(__name__)


def pool_adjacent_violators(buckets: Sequence[ConfidenceBucket]) -> list[ConfidenceBucket]:
    """
    Pool buckets until win rates are non-decreasing left to right.

    Empty buckets carry no weight and are dropped before pooling. If every
    bucket is empty the input is returned unchanged.
    """
    pooled = [b for b in buckets if not b.is_empty]
    if not pooled:
        return list(buckets)

    merges = 0
    changed = True
    while changed:
        changed = False
        for i in range(len(pooled) - 1):
            if pooled[i].win_rate > pooled[i + 1].win_rate:
                pooled[i:i + 2] = [pooled[i].pool(pooled[i + 1])]
                merges += 1
                changed = True
                break

    if merges:
        logger.debug("isotonic_pooling_applied", merges=merges, remaining=len(pooled))

    return pooled


def is_monotonic(buckets: Sequence[ConfidenceBucket]) -> bool:
    """True when win rates never decrease from one bucket to the next."""
    return all(a.win_rate <= b.win_rate for a, b in zip(buckets, buckets[1:]))
