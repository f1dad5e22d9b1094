"""
Trade Recommendation Schemas.

Read-only view of a stored recommendation as consumed by calibration.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TradeAction(StrEnum):
    LONG = "long"
    SHORT = "short"
    HOLD = "hold"
    CLOSE = "close"


DIRECTIONAL_ACTIONS: frozenset[TradeAction] = frozenset({TradeAction.LONG, TradeAction.SHORT})


class TradeRecord(BaseModel):
    """A single recommendation: what was advised, at what price, how confidently."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    market: str
    price: float = Field(allow_inf_nan=False)
    action: TradeAction
    raw_confidence: float = Field(ge=0.0, le=1.0)

    @property
    def is_directional(self) -> bool:
        return self.action in DIRECTIONAL_ACTIONS
