"""Tier and round bookkeeping models."""

from enum import Enum

from pydantic import BaseModel, Field, computed_field


class Tier(str, Enum):
    """Alert significance bucket.

    HIGH outranks MID. NONE means the token is not alerted.
    """

    NONE = "none"
    MID = "mid"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Ordering used for promotion checks."""
        return _TIER_RANK[self]

    def outranks(self, other: "Tier") -> bool:
        """Whether this tier is strictly more significant than ``other``."""
        return self.rank > other.rank


_TIER_RANK = {Tier.NONE: 0, Tier.MID: 1, Tier.HIGH: 2}


class RoundPhase(str, Enum):
    """Scheduler round state."""

    IDLE = "idle"
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    NOTIFYING = "notifying"
    COOLING_DOWN = "cooling_down"


class RoundResult(BaseModel):
    """Outcome of one polling round.

    Only consumed by the scheduler to pick the next delay and by the
    round summary log line.
    """

    candidates: int = 0
    skipped: int = 0
    evaluated: int = 0
    rechecked: int = 0
    mid_notified: int = 0
    high_notified: int = 0
    listings_notified: int = 0
    delivery_failures: int = 0
    errors: int = 0
    next_delay_seconds: float = Field(default=0.0, ge=0)

    @computed_field
    @property
    def notified(self) -> int:
        """Tier notifications sent this round (listings excluded)."""
        return self.mid_notified + self.high_notified
