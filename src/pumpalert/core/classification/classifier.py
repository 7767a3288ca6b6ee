"""Tier classification for discovery candidates.

Two steps, applied in order:

1. ``prefilter`` looks only at the raw candidate (FDV and discovery age)
   so tokens that cannot qualify never cost a snapshot fetch.
2. ``classify`` uses the snapshot's market cap and the pair age, falling
   back to the candidate's creation time when the pair has none.

Bounds are inclusive at the floor and exclusive at the next tier's floor;
age ceilings are inclusive.
"""

from datetime import datetime

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator

from pumpalert.constants import thresholds
from pumpalert.core.clock import age_minutes
from pumpalert.models.tier import Tier
from pumpalert.services.dexscreener.models import MarketSnapshot
from pumpalert.services.moralis.models import TokenCandidate

log = structlog.get_logger(__name__)


class TierThresholds(BaseModel):
    """Operator-tunable tier thresholds."""

    model_config = ConfigDict(frozen=True)

    mid_floor: float = Field(default=thresholds.MID_FLOOR_USD, ge=0)
    high_floor: float = Field(default=thresholds.HIGH_FLOOR_USD, ge=0)
    discovery_max_age_minutes: float = Field(
        default=thresholds.DISCOVERY_MAX_AGE_MINUTES, gt=0
    )
    mid_max_age_minutes: float = Field(default=thresholds.MID_MAX_AGE_MINUTES, gt=0)
    high_max_age_minutes: float = Field(default=thresholds.HIGH_MAX_AGE_MINUTES, gt=0)

    @model_validator(mode="after")
    def validate_floors(self) -> "TierThresholds":
        """Mid floor must sit below the high floor."""
        if self.mid_floor >= self.high_floor:
            raise ValueError("mid_floor must be lower than high_floor")
        return self


class TierClassifier:
    """Maps a candidate and its market snapshot to a Tier."""

    def __init__(self, thresholds: TierThresholds | None = None) -> None:
        self.thresholds = thresholds or TierThresholds()

    def prefilter(self, candidate: TokenCandidate, now: datetime) -> str | None:
        """Check a raw candidate before spending a snapshot fetch.

        Returns:
            Skip reason, or None when the candidate should be enriched.
        """
        t = self.thresholds
        fdv = candidate.fully_diluted_valuation
        if fdv < t.mid_floor:
            return f"fdv {fdv:.0f} < {t.mid_floor:.0f}"

        # Unknown creation time: let the snapshot decide the age
        if candidate.created_at is not None:
            age = age_minutes(candidate.created_at, now)
            if age > t.discovery_max_age_minutes:
                return f"age {age:.1f}m > {t.discovery_max_age_minutes:.0f}m"

        return None

    @staticmethod
    def effective_created_at(
        candidate: TokenCandidate | None, snapshot: MarketSnapshot
    ) -> datetime | None:
        """Pair creation time, else the candidate's creation time."""
        if snapshot.pair_created_at is not None:
            return snapshot.pair_created_at
        if candidate is not None:
            return candidate.created_at
        return None

    def classify_metrics(self, market_cap: float, age: float) -> Tier:
        """Tier for a market cap (USD) and an age (minutes)."""
        t = self.thresholds
        if market_cap >= t.high_floor and age <= t.high_max_age_minutes:
            return Tier.HIGH
        if t.mid_floor <= market_cap < t.high_floor and age <= t.mid_max_age_minutes:
            return Tier.MID
        return Tier.NONE

    def classify(
        self,
        candidate: TokenCandidate | None,
        snapshot: MarketSnapshot,
        now: datetime,
    ) -> Tier:
        """Classify an enriched token.

        Args:
            candidate: Discovery record, or None for a recheck of a token
                that is no longer in the discovery feed.
            snapshot: Current market data.
            now: Evaluation time.

        Returns:
            Tier.HIGH, Tier.MID or Tier.NONE.
        """
        created_at = self.effective_created_at(candidate, snapshot)
        if created_at is None:
            log.debug("classify_unknown_age", address=snapshot.token_address)
            return Tier.NONE

        return self.classify_metrics(snapshot.market_cap, age_minutes(created_at, now))
