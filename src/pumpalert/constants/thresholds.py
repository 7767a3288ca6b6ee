"""Tier classification and dedup ledger defaults."""

from typing import Final

# Tier floors (USD market cap)
MID_FLOOR_USD: Final[float] = 15_000.0
HIGH_FLOOR_USD: Final[float] = 80_000.0

# Age ceilings
DISCOVERY_MAX_AGE_MINUTES: Final[float] = 20.0  # Pre-filter on raw candidates
MID_MAX_AGE_MINUTES: Final[float] = 20.0
HIGH_MAX_AGE_MINUTES: Final[float] = 120.0

# Dedup ledger
MID_RETENTION_MINUTES: Final[float] = 120.0
HIGH_RETENTION_MINUTES: Final[float] = 120.0
LEDGER_MAX_ENTRIES: Final[int] = 1000

# Secondary listings
LISTING_MAX_AGE_MINUTES: Final[float] = 60.0
DEFAULT_VENUE_DENYLIST: Final[frozenset[str]] = frozenset({"pumpfun", "pumpswap"})
