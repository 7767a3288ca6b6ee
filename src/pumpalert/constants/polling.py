"""Polling, fetch and delivery constants."""

from typing import Final

# Round cadence
DEFAULT_INTERVAL_SECONDS: Final[float] = 30.0
FAST_INTERVAL_SECONDS: Final[float] = 15.0
FAST_THRESHOLD: Final[int] = 2  # Notifications per round that trigger fast polling

# Fan-out
MAX_CONCURRENCY: Final[int] = 5

# Fetchers
FEED_LIMIT: Final[int] = 100
FETCH_MAX_RETRIES: Final[int] = 3
FETCH_RETRY_DELAY_SECONDS: Final[float] = 1.5
REQUEST_TIMEOUT_SECONDS: Final[float] = 10.0

# Notifier
NOTIFY_MAX_ATTEMPTS: Final[int] = 2  # Initial attempt + one retry
NOTIFY_RETRY_DELAY_SECONDS: Final[float] = 1.5

# Credential rotation
HOURS_PER_BLOCK: Final[int] = 6

# API endpoints
MORALIS_BASE_URL: Final[str] = "https://solana-gateway.moralis.io"
DEXSCREENER_BASE_URL: Final[str] = "https://api.dexscreener.com"
PHOTON_PAIR_URL: Final[str] = "https://photon-sol.tinyastro.io/en/lp/{pair_address}"
