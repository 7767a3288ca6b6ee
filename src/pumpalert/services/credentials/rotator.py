"""Rotating API credential selection.

The day is split into blocks of ``hours_per_block`` hours. Each block maps
to one credential through a shuffled order that is derived from a seed and
the current UTC day, so every call inside a block uses the same key and the
assignment changes from one day to the next.
"""

import random
import secrets
from collections.abc import Sequence
from datetime import UTC, date, datetime, time

import structlog

from pumpalert.constants.polling import HOURS_PER_BLOCK
from pumpalert.core.clock import Clock, utc_now
from pumpalert.core.exceptions import ConfigurationError

log = structlog.get_logger(__name__)


class CredentialRotator:
    """Picks the credential for the current time slice.

    Example:
        rotator = CredentialRotator(["key-a", "key-b"], hours_per_block=6)
        headers = {"X-API-Key": rotator.current_credential()}
    """

    def __init__(
        self,
        credentials: Sequence[str],
        hours_per_block: int = HOURS_PER_BLOCK,
        seed: str | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the rotator.

        Args:
            credentials: Pool of equivalent credentials.
            hours_per_block: Length of one rotation slice in hours.
            seed: Base seed for the daily shuffle. Random when omitted.
            clock: Time source.

        Raises:
            ConfigurationError: If the credential pool is empty.
        """
        pool = [c for c in credentials if c]
        if not pool:
            raise ConfigurationError("Credential pool is empty")
        if hours_per_block < 1:
            raise ConfigurationError("hours_per_block must be at least 1")

        self._pool = pool
        self._hours_per_block = hours_per_block
        self._seed = seed if seed is not None else secrets.token_hex(8)
        self._clock = clock
        self._day: date | None = None
        self._day_start: datetime | None = None
        self._order: list[str] = []

        self._derive_order(self._clock())

    @property
    def pool_size(self) -> int:
        """Number of credentials in rotation."""
        return len(self._pool)

    @property
    def daily_order(self) -> list[str]:
        """Today's slice order (copy)."""
        return list(self._order)

    def _derive_order(self, now: datetime) -> None:
        """Shuffle the pool for the UTC day containing ``now``."""
        day = now.astimezone(UTC).date()
        rng = random.Random(f"{self._seed}:{day.isoformat()}")
        order = list(self._pool)
        rng.shuffle(order)

        self._day = day
        self._day_start = datetime.combine(day, time.min, tzinfo=UTC)
        self._order = order
        log.info(
            "credential_order_derived",
            day=day.isoformat(),
            pool_size=len(order),
            hours_per_block=self._hours_per_block,
        )

    def current_slot(self) -> int:
        """Index into today's order for the current time slice."""
        now = self._clock()
        if now.astimezone(UTC).date() != self._day:
            self._derive_order(now)

        assert self._day_start is not None
        hours_since_midnight = int((now - self._day_start).total_seconds() // 3600)
        return (hours_since_midnight // self._hours_per_block) % len(self._order)

    def current_credential(self) -> str:
        """Credential to use right now."""
        return self._order[self.current_slot()]
