"""In-memory, time-bounded record of sent alerts.

A ``TimedMembershipSet`` remembers keys for a fixed retention window and
holds at most ``max_size`` of them, evicting the oldest first. Expiry is
checked on every read, so a stale entry is never reported as present even
if ``sweep`` has not run yet.

``DedupLedger`` keeps one set per alert tier and enforces the promotion
rule: recording a HIGH alert retires the MID entry, and nothing ever moves
a token back down.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from pumpalert.constants.thresholds import (
    HIGH_RETENTION_MINUTES,
    LEDGER_MAX_ENTRIES,
    MID_RETENTION_MINUTES,
)
from pumpalert.core.clock import Clock, utc_now
from pumpalert.models.tier import Tier

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LedgerEntry:
    """First sighting of a key, with the tier it was alerted at if any."""

    key: str
    tier: Tier | None
    notified_at: datetime


class TimedMembershipSet:
    """Set of keys with per-entry expiry and a capacity bound."""

    def __init__(
        self,
        tier: Tier | None,
        retention: timedelta,
        max_size: int = LEDGER_MAX_ENTRIES,
        clock: Clock = utc_now,
        name: str | None = None,
    ) -> None:
        """Initialize the set.

        Args:
            tier: Tier recorded on entries, or None for sets that track
                something other than alerts.
            retention: How long an entry stays live.
            max_size: Maximum live entries before oldest-first eviction.
            clock: Time source used when callers pass no ``now``.
            name: Label used in logs. Defaults to the tier value.
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if name is None and tier is None:
            raise ValueError("an untiered set needs a name")

        self.tier = tier
        self.name = name or tier.value
        self.retention = retention
        self.max_size = max_size
        self._clock = clock
        # Insertion order == notification order, since timestamps never refresh
        self._entries: OrderedDict[str, LedgerEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: LedgerEntry, now: datetime) -> bool:
        return now - entry.notified_at > self.retention

    def get(self, key: str, now: datetime | None = None) -> LedgerEntry | None:
        """Live entry for ``key``, removing it if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._is_expired(entry, now or self._clock()):
            del self._entries[key]
            logger.debug("ledger_entry_expired", ledger=self.name, key=key)
            return None
        return entry

    def contains(self, key: str, now: datetime | None = None) -> bool:
        return self.get(key, now) is not None

    def add(self, key: str, now: datetime | None = None) -> LedgerEntry:
        """Record ``key``; an existing live entry is kept unchanged.

        Returns:
            The live entry (existing or newly created).
        """
        now = now or self._clock()
        existing = self.get(key, now)
        if existing is not None:
            return existing

        while len(self._entries) >= self.max_size:
            evicted_key, _ = self._entries.popitem(last=False)  # Remove oldest
            logger.debug("ledger_entry_evicted", ledger=self.name, key=evicted_key)

        entry = LedgerEntry(key=key, tier=self.tier, notified_at=now)
        self._entries[key] = entry
        return entry

    def discard(self, key: str) -> bool:
        """Remove ``key``. Returns True if an entry was removed."""
        return self._entries.pop(key, None) is not None

    def sweep(self, now: datetime | None = None) -> int:
        """Physically remove every expired entry.

        Returns:
            Number of entries removed.
        """
        now = now or self._clock()
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def live_keys(self, now: datetime | None = None) -> list[str]:
        """Keys of all live entries, oldest first."""
        now = now or self._clock()
        return [k for k, e in self._entries.items() if not self._is_expired(e, now)]


class DedupLedger:
    """Which tokens were already alerted at which tier.

    Example:
        ledger = DedupLedger()
        if not ledger.has_notified(address, Tier.MID):
            if await notifier.notify(snapshot, Tier.MID):
                ledger.record_notified(address, Tier.MID)
    """

    def __init__(
        self,
        mid_retention: timedelta = timedelta(minutes=MID_RETENTION_MINUTES),
        high_retention: timedelta = timedelta(minutes=HIGH_RETENTION_MINUTES),
        max_entries: int = LEDGER_MAX_ENTRIES,
        clock: Clock = utc_now,
    ) -> None:
        self.max_entries = max_entries
        self._clock = clock
        self._sets: dict[Tier, TimedMembershipSet] = {
            Tier.MID: TimedMembershipSet(Tier.MID, mid_retention, max_entries, clock),
            Tier.HIGH: TimedMembershipSet(Tier.HIGH, high_retention, max_entries, clock),
        }

    def _set_for(self, tier: Tier) -> TimedMembershipSet:
        try:
            return self._sets[tier]
        except KeyError:
            raise ValueError(f"No ledger for tier {tier.value!r}") from None

    def has_notified(self, address: str, tier: Tier, now: datetime | None = None) -> bool:
        """Whether a live entry exists for (address, tier)."""
        return self._set_for(tier).contains(address, now)

    def get_entry(
        self, address: str, tier: Tier, now: datetime | None = None
    ) -> LedgerEntry | None:
        """Live entry for (address, tier), if any."""
        return self._set_for(tier).get(address, now)

    def record_notified(
        self, address: str, tier: Tier, now: datetime | None = None
    ) -> LedgerEntry:
        """Record a delivered notification. First write wins."""
        entry = self._set_for(tier).add(address, now)
        logger.debug(
            "ledger_recorded",
            tier=tier.value,
            address=address,
            notified_at=entry.notified_at.isoformat(),
        )
        return entry

    def promote(self, address: str) -> bool:
        """Retire the MID entry of a token that was alerted at HIGH.

        Returns:
            True if a MID entry was removed.
        """
        removed = self._sets[Tier.MID].discard(address)
        if removed:
            logger.debug("ledger_promoted", address=address)
        return removed

    def mid_tier_addresses(self, now: datetime | None = None) -> list[str]:
        """Addresses with a live MID entry, oldest first."""
        return self._sets[Tier.MID].live_keys(now)

    def sweep(self, now: datetime | None = None) -> int:
        """Remove expired entries from both tiers."""
        now = now or self._clock()
        removed = sum(s.sweep(now) for s in self._sets.values())
        if removed:
            logger.debug("ledger_swept", removed=removed)
        return removed

    def get_stats(self) -> dict:
        """Ledger size per tier."""
        return {tier.value: len(s) for tier, s in self._sets.items()}
