"""Token alert pipeline.

Stages, each run for a whole round before the next one starts:
1. Fetch: discovery candidates and secondary-venue listings
2. Evaluate: pre-filter -> market snapshot -> tier (plus HIGH rechecks
   of tokens already alerted at MID)
3. Deliver: dedup check -> notify -> record in the ledger

Per-token work inside a stage fans out under one semaphore, so at most
``max_concurrency`` tokens are in flight. A token appears at most once per
stage, so its check-then-record sequence never races itself.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, TypeVar

import structlog

from pumpalert.constants.polling import MAX_CONCURRENCY
from pumpalert.constants.thresholds import LISTING_MAX_AGE_MINUTES, MID_RETENTION_MINUTES
from pumpalert.core.classification import TierClassifier, VenueFilter
from pumpalert.core.clock import Clock, age_minutes, utc_now
from pumpalert.core.ledger import DedupLedger, TimedMembershipSet
from pumpalert.models.tier import RoundResult, Tier

if TYPE_CHECKING:
    from pumpalert.services.alerts.notifier import DiscordNotifier
    from pumpalert.services.dexscreener.client import DexScreenerClient
    from pumpalert.services.dexscreener.models import MarketSnapshot, TokenProfile
    from pumpalert.services.moralis.client import MoralisClient
    from pumpalert.services.moralis.models import TokenCandidate

logger = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class DeliveryStatus(str, Enum):
    """Outcome of delivering one evaluation."""

    SENT = "sent"
    DUPLICATE = "duplicate"
    FAILED = "failed"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Evaluation:
    """A token classified this round."""

    address: str
    snapshot: MarketSnapshot
    tier: Tier
    recheck: bool = False


class AlertPipeline:
    """Round stages from candidate fetch to alert delivery.

    Full flow: Fetch -> Prefilter -> Enrich -> Classify -> Dedup -> Notify
    """

    def __init__(
        self,
        candidate_feed: MoralisClient,
        market_feed: DexScreenerClient,
        classifier: TierClassifier,
        ledger: DedupLedger,
        notifier: DiscordNotifier,
        venue_filter: VenueFilter | None = None,
        max_concurrency: int = MAX_CONCURRENCY,
        secondary_feed_enabled: bool = True,
        high_tier_recheck_enabled: bool = True,
        listing_max_age_minutes: float = LISTING_MAX_AGE_MINUTES,
        listing_retention: timedelta = timedelta(minutes=MID_RETENTION_MINUTES),
        clock: Clock = utc_now,
    ) -> None:
        """Initialize pipeline with all components.

        Args:
            candidate_feed: Discovery feed (Moralis).
            market_feed: Enrichment and listing feed (DexScreener).
            classifier: Tier classifier.
            ledger: Dedup ledger shared across rounds.
            notifier: Alert delivery.
            venue_filter: Accepted venues for secondary listings.
            max_concurrency: Tokens processed at once within a stage.
            secondary_feed_enabled: Scan DexScreener profiles for listings.
            high_tier_recheck_enabled: Re-evaluate MID tokens for HIGH.
            listing_max_age_minutes: Oldest pair alerted as a new listing.
            listing_retention: How long a listing alert is remembered.
            clock: Time source.
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.candidate_feed = candidate_feed
        self.market_feed = market_feed
        self.classifier = classifier
        self.ledger = ledger
        self.notifier = notifier
        self.venue_filter = venue_filter or VenueFilter()
        self.max_concurrency = max_concurrency
        self.secondary_feed_enabled = secondary_feed_enabled
        self.high_tier_recheck_enabled = high_tier_recheck_enabled
        self.listing_max_age_minutes = listing_max_age_minutes
        self._clock = clock
        self._listings_seen = TimedMembershipSet(
            None, listing_retention, ledger.max_entries, clock, name="listings"
        )

    async def _fan_out(
        self,
        items: Sequence[T],
        worker: Callable[[T], Awaitable[R]],
    ) -> list[R | BaseException]:
        """Run ``worker`` over ``items`` with bounded concurrency.

        Returns once every task settled; exceptions are returned in place.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(item: T) -> R:
            async with semaphore:
                return await worker(item)

        return await asyncio.gather(*[bounded(i) for i in items], return_exceptions=True)

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def fetch_candidates(self) -> list[TokenCandidate]:
        """Discovery candidates for this round, unique by address."""
        candidates = await self.candidate_feed.fetch_candidates()
        unique: dict[str, TokenCandidate] = {}
        for candidate in candidates:
            unique.setdefault(candidate.address, candidate)
        return list(unique.values())

    async def fetch_listings(self, now: datetime, result: RoundResult) -> list[MarketSnapshot]:
        """New pairs on accepted venues for recently profiled tokens.

        Pairs already alerted, too old, or without a creation time are
        dropped here so the deliver stage only sees fresh listings.
        """
        if not self.secondary_feed_enabled:
            return []

        profiles = await self.market_feed.fetch_token_profiles()
        if not profiles:
            return []

        async def pairs_for(profile: TokenProfile) -> list[MarketSnapshot]:
            return await self.market_feed.fetch_token_pairs(profile.token_address)

        listings: dict[str, MarketSnapshot] = {}
        for profile, outcome in zip(profiles, await self._fan_out(profiles, pairs_for)):
            if isinstance(outcome, BaseException):
                result.errors += 1
                logger.error(
                    "listing_pairs_error",
                    address=profile.token_address,
                    error=str(outcome),
                )
                continue

            for pair in outcome:
                if pair.pair_address in listings or not self._is_fresh_listing(pair, now):
                    continue
                listings[pair.pair_address] = pair

        logger.info("listings_fetched", profiles=len(profiles), fresh=len(listings))
        return list(listings.values())

    def _is_fresh_listing(self, pair: MarketSnapshot, now: datetime) -> bool:
        if not pair.pair_address or not self.venue_filter.accepts(pair.dex_id):
            return False
        if pair.pair_created_at is None:
            return False
        if age_minutes(pair.pair_created_at, now) > self.listing_max_age_minutes:
            return False
        return not self._listings_seen.contains(pair.pair_address, now)

    # ------------------------------------------------------------------
    # Evaluate
    # ------------------------------------------------------------------

    def recheck_addresses(
        self, candidates: Sequence[TokenCandidate], now: datetime | None = None
    ) -> list[str]:
        """MID-alerted tokens that this round's evaluation would not reach.

        Candidates rejected by the pre-filter (typically past the discovery
        age window) are never enriched, so a live MID entry among them is
        rechecked like a token that left the feed.
        """
        if not self.high_tier_recheck_enabled:
            return []
        now = now or self._clock()
        evaluated = {
            c.address for c in candidates if self.classifier.prefilter(c, now) is None
        }
        return [a for a in self.ledger.mid_tier_addresses(now) if a not in evaluated]

    async def evaluate(self, candidate: TokenCandidate, now: datetime) -> Evaluation | None:
        """Pre-filter, enrich and classify one discovery candidate.

        Returns:
            Evaluation for a MID/HIGH token, None when skipped.
        """
        address = candidate.address

        skip_reason = self.classifier.prefilter(candidate, now)
        if skip_reason:
            logger.debug("token_skipped", address=address, reason=skip_reason)
            return None

        snapshot = await self.market_feed.fetch_snapshot(address)
        if snapshot is None:
            logger.debug("token_skipped", address=address, reason="no market data")
            return None

        tier = self.classifier.classify(candidate, snapshot, now)
        created_at = self.classifier.effective_created_at(candidate, snapshot)
        logger.info(
            "token_evaluated",
            address=address,
            market_cap=snapshot.market_cap,
            age_minutes=round(age_minutes(created_at, now), 1) if created_at else None,
            tier=tier.value,
        )

        if tier is Tier.NONE:
            return None
        return Evaluation(address=address, snapshot=snapshot, tier=tier)

    async def recheck(self, address: str, now: datetime) -> Evaluation | None:
        """Re-evaluate a MID-alerted token for promotion to HIGH."""
        snapshot = await self.market_feed.fetch_snapshot(address)
        if snapshot is None:
            return None

        tier = self.classifier.classify(None, snapshot, now)
        if tier is not Tier.HIGH:
            return None

        logger.info("token_promotion_candidate", address=address, market_cap=snapshot.market_cap)
        return Evaluation(address=address, snapshot=snapshot, tier=tier, recheck=True)

    async def evaluate_all(
        self,
        candidates: Sequence[TokenCandidate],
        recheck_addresses: Sequence[str],
        now: datetime,
        result: RoundResult,
    ) -> list[Evaluation]:
        """Evaluate every candidate and recheck in one bounded fan-out.

        A candidate also listed for recheck is only rechecked.
        """
        rechecks = set(recheck_addresses)
        work: list[tuple[str, TokenCandidate | None]] = [
            (c.address, c) for c in candidates if c.address not in rechecks
        ]
        work += [(a, None) for a in recheck_addresses]

        async def run(item: tuple[str, TokenCandidate | None]) -> Evaluation | None:
            address, candidate = item
            if candidate is None:
                return await self.recheck(address, now)
            return await self.evaluate(candidate, now)

        evaluations: list[Evaluation] = []
        for (address, candidate), outcome in zip(work, await self._fan_out(work, run)):
            if isinstance(outcome, BaseException):
                result.errors += 1
                logger.error("token_evaluation_error", address=address, error=str(outcome))
            elif outcome is not None:
                evaluations.append(outcome)
            elif candidate is not None:
                result.skipped += 1

        result.evaluated = len(evaluations)
        result.rechecked = len(recheck_addresses)
        return evaluations

    # ------------------------------------------------------------------
    # Deliver
    # ------------------------------------------------------------------

    async def deliver(self, evaluation: Evaluation) -> DeliveryStatus:
        """Notify a classified token unless the ledger already has it.

        The ledger is written only after a successful delivery, so a
        failed send leaves the token eligible next round.
        """
        address, tier = evaluation.address, evaluation.tier

        if tier is Tier.NONE:
            return DeliveryStatus.IGNORED

        # A live entry at this tier or any higher one suppresses the alert
        if any(
            self.ledger.has_notified(address, recorded)
            for recorded in (Tier.MID, Tier.HIGH)
            if recorded is tier or recorded.outranks(tier)
        ):
            return DeliveryStatus.DUPLICATE

        if not await self.notifier.notify(evaluation.snapshot, tier):
            return DeliveryStatus.FAILED

        self.ledger.record_notified(address, tier, self._clock())
        if tier is Tier.HIGH:
            self.ledger.promote(address)
        return DeliveryStatus.SENT

    async def deliver_listing(self, pair: MarketSnapshot) -> DeliveryStatus:
        """Notify a secondary listing once per pair address."""
        if self._listings_seen.contains(pair.pair_address):
            return DeliveryStatus.DUPLICATE
        if not await self.notifier.notify_listing(pair):
            return DeliveryStatus.FAILED
        self._listings_seen.add(pair.pair_address, self._clock())
        return DeliveryStatus.SENT

    async def deliver_all(
        self,
        evaluations: Sequence[Evaluation],
        listings: Sequence[MarketSnapshot],
        result: RoundResult,
    ) -> None:
        """Deliver tier alerts and listing alerts, updating ``result``."""
        for evaluation, outcome in zip(
            evaluations, await self._fan_out(evaluations, self.deliver)
        ):
            if isinstance(outcome, BaseException):
                result.errors += 1
                logger.error(
                    "token_delivery_error",
                    address=evaluation.address,
                    error=str(outcome),
                )
            elif outcome is DeliveryStatus.FAILED:
                result.delivery_failures += 1
            elif outcome is DeliveryStatus.SENT:
                if evaluation.tier is Tier.HIGH:
                    result.high_notified += 1
                else:
                    result.mid_notified += 1

        for pair, outcome in zip(listings, await self._fan_out(listings, self.deliver_listing)):
            if isinstance(outcome, BaseException):
                result.errors += 1
                logger.error(
                    "listing_delivery_error",
                    pair_address=pair.pair_address,
                    error=str(outcome),
                )
            elif outcome is DeliveryStatus.FAILED:
                result.delivery_failures += 1
            elif outcome is DeliveryStatus.SENT:
                result.listings_notified += 1

    def sweep(self, now: datetime | None = None) -> int:
        """Drop expired ledger and listing entries."""
        now = now or self._clock()
        return self.ledger.sweep(now) + self._listings_seen.sweep(now)
