"""PumpAlert - process entry point."""

import asyncio
import signal
import sys
from datetime import timedelta

import structlog

from pumpalert.config import Settings, get_settings
from pumpalert.config.logging import configure_logging
from pumpalert.core.classification import TierClassifier, TierThresholds, VenueFilter
from pumpalert.core.exceptions import ConfigurationError
from pumpalert.core.ledger import DedupLedger
from pumpalert.models.tier import Tier
from pumpalert.scheduler.poller import PollScheduler
from pumpalert.scheduler.scheduler import get_scheduler, shutdown_scheduler, start_scheduler
from pumpalert.services.alerts.notifier import DiscordNotifier
from pumpalert.services.alerts.pipeline import AlertPipeline
from pumpalert.services.credentials.rotator import CredentialRotator
from pumpalert.services.dexscreener.client import DexScreenerClient
from pumpalert.services.moralis.client import MoralisClient

log = structlog.get_logger()


def build_pipeline(settings: Settings) -> AlertPipeline:
    """Wire clients, classifier, ledger and notifier from settings."""
    rotator = CredentialRotator(
        [key.get_secret_value() for key in settings.moralis_api_keys],
        hours_per_block=settings.hours_per_block,
        seed=settings.rotation_seed,
    )
    fetch_options = {
        "timeout": settings.request_timeout_seconds,
        "max_retries": settings.fetch_max_retries,
        "retry_delay": settings.fetch_retry_delay_seconds,
    }
    candidate_feed = MoralisClient(
        rotator,
        limit=settings.feed_limit,
        include_graduated=settings.graduated_feed_enabled,
        **fetch_options,
    )
    market_feed = DexScreenerClient(**fetch_options)

    classifier = TierClassifier(
        TierThresholds(
            mid_floor=settings.mid_floor,
            high_floor=settings.high_floor,
            discovery_max_age_minutes=settings.discovery_max_age_minutes,
            mid_max_age_minutes=settings.mid_max_age_minutes,
            high_max_age_minutes=settings.high_max_age_minutes,
        )
    )
    mid_retention = timedelta(minutes=settings.mid_retention_minutes)
    ledger = DedupLedger(
        mid_retention=mid_retention,
        high_retention=timedelta(minutes=settings.high_retention_minutes),
        max_entries=settings.ledger_max_entries,
    )
    notifier = DiscordNotifier(
        {
            Tier.MID: settings.mid_tier_webhook_url,
            Tier.HIGH: settings.high_tier_webhook_url,
        },
        retry_delay=settings.notify_retry_delay_seconds,
        timeout=settings.request_timeout_seconds,
    )

    return AlertPipeline(
        candidate_feed=candidate_feed,
        market_feed=market_feed,
        classifier=classifier,
        ledger=ledger,
        notifier=notifier,
        venue_filter=VenueFilter(
            allow=settings.venue_allowlist,
            deny=settings.venue_denylist,
        ),
        max_concurrency=settings.max_concurrency,
        secondary_feed_enabled=settings.secondary_feed_enabled,
        high_tier_recheck_enabled=settings.high_tier_recheck_enabled,
        listing_max_age_minutes=settings.listing_max_age_minutes,
        listing_retention=mid_retention,
    )


async def close_pipeline(pipeline: AlertPipeline) -> None:
    """Close every HTTP client owned by the pipeline."""
    await pipeline.candidate_feed.close()
    await pipeline.market_feed.close()
    await pipeline.notifier.close()


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop_event.set))


async def run(settings: Settings) -> None:
    """Poll until SIGINT/SIGTERM, then shut down cleanly."""
    pipeline = build_pipeline(settings)
    poller = PollScheduler(
        pipeline,
        scheduler=get_scheduler(),
        default_interval_seconds=settings.default_interval_seconds,
        fast_interval_seconds=settings.fast_interval_seconds,
        fast_threshold=settings.fast_threshold,
    )

    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)

    await start_scheduler()
    poller.start()
    log.info("startup_complete", app_name=settings.app_name)

    try:
        await stop_event.wait()
    finally:
        log.info("shutdown_requested")
        poller.stop()
        await poller.wait_idle()
        await shutdown_scheduler()
        await close_pipeline(pipeline)
        log.info("shutdown_complete")


def main() -> None:
    """Console script entry point."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
