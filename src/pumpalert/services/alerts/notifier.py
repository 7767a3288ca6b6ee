"""Discord webhook notifier.

Delivery is attempted once and retried exactly once more after a short
fixed delay. A failure after the retry is logged and reported as False;
it never raises, so the round carries on and the caller leaves the dedup
ledger untouched.
"""

from collections.abc import Mapping
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from pumpalert.constants.polling import (
    NOTIFY_MAX_ATTEMPTS,
    NOTIFY_RETRY_DELAY_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)
from pumpalert.core.clock import Clock, utc_now
from pumpalert.core.exceptions import NotificationError
from pumpalert.models.tier import Tier
from pumpalert.services.alerts.embeds import build_listing_embed, build_tier_embed
from pumpalert.services.dexscreener.models import MarketSnapshot

logger = structlog.get_logger(__name__)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "webhook_send_retrying",
        attempt=retry_state.attempt_number,
        error=str(error),
    )


class DiscordNotifier:
    """Posts alert embeds to one Discord webhook per tier."""

    def __init__(
        self,
        channels: Mapping[Tier, str],
        retry_delay: float = NOTIFY_RETRY_DELAY_SECONDS,
        max_attempts: int = NOTIFY_MAX_ATTEMPTS,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        clock: Clock = utc_now,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            channels: Webhook URL per tier (MID and HIGH).
            retry_delay: Seconds between the attempt and its retry.
            max_attempts: Total attempts (initial + retries).
            timeout: Request timeout in seconds.
            clock: Time source for embed timestamps.
            transport: Optional httpx transport.
        """
        missing = [t.value for t in (Tier.MID, Tier.HIGH) if not channels.get(t)]
        if missing:
            raise ValueError(f"Missing webhook channel for tiers: {missing}")

        self.channels = dict(channels)
        self.retry_delay = retry_delay
        self.max_attempts = max_attempts
        self.timeout = timeout
        self._clock = clock
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _post(self, url: str, payload: dict[str, Any]) -> None:
        client = await self._get_client()
        response = await client.post(url, json=payload)
        response.raise_for_status()

    async def _deliver(self, tier: Tier, embed: dict[str, Any], label: str) -> None:
        """Send one embed with a single retry.

        Raises:
            NotificationError: If every attempt failed.
        """
        url = self.channels[tier]
        payload = {"embeds": [embed]}

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_fixed(self.retry_delay),
                retry=retry_if_exception_type(httpx.HTTPError),
                before_sleep=_log_retry,
                reraise=True,
            ):
                with attempt:
                    await self._post(url, payload)
        except httpx.HTTPError as e:
            raise NotificationError(tier.value, f"{label}: {e}") from e

    async def notify(self, snapshot: MarketSnapshot, tier: Tier) -> bool:
        """Deliver a tier alert to the tier's channel.

        Returns:
            True once delivered, False if both attempts failed.
        """
        if tier not in (Tier.MID, Tier.HIGH):
            raise ValueError(f"Cannot notify tier {tier.value!r}")

        label = snapshot.base_token.symbol or snapshot.token_address
        embed = build_tier_embed(snapshot, tier, self._clock())
        try:
            await self._deliver(tier, embed, label)
        except NotificationError as e:
            logger.error(
                "webhook_send_failed",
                channel=e.channel,
                address=snapshot.token_address,
                attempts=self.max_attempts,
                error=str(e),
            )
            return False

        logger.info(
            "alert_sent",
            tier=tier.value,
            symbol=snapshot.base_token.symbol,
            address=snapshot.token_address,
            market_cap=snapshot.market_cap,
        )
        return True

    async def notify_listing(self, pair: MarketSnapshot) -> bool:
        """Deliver a secondary-venue listing alert on the mid-tier channel."""
        label = pair.base_token.symbol or pair.token_address
        embed = build_listing_embed(pair, self._clock())
        try:
            await self._deliver(Tier.MID, embed, label)
        except NotificationError as e:
            logger.error(
                "webhook_send_failed",
                channel=e.channel,
                pair_address=pair.pair_address,
                attempts=self.max_attempts,
                error=str(e),
            )
            return False

        logger.info(
            "listing_alert_sent",
            symbol=pair.base_token.symbol,
            dex_id=pair.dex_id,
            pair_address=pair.pair_address,
        )
        return True
