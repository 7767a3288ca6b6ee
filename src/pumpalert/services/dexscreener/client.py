"""DexScreener API client for market enrichment and secondary listings.

API Documentation: https://docs.dexscreener.com/api/reference
Rate Limits: ~300 requests/minute (no auth required)
"""

import httpx
import structlog

from pumpalert.constants.polling import (
    DEXSCREENER_BASE_URL,
    FETCH_MAX_RETRIES,
    FETCH_RETRY_DELAY_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)
from pumpalert.core.exceptions import ExternalServiceError
from pumpalert.services.base import BaseAPIClient
from pumpalert.services.dexscreener.models import MarketSnapshot, TokenProfile

log = structlog.get_logger(__name__)


class DexScreenerClient(BaseAPIClient):
    """DexScreener API client.

    Endpoints used:
        - GET /tokens/v1/solana/{address} - Market snapshot for a token
        - GET /token-profiles/latest/v1 - Latest token profiles
        - GET /token-pairs/v1/solana/{address} - All pairs of a token

    Every method degrades instead of raising: [] for lists, None for a
    single snapshot.

    Example:
        client = DexScreenerClient()
        try:
            snapshot = await client.fetch_snapshot(address)
        finally:
            await client.close()
    """

    SERVICE_NAME = "dexscreener"
    SOLANA_CHAIN_ID = "solana"

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        max_retries: int = FETCH_MAX_RETRIES,
        retry_delay: float = FETCH_RETRY_DELAY_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize DexScreener client."""
        super().__init__(
            base_url=DEXSCREENER_BASE_URL,
            timeout=timeout,
            headers={"accept": "application/json"},
            max_retries=max_retries,
            retry_delay=retry_delay,
            transport=transport,
        )
        log.info("dexscreener_client_initialized", base_url=DEXSCREENER_BASE_URL)

    def _parse_pairs(self, data: object, address: str) -> list[MarketSnapshot]:
        """Parse a list of pair dicts, skipping malformed ones."""
        if not isinstance(data, list):
            log.warning(
                "pairs_unexpected_format",
                address=address,
                data_type=type(data).__name__,
            )
            return []

        pairs = []
        for item in data:
            try:
                pairs.append(MarketSnapshot.model_validate(item))
            except ValueError as e:
                log.warning("pair_parse_error", address=address, error=str(e))
        return pairs

    async def fetch_snapshot(self, address: str) -> MarketSnapshot | None:
        """Fetch the market snapshot for a token address.

        Args:
            address: Solana token mint address.

        Returns:
            The token's primary pair, or None when the token has no pair
            yet or every attempt failed.
        """
        try:
            response = await self.get(f"/tokens/v1/{self.SOLANA_CHAIN_ID}/{address}")
            pairs = self._parse_pairs(response.json(), address)
        except ExternalServiceError as e:
            log.warning("snapshot_fetch_failed", address=address, error=str(e))
            return None
        except ValueError as e:
            log.warning("snapshot_unexpected_format", address=address, error=str(e))
            return None

        if not pairs:
            log.debug("snapshot_no_pairs", address=address)
            return None
        return pairs[0]

    async def fetch_token_profiles(self) -> list[TokenProfile]:
        """Fetch latest token profiles filtered to Solana.

        Returns:
            List of TokenProfile models for Solana chain only.
        """
        try:
            response = await self.get("/token-profiles/latest/v1")
            data = response.json()
        except ExternalServiceError as e:
            log.warning("token_profiles_fetch_failed", error=str(e))
            return []
        except ValueError as e:
            log.warning("token_profiles_unexpected_format", error=str(e))
            return []

        if not isinstance(data, list):
            log.warning("token_profiles_unexpected_format", data_type=type(data).__name__)
            return []

        profiles = []
        for item in data:
            if not isinstance(item, dict) or item.get("chainId") != self.SOLANA_CHAIN_ID:
                continue
            try:
                profiles.append(TokenProfile.model_validate(item))
            except ValueError as e:
                log.warning("token_profile_parse_error", error=str(e))

        log.info("token_profiles_fetched", total=len(data), solana_count=len(profiles))
        return profiles

    async def fetch_token_pairs(self, address: str) -> list[MarketSnapshot]:
        """Fetch every trading pair of a token.

        Args:
            address: Solana token mint address.

        Returns:
            Pairs on all venues, empty on failure.
        """
        try:
            response = await self.get(f"/token-pairs/v1/{self.SOLANA_CHAIN_ID}/{address}")
            return self._parse_pairs(response.json(), address)
        except ExternalServiceError as e:
            log.warning("token_pairs_fetch_failed", address=address, error=str(e))
            return []
        except ValueError as e:
            log.warning("token_pairs_unexpected_format", address=address, error=str(e))
            return []
