"""Moralis Solana gateway client for pump.fun token discovery.

Endpoints used:
    - GET /token/mainnet/exchange/pumpfun/new - Freshly launched tokens
    - GET /token/mainnet/exchange/pumpfun/graduated - Tokens that left the curve

Each request is authenticated with the key the CredentialRotator assigns to
the current time slice. Failures never propagate: an exhausted fetch
returns an empty list and the round simply has no candidates from it.
"""

import asyncio

import httpx
import structlog

from pumpalert.constants.polling import (
    FEED_LIMIT,
    FETCH_MAX_RETRIES,
    FETCH_RETRY_DELAY_SECONDS,
    MORALIS_BASE_URL,
    REQUEST_TIMEOUT_SECONDS,
)
from pumpalert.core.exceptions import ExternalServiceError
from pumpalert.services.base import BaseAPIClient
from pumpalert.services.credentials.rotator import CredentialRotator
from pumpalert.services.moralis.models import TokenCandidate, TokenListResponse

log = structlog.get_logger(__name__)

NEW_TOKENS_PATH = "/token/mainnet/exchange/pumpfun/new"
GRADUATED_TOKENS_PATH = "/token/mainnet/exchange/pumpfun/graduated"


class MoralisClient(BaseAPIClient):
    """Discovery feed client.

    Example:
        client = MoralisClient(rotator)
        try:
            candidates = await client.fetch_candidates()
        finally:
            await client.close()
    """

    SERVICE_NAME = "moralis"

    def __init__(
        self,
        rotator: CredentialRotator,
        limit: int = FEED_LIMIT,
        include_graduated: bool = True,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        max_retries: int = FETCH_MAX_RETRIES,
        retry_delay: float = FETCH_RETRY_DELAY_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Moralis client.

        Args:
            rotator: Supplies the API key for each request.
            limit: Result count per listing request.
            include_graduated: Also poll the graduated listing.
            timeout: Request timeout in seconds.
            max_retries: Attempts per request.
            retry_delay: Fixed delay between attempts.
            transport: Optional httpx transport.
        """
        super().__init__(
            base_url=MORALIS_BASE_URL,
            timeout=timeout,
            headers={"accept": "application/json"},
            max_retries=max_retries,
            retry_delay=retry_delay,
            transport=transport,
        )
        self.rotator = rotator
        self.limit = limit
        self.include_graduated = include_graduated
        log.info("moralis_client_initialized", limit=limit, keys=rotator.pool_size)

    async def _fetch_listing(self, path: str, listing: str) -> list[TokenCandidate]:
        """Fetch and parse one listing endpoint, degrading to []."""
        try:
            response = await self.get(
                path,
                params={"limit": self.limit},
                headers={"X-API-Key": self.rotator.current_credential()},
            )
            payload = TokenListResponse.model_validate(response.json())
        except ExternalServiceError as e:
            log.warning(
                "listing_fetch_failed",
                listing=listing,
                status_code=e.status_code,
                error=str(e),
            )
            return []
        except ValueError as e:
            # Undecodable JSON or an envelope of the wrong shape
            log.warning("listing_unexpected_format", listing=listing, error=str(e))
            return []

        candidates: list[TokenCandidate] = []
        for item in payload.result or []:
            try:
                candidates.append(TokenCandidate.model_validate(item))
            except ValueError as e:
                log.warning("candidate_parse_error", listing=listing, error=str(e))

        log.info("listing_fetched", listing=listing, count=len(candidates))
        return candidates

    async def fetch_new_tokens(self) -> list[TokenCandidate]:
        """Fetch freshly launched pump.fun tokens."""
        return await self._fetch_listing(NEW_TOKENS_PATH, "new")

    async def fetch_graduated_tokens(self) -> list[TokenCandidate]:
        """Fetch tokens that recently graduated from the bonding curve."""
        return await self._fetch_listing(GRADUATED_TOKENS_PATH, "graduated")

    async def fetch_candidates(self) -> list[TokenCandidate]:
        """Fetch all candidate tokens for a round.

        Merges the new and (optionally) graduated listings, keeping the
        first record seen for each address so a token is never processed
        twice in one round.

        Returns:
            De-duplicated candidates, empty if every listing failed.
        """
        if self.include_graduated:
            new, graduated = await asyncio.gather(
                self.fetch_new_tokens(), self.fetch_graduated_tokens()
            )
        else:
            new, graduated = await self.fetch_new_tokens(), []

        unique: dict[str, TokenCandidate] = {}
        for candidate in [*new, *graduated]:
            unique.setdefault(candidate.address, candidate)

        return list(unique.values())
