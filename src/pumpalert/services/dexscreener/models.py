"""Pydantic models for DexScreener API responses.

This module defines data models for parsing DexScreener API responses.
Models use Pydantic for validation and type coercion.

API Documentation: https://docs.dexscreener.com/api/reference
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pumpalert.core.clock import parse_timestamp


class TokenProfile(BaseModel):
    """Token from the profiles endpoint.

    Represents a token with a verified profile on DexScreener.

    Attributes:
        chain_id: Blockchain identifier.
        token_address: Token contract/mint address.
        url: DexScreener URL for the token.
        icon: URL to token icon image.
        description: Token description text.
    """

    model_config = ConfigDict(populate_by_name=True)

    chain_id: str = Field(alias="chainId")
    token_address: str = Field(alias="tokenAddress")
    url: str | None = None
    icon: str | None = None
    description: str | None = None


class BaseTokenInfo(BaseModel):
    """Base token information within a trading pair.

    Attributes:
        address: Token contract/mint address.
        name: Token name.
        symbol: Token ticker symbol.
    """

    address: str
    name: str | None = None
    symbol: str | None = None


class VolumeInfo(BaseModel):
    """Trading volume information (USD)."""

    h24: float | None = None
    h6: float | None = None
    h1: float | None = None
    m5: float | None = None


class TxnCounts(BaseModel):
    """Buy/sell counts for one window."""

    buys: int = 0
    sells: int = 0


class TxnInfo(BaseModel):
    """Transaction counters per window."""

    m5: TxnCounts = Field(default_factory=TxnCounts)
    h1: TxnCounts = Field(default_factory=TxnCounts)
    h6: TxnCounts = Field(default_factory=TxnCounts)
    h24: TxnCounts = Field(default_factory=TxnCounts)


class PriceChangeInfo(BaseModel):
    """Price change percentages per window."""

    m5: float | None = None
    h1: float | None = None
    h6: float | None = None
    h24: float | None = None


class PairInfo(BaseModel):
    """Display metadata attached to a pair."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str | None = Field(default=None, alias="imageUrl")


class MarketSnapshot(BaseModel):
    """Trading pair market data for a token.

    One DexScreener pair, used both as the enrichment of a discovery
    candidate and as a secondary listing.

    Attributes:
        chain_id: Blockchain identifier.
        dex_id: DEX identifier (e.g., "raydium", "pumpswap").
        url: DexScreener viewer URL.
        pair_address: Trading pair contract address.
        base_token: Base token information.
        price_usd: Current price in USD (string as returned by the API).
        market_cap: Market capitalization in USD, 0 when absent.
        pair_created_at: Pair creation time, None when absent or invalid.
        volume: Trading volume data.
        txns: Buy/sell counters.
        price_change: Price change percentages.
        info: Display metadata (thumbnail).
    """

    model_config = ConfigDict(populate_by_name=True)

    chain_id: str = Field(default="solana", alias="chainId")
    dex_id: str = Field(default="", alias="dexId")
    url: str | None = None
    pair_address: str = Field(default="", alias="pairAddress")
    base_token: BaseTokenInfo = Field(alias="baseToken")
    price_usd: str | None = Field(default=None, alias="priceUsd")
    market_cap: float = Field(default=0.0, alias="marketCap")
    pair_created_at: datetime | None = Field(default=None, alias="pairCreatedAt")
    volume: VolumeInfo = Field(default_factory=VolumeInfo)
    txns: TxnInfo = Field(default_factory=TxnInfo)
    price_change: PriceChangeInfo = Field(default_factory=PriceChangeInfo, alias="priceChange")
    info: PairInfo | None = None

    @model_validator(mode="before")
    @classmethod
    def drop_null_sections(cls, data: Any) -> Any:
        """Explicit nulls fall back to field defaults."""
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("market_cap", mode="before")
    @classmethod
    def coerce_market_cap(cls, v: Any) -> float:
        """Missing market cap is treated as zero."""
        if v is None:
            return 0.0
        try:
            return float(v)
        except (TypeError, ValueError):
            return 0.0

    @field_validator("pair_created_at", mode="before")
    @classmethod
    def coerce_pair_created_at(cls, v: Any) -> datetime | None:
        """Epoch millis to datetime; junk becomes None."""
        return parse_timestamp(v)

    @property
    def token_address(self) -> str:
        """Address of the token this pair trades."""
        return self.base_token.address

    @property
    def image_url(self) -> str | None:
        """Thumbnail URL if DexScreener has one."""
        return self.info.image_url if self.info else None
