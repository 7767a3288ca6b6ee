"""Pydantic models for Moralis pump.fun listing responses.

Models are lenient: a malformed valuation becomes 0 and a malformed
timestamp becomes None, so one bad record never aborts a round.
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from pumpalert.core.clock import parse_timestamp


class TokenCandidate(BaseModel):
    """Token listed by the discovery feed.

    Attributes:
        address: Token mint address (unique key).
        fully_diluted_valuation: FDV estimate in USD (0 when missing).
        created_at: Token creation time, None if missing or unparsable.
            Graduated listings report ``graduatedAt`` instead.
        name: Display name (opaque to the pipeline).
        symbol: Ticker symbol (opaque to the pipeline).
        logo: Logo URL.
    """

    model_config = ConfigDict(populate_by_name=True)

    address: str = Field(alias="tokenAddress")
    fully_diluted_valuation: float = Field(default=0.0, alias="fullyDilutedValuation")
    created_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "graduatedAt", "created_at"),
    )
    name: str | None = None
    symbol: str | None = None
    logo: str | None = None

    @field_validator("fully_diluted_valuation", mode="before")
    @classmethod
    def coerce_valuation(cls, v: Any) -> float:
        """Treat missing or non-numeric valuations as zero."""
        if v is None:
            return 0.0
        try:
            return float(v)
        except (TypeError, ValueError):
            return 0.0

    @field_validator("created_at", mode="before")
    @classmethod
    def coerce_created_at(cls, v: Any) -> datetime | None:
        """Parse ISO strings / epoch millis, dropping unparsable values."""
        return parse_timestamp(v)


class TokenListResponse(BaseModel):
    """Envelope of the ``/new`` and ``/graduated`` endpoints."""

    result: list[dict[str, Any]] | None = None
