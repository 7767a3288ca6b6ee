"""Tests for DexScreener response models."""

from datetime import UTC, datetime

from pumpalert.services.dexscreener.models import MarketSnapshot, TokenProfile
from tests.fixtures.dexscreener_mock import MOCK_TOKEN_PROFILES, make_pair

ADDRESS = "7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs"


class TestMarketSnapshot:
    def test_parses_wire_pair(self) -> None:
        created = datetime(2025, 1, 15, 9, 50, tzinfo=UTC)
        snapshot = MarketSnapshot.model_validate(
            make_pair(ADDRESS, market_cap=91000, created_at=created, dex_id="raydium")
        )

        assert snapshot.token_address == ADDRESS
        assert snapshot.market_cap == 91000
        assert snapshot.pair_created_at == created
        assert snapshot.dex_id == "raydium"
        assert snapshot.txns.m5.buys == 42
        assert snapshot.volume.m5 == 4200
        assert snapshot.image_url == "https://example.com/wen.png"

    def test_missing_market_cap_is_zero(self) -> None:
        snapshot = MarketSnapshot.model_validate(make_pair(ADDRESS, market_cap=None))
        assert snapshot.market_cap == 0.0
        assert snapshot.pair_created_at is None

    def test_null_sections_use_defaults(self) -> None:
        pair = {**make_pair(ADDRESS), "txns": None, "info": None, "marketCap": None}

        snapshot = MarketSnapshot.model_validate(pair)

        assert snapshot.txns.m5.buys == 0
        assert snapshot.image_url is None
        assert snapshot.market_cap == 0.0


class TestTokenProfile:
    def test_parses_profile(self) -> None:
        profile = TokenProfile.model_validate(MOCK_TOKEN_PROFILES[0])

        assert profile.chain_id == "solana"
        assert profile.token_address == ADDRESS
