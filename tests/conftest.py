"""Shared pytest fixtures for PumpAlert tests.

This module provides fixtures for:
- Environment variables required by Settings
- A controllable clock
- Test data factories
- Mocked pipeline collaborators

Usage:
    @pytest.mark.unit
    def test_something(clock, snapshot_factory):
        snapshot = snapshot_factory(market_cap=20000)
        clock.advance(minutes=5)
"""

import os
from collections.abc import Generator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.factories.token import (
    MarketSnapshotFactory,
    TokenCandidateFactory,
    TokenProfileFactory,
)
from tests.fixtures.clock import FakeClock

pytest_plugins = [
    "tests.fixtures.dexscreener_mock",
    "tests.fixtures.moralis_mock",
]

# =============================================================================
# Environment Configuration
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """Set up test environment variables.

    Loads .env file first, then sets defaults for any missing variables.
    """
    from dotenv import load_dotenv

    original_env = os.environ.copy()

    # Load .env file if it exists (won't override existing env vars)
    load_dotenv()

    os.environ.setdefault("MORALIS_API_KEYS", '["test-key-1", "test-key-2"]')
    os.environ.setdefault("MID_TIER_WEBHOOK_URL", "https://discord.test/api/webhooks/mid")
    os.environ.setdefault("HIGH_TIER_WEBHOOK_URL", "https://discord.test/api/webhooks/high")

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Drop cached Settings between tests."""
    from pumpalert.config.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at 2025-01-15 10:00 UTC."""
    return FakeClock(datetime(2025, 1, 15, 10, 0, tzinfo=UTC))


# =============================================================================
# Factory Fixtures
# =============================================================================


@pytest.fixture
def candidate_factory() -> type[TokenCandidateFactory]:
    """Provide factory for discovery candidates."""
    return TokenCandidateFactory


@pytest.fixture
def snapshot_factory() -> type[MarketSnapshotFactory]:
    """Provide factory for market snapshots / pairs."""
    return MarketSnapshotFactory


@pytest.fixture
def profile_factory() -> type[TokenProfileFactory]:
    """Provide factory for DexScreener token profiles."""
    return TokenProfileFactory


# =============================================================================
# Collaborator Mocks
# =============================================================================


@pytest.fixture
def mock_candidate_feed() -> MagicMock:
    """Discovery feed returning no candidates."""
    feed = MagicMock()
    feed.fetch_candidates = AsyncMock(return_value=[])
    feed.close = AsyncMock()
    return feed


@pytest.fixture
def mock_market_feed() -> MagicMock:
    """Market feed with no data."""
    feed = MagicMock()
    feed.fetch_snapshot = AsyncMock(return_value=None)
    feed.fetch_token_profiles = AsyncMock(return_value=[])
    feed.fetch_token_pairs = AsyncMock(return_value=[])
    feed.close = AsyncMock()
    return feed


@pytest.fixture
def mock_notifier() -> MagicMock:
    """Notifier whose deliveries always succeed."""
    notifier = MagicMock()
    notifier.notify = AsyncMock(return_value=True)
    notifier.notify_listing = AsyncMock(return_value=True)
    notifier.close = AsyncMock()
    return notifier
