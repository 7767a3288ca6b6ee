"""Unit tests for TierClassifier."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from pumpalert.core.classification import TierClassifier, TierThresholds
from pumpalert.models.tier import Tier

THRESHOLDS = TierThresholds(
    mid_floor=16900,
    high_floor=80000,
    discovery_max_age_minutes=20,
    mid_max_age_minutes=20,
    high_max_age_minutes=120,
)


@pytest.fixture
def classifier() -> TierClassifier:
    return TierClassifier(THRESHOLDS)


class TestTierThresholds:
    """Tests for threshold validation."""

    def test_defaults(self) -> None:
        t = TierThresholds()
        assert t.mid_floor == 15000
        assert t.high_floor == 80000

    def test_mid_floor_must_be_below_high_floor(self) -> None:
        with pytest.raises(ValidationError, match="mid_floor must be lower"):
            TierThresholds(mid_floor=80000, high_floor=80000)

    def test_thresholds_are_frozen(self) -> None:
        with pytest.raises(ValidationError):
            THRESHOLDS.mid_floor = 1  # type: ignore[misc]


class TestPrefilter:
    """Tests for the discovery pre-filter."""

    def test_passes_fresh_candidate_above_floor(
        self, classifier, candidate_factory, clock
    ) -> None:
        candidate = candidate_factory(fully_diluted_valuation=20000, created_at=clock())
        assert classifier.prefilter(candidate, clock()) is None

    def test_rejects_fdv_below_mid_floor(self, classifier, candidate_factory, clock) -> None:
        candidate = candidate_factory(fully_diluted_valuation=16899, created_at=clock())
        assert classifier.prefilter(candidate, clock()).startswith("fdv")

    def test_fdv_at_mid_floor_passes(self, classifier, candidate_factory, clock) -> None:
        candidate = candidate_factory(fully_diluted_valuation=16900, created_at=clock())
        assert classifier.prefilter(candidate, clock()) is None

    def test_rejects_old_candidate(self, classifier, candidate_factory, clock) -> None:
        candidate = candidate_factory(
            fully_diluted_valuation=50000,
            created_at=clock() - timedelta(minutes=21),
        )
        assert classifier.prefilter(candidate, clock()).startswith("age")

    def test_age_at_ceiling_passes(self, classifier, candidate_factory, clock) -> None:
        candidate = candidate_factory(
            fully_diluted_valuation=50000,
            created_at=clock() - timedelta(minutes=20),
        )
        assert classifier.prefilter(candidate, clock()) is None

    def test_unknown_creation_time_passes(self, classifier, candidate_factory, clock) -> None:
        candidate = candidate_factory(fully_diluted_valuation=50000, created_at=None)
        assert classifier.prefilter(candidate, clock()) is None


class TestClassifyMetrics:
    """Boundary tests for classify_metrics."""

    @pytest.mark.parametrize(
        ("market_cap", "age", "expected"),
        [
            (16899, 5, Tier.NONE),
            (16900, 5, Tier.MID),
            (79999.99, 5, Tier.MID),
            (80000, 5, Tier.HIGH),
            (16900, 20, Tier.MID),
            (50000, 20, Tier.MID),
            (50000, 20.01, Tier.NONE),
            (90000, 120, Tier.HIGH),
            (90000, 120.01, Tier.NONE),
            (90000, 60, Tier.HIGH),
        ],
    )
    def test_boundaries(self, classifier, market_cap, age, expected) -> None:
        assert classifier.classify_metrics(market_cap, age) is expected

    def test_high_market_cap_never_falls_back_to_mid(self, classifier) -> None:
        """A HIGH-cap token past the HIGH age ceiling is not MID either."""
        assert classifier.classify_metrics(100000, 10) is Tier.HIGH
        assert classifier.classify_metrics(100000, 130) is Tier.NONE


class TestClassify:
    """Tests for classify with candidate and snapshot."""

    def test_uses_pair_creation_time(
        self, classifier, candidate_factory, snapshot_factory, clock
    ) -> None:
        candidate = candidate_factory(created_at=clock() - timedelta(minutes=5))
        snapshot = snapshot_factory(
            market_cap=20000,
            pair_created_at=clock() - timedelta(minutes=30),
        )

        assert classifier.classify(candidate, snapshot, clock()) is Tier.NONE

    def test_mid_floor_at_age_ceiling(
        self, classifier, candidate_factory, snapshot_factory, clock
    ) -> None:
        candidate = candidate_factory(created_at=clock() - timedelta(minutes=20))
        snapshot = snapshot_factory(
            market_cap=16900,
            pair_created_at=clock() - timedelta(minutes=20),
        )

        assert classifier.classify(candidate, snapshot, clock()) is Tier.MID

    def test_falls_back_to_candidate_creation_time(
        self, classifier, candidate_factory, snapshot_factory, clock
    ) -> None:
        candidate = candidate_factory(created_at=clock() - timedelta(minutes=5))
        snapshot = snapshot_factory(market_cap=20000, pair_created_at=None)

        assert classifier.classify(candidate, snapshot, clock()) is Tier.MID

    def test_no_creation_time_anywhere_is_none(
        self, classifier, candidate_factory, snapshot_factory, clock
    ) -> None:
        candidate = candidate_factory(created_at=None)
        snapshot = snapshot_factory(market_cap=90000, pair_created_at=None)

        assert classifier.classify(candidate, snapshot, clock()) is Tier.NONE

    def test_recheck_without_candidate(self, classifier, snapshot_factory, clock) -> None:
        snapshot = snapshot_factory(
            market_cap=90000,
            pair_created_at=clock() - timedelta(minutes=40),
        )
        assert classifier.classify(None, snapshot, clock()) is Tier.HIGH

    def test_missing_market_cap_is_none(
        self, classifier, candidate_factory, snapshot_factory, clock
    ) -> None:
        snapshot = snapshot_factory(market_cap=None, pair_created_at=clock())
        assert snapshot.market_cap == 0
        assert classifier.classify(candidate_factory(), snapshot, clock()) is Tier.NONE
