"""Test data factories using factory_boy.

These factories generate realistic test data for PumpAlert models.
"""

from tests.factories.token import (
    BaseTokenInfoFactory,
    MarketSnapshotFactory,
    TokenCandidateFactory,
    TokenProfileFactory,
)

__all__ = [
    "BaseTokenInfoFactory",
    "MarketSnapshotFactory",
    "TokenCandidateFactory",
    "TokenProfileFactory",
]
