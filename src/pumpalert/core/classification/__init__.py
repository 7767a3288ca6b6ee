"""Tier classification."""

from pumpalert.core.classification.classifier import TierClassifier, TierThresholds
from pumpalert.core.classification.venues import VenueFilter

__all__ = ["TierClassifier", "TierThresholds", "VenueFilter"]
