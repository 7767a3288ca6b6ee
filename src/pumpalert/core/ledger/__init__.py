"""Alert deduplication ledger."""

from pumpalert.core.ledger.dedup_ledger import DedupLedger, LedgerEntry, TimedMembershipSet

__all__ = ["DedupLedger", "LedgerEntry", "TimedMembershipSet"]
