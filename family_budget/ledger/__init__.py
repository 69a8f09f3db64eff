"""Month-indexed ledger: store, aggregation and local cache."""

from family_budget.ledger.cache import CACHE_KEY, CachedLedger, LocalLedgerCache
from family_budget.ledger.store import LedgerStore, MutationResult

__all__ = [
    "CACHE_KEY",
    "CachedLedger",
    "LedgerStore",
    "LocalLedgerCache",
    "MutationResult",
]
