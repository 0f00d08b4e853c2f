"""Double-entry ledger and trading-position engine.

Example:
    from trade_ledger import InMemoryStore, commit_trade, parse_legs, seed_chart

    store = InMemoryStore()
    seed_chart(store)
    result = commit_trade(store, parse_legs(raw_legs), strategy="Short Call", trade_num="42")
    for leg in result.results:
        print(leg.leg_id, leg.action, leg.realized_pl)
"""

from trade_ledger.commit import commit_trade
from trade_ledger.config import AccountCodes, LedgerConfig, MatchOrder
from trade_ledger.doubleentry.chart import seed_chart
from trade_ledger.doubleentry.posting import post_entry, reverse_journal
from trade_ledger.exceptions import (
    LedgerError,
    MalformedLegError,
    PositionStateError,
    UnbalancedEntryError,
    UnknownAccountError,
    VersionConflictError,
)
from trade_ledger.legs import Leg, LegKind, load_legs, parse_legs
from trade_ledger.money import Money
from trade_ledger.results import CommitResult, LegOutcome, LegResult, SkippedLeg, SkipReason
from trade_ledger.reversal import ReversalResult, reverse_trade
from trade_ledger.store import InMemoryStore, LedgerStore, SqlStore

__version__ = "0.1.0"

__all__ = [
    "AccountCodes",
    "CommitResult",
    "InMemoryStore",
    "Leg",
    "LegKind",
    "LegOutcome",
    "LegResult",
    "LedgerConfig",
    "LedgerError",
    "LedgerStore",
    "MalformedLegError",
    "MatchOrder",
    "Money",
    "PositionStateError",
    "ReversalResult",
    "SkipReason",
    "SkippedLeg",
    "SqlStore",
    "UnbalancedEntryError",
    "UnknownAccountError",
    "VersionConflictError",
    "__version__",
    "commit_trade",
    "load_legs",
    "parse_legs",
    "post_entry",
    "reverse_journal",
    "reverse_trade",
    "seed_chart",
]
