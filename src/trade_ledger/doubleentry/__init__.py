"""Double-entry bookkeeping: accounts, journals and the trading chart."""

from trade_ledger.doubleentry.chart import default_accounts, default_codes, seed_chart
from trade_ledger.doubleentry.models import (
    Account,
    AccountType,
    EntryType,
    JournalTransaction,
    LedgerEntry,
    PostingLine,
)

__all__ = [
    "Account",
    "AccountType",
    "EntryType",
    "JournalTransaction",
    "LedgerEntry",
    "PostingLine",
    "default_accounts",
    "default_codes",
    "seed_chart",
]
