"""Default trading chart of accounts."""

import logging
from typing import TYPE_CHECKING

from trade_ledger.doubleentry.models import Account, AccountType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from trade_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)

# =============================================================================
# CHART OF ACCOUNTS
# =============================================================================
# Codes are prefixed "T-" for the trading entity. The first digit follows the
# usual convention: 1 assets, 2 liabilities, 3 equity, 4 revenue, 5-6 expenses.
# The engine itself only relies on the codes named in AccountCodes (config).
# =============================================================================

_CHART: list[tuple[str, str, AccountType]] = [
    # -------------------------------------------------------------------------
    # ASSETS (Debit increases)
    # -------------------------------------------------------------------------
    ("T-1010", "Trading Cash Account", AccountType.ASSET),
    ("T-1020", "Margin Account Cash", AccountType.ASSET),
    ("T-1100", "Stock Positions - Long", AccountType.ASSET),
    ("T-1200", "Options Positions - Long Calls", AccountType.ASSET),
    ("T-1210", "Options Positions - Long Puts", AccountType.ASSET),
    # -------------------------------------------------------------------------
    # LIABILITIES (Credit increases)
    # -------------------------------------------------------------------------
    ("T-2010", "Margin Loan Payable", AccountType.LIABILITY),
    ("T-2100", "Options Positions - Short Calls", AccountType.LIABILITY),
    ("T-2110", "Options Positions - Short Puts", AccountType.LIABILITY),
    ("T-2200", "Stock Positions - Short", AccountType.LIABILITY),
    # -------------------------------------------------------------------------
    # EQUITY (Credit increases)
    # -------------------------------------------------------------------------
    ("T-3010", "Trading Capital", AccountType.EQUITY),
    ("T-3100", "Retained Earnings - Trading", AccountType.EQUITY),
    # -------------------------------------------------------------------------
    # REVENUE (Credit increases)
    # -------------------------------------------------------------------------
    ("T-4010", "Stock Trading Gains - Short Term", AccountType.REVENUE),
    ("T-4020", "Stock Trading Gains - Long Term", AccountType.REVENUE),
    ("T-4140", "Options Income - Realized Gains", AccountType.REVENUE),
    ("T-4300", "Dividend Income - Trading", AccountType.REVENUE),
    # -------------------------------------------------------------------------
    # EXPENSES (Debit increases)
    # -------------------------------------------------------------------------
    ("T-5010", "Stock Trading Losses - Short Term", AccountType.EXPENSE),
    ("T-5020", "Stock Trading Losses - Long Term", AccountType.EXPENSE),
    ("T-5140", "Options Losses - Realized Losses", AccountType.EXPENSE),
    ("T-6010", "Brokerage Commissions", AccountType.EXPENSE),
    ("T-6020", "Options Contract Fees", AccountType.EXPENSE),
]


def default_accounts() -> list[Account]:
    """Return fresh, zero-balance copies of the default chart."""
    return [Account(code=code, name=name, account_type=kind) for code, name, kind in _CHART]


def default_codes() -> list[str]:
    return [code for code, _, _ in _CHART]


def seed_chart(store: "LedgerStore", accounts: "Iterable[Account] | None" = None) -> list[Account]:
    """Create any missing accounts in the store.

    Existing accounts are left untouched, so seeding twice is harmless and never
    resets a balance.

    Args:
        store: Target ledger store
        accounts: Accounts to seed (default: the trading chart above)

    Returns:
        The accounts that were newly created
    """
    created: list[Account] = []
    with store.transaction():
        for account in accounts if accounts is not None else default_accounts():
            if store.get_account(account.code) is not None:
                continue
            store.add_account(account)
            created.append(account)

    logger.info("Seeded %d account(s)", len(created))
    return created
