"""Tests for trial balance, account ledger and balance reconciliation views."""

from collections.abc import Callable
from decimal import Decimal

import pytest

from trade_ledger.commit import commit_trade
from trade_ledger.config import LedgerConfig
from trade_ledger.doubleentry.chart import default_codes
from trade_ledger.doubleentry.models import EntryType
from trade_ledger.doubleentry.reports import account_ledger, reconcile_balances, trial_balance
from trade_ledger.exceptions import UnknownAccountError
from trade_ledger.legs import Leg
from trade_ledger.money import Money
from trade_ledger.store.memory import InMemoryStore

LegFactory = Callable[..., Leg]


@pytest.fixture
def committed(store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory) -> InMemoryStore:
    legs = [
        make_leg(id="open-1"),
        make_leg(id="close-1", action="buy", positionEffect="close", price=Decimal("0.50")),
    ]
    commit_trade(store, legs, strategy="Short Call", trade_num="42", config=config)
    return store


class TestTrialBalance:
    """Tests for trial_balance."""

    def test_balanced_after_trades(self, committed: InMemoryStore) -> None:
        """Should show debits equal to credits."""
        report = trial_balance(committed)
        assert report.is_balanced
        assert report.total_debits == Money(14870)
        rows = {r.account.code: (r.debit, r.credit) for r in report.rows}
        assert rows == {
            "T-1010": (Money(14870), Money(0)),
            "T-4140": (Money(0), Money(14870)),
        }

    def test_negative_balance_flips_column(
        self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory
    ) -> None:
        """Should show an overdrawn asset on the credit side."""
        commit_trade(
            store,
            [make_leg(action="buy", price=Decimal("5.00"), fees=Decimal("0"))],
            strategy="s",
            trade_num="1",
            config=config,
        )
        rows = {r.account.code: (r.debit, r.credit) for r in trial_balance(store).rows}
        assert rows["T-1010"] == (Money(0), Money(50000))
        assert rows["T-1200"] == (Money(50000), Money(0))

    def test_include_zero(self, store: InMemoryStore) -> None:
        report = trial_balance(store, include_zero=True)
        assert [r.account.code for r in report.rows] == sorted(default_codes())
        assert report.is_balanced


class TestAccountLedger:
    """Tests for account_ledger."""

    def test_running_balance(self, committed: InMemoryStore) -> None:
        lines = account_ledger(committed, "T-1010")
        assert [(line.entry_type, line.amount.cents, line.balance.cents) for line in lines] == [
            (EntryType.DEBIT, 19935, 19935),
            (EntryType.CREDIT, 5065, 14870),
        ]

    def test_unknown_account(self, store: InMemoryStore) -> None:
        with pytest.raises(UnknownAccountError):
            account_ledger(store, "T-9999")


class TestReconcileBalances:
    """Tests for reconcile_balances."""

    def test_consistent_after_trades(self, committed: InMemoryStore) -> None:
        """Should recompute every stored balance from the entries."""
        checks = reconcile_balances(committed)
        assert [c.account.code for c in checks] == sorted(default_codes())
        assert all(c.is_consistent for c in checks)
        by_code = {c.account.code: c for c in checks}
        assert by_code["T-1010"].recomputed == Money(14870)
        assert by_code["T-4140"].recomputed == Money(14870)

    def test_reports_drift(self, committed: InMemoryStore) -> None:
        """Should flag a balance changed outside a posting."""
        cash = committed.get_account("T-1010")
        assert cash is not None
        committed.apply_balance_change("T-1010", Money(100), expected_version=cash.version)

        drifted = [c for c in reconcile_balances(committed) if not c.is_consistent]
        assert [c.account.code for c in drifted] == ["T-1010"]
        assert drifted[0].stored == Money(14970)
        assert drifted[0].recomputed == Money(14870)
        assert drifted[0].drift == Money(100)
