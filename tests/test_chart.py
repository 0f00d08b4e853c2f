"""Tests for the default chart of accounts."""

from trade_ledger.doubleentry.chart import default_accounts, default_codes, seed_chart
from trade_ledger.doubleentry.models import Account, AccountType, EntryType
from trade_ledger.money import Money
from trade_ledger.store.memory import InMemoryStore


class TestAccount:
    """Tests for Account normal balances."""

    def test_normal_balance_from_type(self) -> None:
        """Should derive the normal side from the account type."""
        assert Account("A", "asset", AccountType.ASSET).normal_balance == EntryType.DEBIT
        assert Account("E", "expense", AccountType.EXPENSE).normal_balance == EntryType.DEBIT
        assert Account("L", "liability", AccountType.LIABILITY).normal_balance == EntryType.CREDIT
        assert Account("Q", "equity", AccountType.EQUITY).normal_balance == EntryType.CREDIT
        assert Account("R", "revenue", AccountType.REVENUE).normal_balance == EntryType.CREDIT

    def test_effect_of(self) -> None:
        """Should add on the normal side and subtract on the other."""
        cash = Account("T-1010", "Cash", AccountType.ASSET)
        assert cash.effect_of(Money(100), EntryType.DEBIT) == Money(100)
        assert cash.effect_of(Money(100), EntryType.CREDIT) == Money(-100)
        assert cash.increases_with_debit()
        assert not cash.increases_with_credit()


class TestChart:
    """Tests for the trading chart."""

    def test_codes_are_unique(self) -> None:
        codes = default_codes()
        assert len(codes) == len(set(codes))

    def test_engine_accounts_have_expected_types(self) -> None:
        types = {a.code: a.account_type for a in default_accounts()}
        assert types["T-1010"] == AccountType.ASSET
        assert types["T-1100"] == AccountType.ASSET
        assert types["T-2100"] == AccountType.LIABILITY
        assert types["T-2110"] == AccountType.LIABILITY
        assert types["T-4140"] == AccountType.REVENUE
        assert types["T-5140"] == AccountType.EXPENSE

    def test_seed_is_idempotent(self) -> None:
        """Should create missing accounts only, never resetting balances."""
        store = InMemoryStore()
        created = seed_chart(store)
        assert len(created) == len(default_codes())

        store.apply_balance_change("T-1010", Money(500), expected_version=0)
        assert seed_chart(store) == []
        assert store.get_account("T-1010").balance == Money(500)  # type: ignore[union-attr]
