"""Tests for the dict-backed store's transaction scopes."""

from datetime import date, datetime

import pytest

from trade_ledger.doubleentry.models import JournalTransaction
from trade_ledger.exceptions import LedgerError
from trade_ledger.money import Money
from trade_ledger.store.memory import InMemoryStore


def _journal(journal_id: str) -> JournalTransaction:
    return JournalTransaction(journal_id, date(2025, 3, 3), "test", datetime(2025, 3, 3, 12, 0))


class TestInMemoryTransactions:
    """Tests for InMemoryStore.transaction."""

    def test_nested_scope_rolls_back_alone(self, store: InMemoryStore) -> None:
        """Should undo only the inner scope."""
        with store.transaction():
            store.apply_balance_change("T-1010", Money(100), expected_version=0)
            with pytest.raises(LedgerError), store.transaction():
                store.apply_balance_change("T-1010", Money(5), expected_version=1)
                raise LedgerError("inner failure")
        account = store.get_account("T-1010")
        assert account is not None
        assert account.balance == Money(100)
        assert account.version == 1

    def test_mark_reversed_rolls_back(self, store: InMemoryStore) -> None:
        """Should restore the reversal back-link when the scope fails."""
        store.add_journal(_journal("j-1"))
        with pytest.raises(LedgerError), store.transaction():
            store.mark_reversed("j-1", "j-2")
            raise LedgerError("reversal failed")
        journal = store.get_journal("j-1")
        assert journal is not None
        assert journal.reversed_by_transaction_id is None

    def test_returned_rows_are_copies(self, store: InMemoryStore) -> None:
        """Should not let callers edit stored rows in place."""
        store.add_journal(_journal("j-1"))
        journal = store.get_journal("j-1")
        assert journal is not None
        journal.description = "edited"
        assert store.get_journal("j-1").description == "test"  # type: ignore[union-attr]
