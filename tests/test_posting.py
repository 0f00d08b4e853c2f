"""Tests for the ledger posting primitive."""

from datetime import date
from unittest.mock import patch

import pytest

from trade_ledger.doubleentry.models import EntryType, PostingLine
from trade_ledger.doubleentry.posting import post_entry, reverse_journal, validate_lines
from trade_ledger.exceptions import (
    LedgerError,
    UnbalancedEntryError,
    UnknownAccountError,
    VersionConflictError,
)
from trade_ledger.money import Money
from trade_ledger.store.memory import InMemoryStore

CASH = "T-1010"
SHORT_CALL = "T-2100"
GAIN = "T-4140"


class ConflictingStore(InMemoryStore):
    """Store whose balance writes lose the version race a fixed number of times."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts
        self.attempts = 0

    def apply_balance_change(self, code, delta, *, expected_version):  # type: ignore[no-untyped-def]
        self.attempts += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            raise VersionConflictError(
                "simulated",
                account_code=code,
                expected_version=expected_version,
                actual_version=expected_version + 1,
            )
        return super().apply_balance_change(code, delta, expected_version=expected_version)


def _short_call_open() -> list[PostingLine]:
    return [
        PostingLine.debit(CASH, Money(19935)),
        PostingLine.credit(SHORT_CALL, Money(19935)),
    ]


class TestValidateLines:
    """Tests for pre-write validation."""

    def test_accepts_balanced_lines(self) -> None:
        """Should accept equal debit and credit totals."""
        validate_lines(_short_call_open())

    def test_rejects_empty(self) -> None:
        """Should reject an empty posting."""
        with pytest.raises(LedgerError):
            validate_lines([])

    def test_rejects_non_positive_amount(self) -> None:
        """Should reject zero and negative line amounts."""
        with pytest.raises(LedgerError):
            validate_lines([PostingLine.debit(CASH, Money(0)), PostingLine.credit(GAIN, Money(0))])
        with pytest.raises(LedgerError):
            validate_lines([PostingLine.debit(CASH, Money(-5)), PostingLine.credit(GAIN, Money(-5))])

    def test_rejects_unbalanced(self) -> None:
        """Should report both totals on imbalance."""
        with pytest.raises(UnbalancedEntryError) as exc_info:
            validate_lines([PostingLine.debit(CASH, Money(100)), PostingLine.credit(GAIN, Money(99))])
        assert exc_info.value.debits == 100
        assert exc_info.value.credits == 99
        assert exc_info.value.imbalance == 1


class TestSignedLine:
    """Tests for PostingLine.signed."""

    def test_positive_is_debit(self) -> None:
        line = PostingLine.signed(CASH, Money(5))
        assert line == PostingLine(CASH, Money(5), EntryType.DEBIT)

    def test_negative_is_credit_with_magnitude(self) -> None:
        line = PostingLine.signed(CASH, Money(-5))
        assert line == PostingLine(CASH, Money(5), EntryType.CREDIT)

    def test_zero_is_omitted(self) -> None:
        assert PostingLine.signed(CASH, Money(0)) is None


class TestPostEntry:
    """Tests for post_entry."""

    def test_posts_journal_and_moves_balances(self, store: InMemoryStore) -> None:
        """Should create the journal, its entries and apply normal-balance effects."""
        journal = post_entry(
            store,
            date(2025, 3, 3),
            "OPEN SHORT",
            _short_call_open(),
            external_transaction_id="leg-1",
            strategy="Short Call",
            trade_num="42",
            amount=Money(19935),
        )

        stored = store.get_journal(journal.id)
        assert stored is not None
        assert stored.is_balanced
        assert len(stored.entries) == 2
        assert stored.trade_num == "42"
        assert stored.external_transaction_id == "leg-1"

        cash = store.get_account(CASH)
        short_call = store.get_account(SHORT_CALL)
        assert cash is not None and short_call is not None
        assert cash.balance == Money(19935)  # asset, debit increases
        assert short_call.balance == Money(19935)  # liability, credit increases
        assert cash.version == 1
        assert short_call.version == 1

    def test_debit_to_credit_normal_account_decreases(self, store: InMemoryStore) -> None:
        """Should subtract when the side is opposite to the normal balance."""
        post_entry(store, date(2025, 3, 3), "open", _short_call_open())
        post_entry(
            store,
            date(2025, 3, 4),
            "close",
            [
                PostingLine.debit(SHORT_CALL, Money(19935)),
                PostingLine.credit(CASH, Money(5065)),
                PostingLine.credit(GAIN, Money(14870)),
            ],
        )
        assert store.get_account(SHORT_CALL).balance == Money(0)  # type: ignore[union-attr]
        assert store.get_account(CASH).balance == Money(14870)  # type: ignore[union-attr]
        assert store.get_account(GAIN).balance == Money(14870)  # type: ignore[union-attr]

    def test_unbalanced_writes_nothing(self, store: InMemoryStore) -> None:
        """Should leave the store untouched on imbalance."""
        with pytest.raises(UnbalancedEntryError):
            post_entry(
                store,
                date(2025, 3, 3),
                "bad",
                [PostingLine.debit(CASH, Money(100)), PostingLine.credit(SHORT_CALL, Money(90))],
            )
        assert store.list_journals() == []
        assert store.get_account(CASH).version == 0  # type: ignore[union-attr]

    def test_unknown_account_writes_nothing(self, store: InMemoryStore) -> None:
        """Should name the missing codes and write nothing."""
        with pytest.raises(UnknownAccountError) as exc_info:
            post_entry(
                store,
                date(2025, 3, 3),
                "bad",
                [PostingLine.debit(CASH, Money(100)), PostingLine.credit("T-9999", Money(100))],
            )
        assert exc_info.value.codes == ["T-9999"]
        assert store.list_journals() == []
        assert store.get_account(CASH).balance == Money(0)  # type: ignore[union-attr]

    def test_same_account_on_both_sides(self, store: InMemoryStore) -> None:
        """Should chain versions when one account appears twice."""
        post_entry(
            store,
            date(2025, 3, 3),
            "wash",
            [PostingLine.debit(CASH, Money(100)), PostingLine.credit(CASH, Money(100))],
        )
        cash = store.get_account(CASH)
        assert cash is not None
        assert cash.balance == Money(0)
        assert cash.version == 2


class TestVersionConflictRetry:
    """Tests for optimistic concurrency retry."""

    def test_retries_after_conflict(self) -> None:
        """Should roll back the failed attempt and succeed on retry."""
        from trade_ledger.doubleentry.chart import seed_chart

        store = ConflictingStore(conflicts=2)
        seed_chart(store)

        with patch("time.sleep"):
            post_entry(store, date(2025, 3, 3), "open", _short_call_open())

        assert len(store.list_journals()) == 1
        assert store.get_account(CASH).balance == Money(19935)  # type: ignore[union-attr]
        assert store.get_account(CASH).version == 1  # type: ignore[union-attr]
        assert store.attempts == 4  # two failed first lines, then both lines

    def test_gives_up_after_max_attempts(self) -> None:
        """Should re-raise the conflict once attempts are exhausted."""
        from trade_ledger.doubleentry.chart import seed_chart

        store = ConflictingStore(conflicts=100)
        seed_chart(store)

        with patch("time.sleep"), pytest.raises(VersionConflictError):
            post_entry(store, date(2025, 3, 3), "open", _short_call_open(), max_attempts=3)

        assert store.attempts == 3
        assert store.list_journals() == []


class TestReverseJournal:
    """Tests for reverse_journal."""

    def test_mirrors_lines_and_links_both_ways(self, store: InMemoryStore) -> None:
        """Should post opposite lines and set the back-link."""
        original = post_entry(store, date(2025, 3, 3), "OPEN SHORT", _short_call_open(), trade_num="42")
        reversal = reverse_journal(store, original.id)

        assert reversal.is_reversal
        assert reversal.reverses_journal_id == original.id
        assert reversal.description == "REVERSAL: OPEN SHORT"
        assert reversal.trade_num == "42"
        assert [(e.account_code, e.entry_type) for e in reversal.entries] == [
            (CASH, EntryType.CREDIT),
            (SHORT_CALL, EntryType.DEBIT),
        ]
        assert store.get_journal(original.id).reversed_by_transaction_id == reversal.id  # type: ignore[union-attr]
        assert store.get_account(CASH).balance == Money(0)  # type: ignore[union-attr]
        assert store.get_account(SHORT_CALL).balance == Money(0)  # type: ignore[union-attr]

    def test_cannot_reverse_twice(self, store: InMemoryStore) -> None:
        """Should refuse a second reversal of the same journal."""
        original = post_entry(store, date(2025, 3, 3), "open", _short_call_open())
        reverse_journal(store, original.id)
        with pytest.raises(LedgerError):
            reverse_journal(store, original.id)

    def test_cannot_reverse_a_reversal(self, store: InMemoryStore) -> None:
        """Should refuse to reverse a reversing journal."""
        original = post_entry(store, date(2025, 3, 3), "open", _short_call_open())
        reversal = reverse_journal(store, original.id)
        with pytest.raises(LedgerError):
            reverse_journal(store, reversal.id)

    def test_unknown_journal(self, store: InMemoryStore) -> None:
        """Should raise for a missing journal id."""
        with pytest.raises(LedgerError):
            reverse_journal(store, "missing")
