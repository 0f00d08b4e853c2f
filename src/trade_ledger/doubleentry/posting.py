"""Post balanced journal transactions to the ledger.

This is the only module that changes account balances. Every component that
records an accounting event builds a list of PostingLine objects and hands
them to ``post_entry``.
"""

import logging
import uuid
from collections.abc import Sequence
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from trade_ledger.doubleentry.models import (
    Account,
    EntryType,
    JournalTransaction,
    LedgerEntry,
    PostingLine,
)
from trade_ledger.exceptions import (
    LedgerError,
    UnbalancedEntryError,
    UnknownAccountError,
    VersionConflictError,
)
from trade_ledger.money import Money, sum_money

if TYPE_CHECKING:
    from trade_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


def _wait_for_version_conflict(retry_state: RetryCallState) -> float:
    """Short exponential backoff between attempts after a version conflict."""
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    wait_time = wait_exponential(multiplier=0.01, max=0.5)(retry_state)

    if isinstance(exception, VersionConflictError):
        logger.info(
            "Account %s changed during posting, retrying in %.2f seconds (attempt %d)",
            exception.account_code,
            wait_time,
            retry_state.attempt_number,
        )
    return wait_time


def validate_lines(lines: Sequence[PostingLine]) -> None:
    """Check that lines form a balanced posting.

    Raises:
        LedgerError: If there are no lines or a line amount is not positive
        UnbalancedEntryError: If debit and credit totals differ
    """
    if not lines:
        raise LedgerError("A journal transaction needs at least one line")

    for line in lines:
        if line.amount.cents <= 0:
            raise LedgerError(
                f"Ledger line amounts must be positive: {line.account_code} {line.amount}"
            )

    debits = sum_money(line.amount for line in lines if line.entry_type == EntryType.DEBIT)
    credits = sum_money(line.amount for line in lines if line.entry_type == EntryType.CREDIT)
    if debits != credits:
        raise UnbalancedEntryError(
            f"Journal entry is not balanced: debits={debits}, credits={credits}, "
            f"imbalance={debits - credits}",
            debits=debits.cents,
            credits=credits.cents,
        )


def _resolve_accounts(store: "LedgerStore", lines: Sequence[PostingLine]) -> dict[str, Account]:
    codes = list(dict.fromkeys(line.account_code for line in lines))
    accounts = store.get_accounts(codes)
    missing = [code for code in codes if code not in accounts]
    if missing:
        raise UnknownAccountError(f"Account codes not found: {', '.join(missing)}", codes=missing)
    return accounts


@retry(
    retry=retry_if_exception_type(VersionConflictError),
    wait=_wait_for_version_conflict,
    stop=stop_after_attempt(DEFAULT_MAX_ATTEMPTS),
    reraise=True,
)
def _write_journal(
    store: "LedgerStore",
    journal: JournalTransaction,
    lines: Sequence[PostingLine],
) -> None:
    """Write the journal, its entries and the balance changes as one unit.

    Account versions are read fresh on every attempt; the scope is rolled back
    before a retry so nothing from a failed attempt survives.
    """
    with store.transaction():
        accounts = _resolve_accounts(store, lines)
        store.add_journal(journal)

        for line in lines:
            account = accounts[line.account_code]
            delta = account.effect_of(line.amount, line.entry_type)
            accounts[line.account_code] = store.apply_balance_change(
                line.account_code, delta, expected_version=account.version
            )
            logger.debug(
                "  %s %s %s -> balance %s",
                line.entry_type,
                line.account_code,
                line.amount,
                accounts[line.account_code].balance,
            )


def post_entry(
    store: "LedgerStore",
    entry_date: date,
    description: str,
    lines: Sequence[PostingLine],
    *,
    external_transaction_id: str | None = None,
    strategy: str | None = None,
    trade_num: str | None = None,
    amount: Money | None = None,
    is_reversal: bool = False,
    reverses_journal_id: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> JournalTransaction:
    """Post one balanced journal transaction.

    Creates the JournalTransaction, one LedgerEntry per line, and moves each
    referenced account's balance by ``+amount`` when the line's side matches
    the account's normal balance, ``-amount`` otherwise. Either everything is
    written or nothing is.

    Args:
        store: Ledger store to write to
        entry_date: Accounting date of the event
        description: Journal description
        lines: Debit/credit lines; amounts are positive minor units
        external_transaction_id: Originating leg id
        strategy: Strategy tag of the trade
        trade_num: Trade number tag
        amount: Informational amount stored on the journal
        is_reversal: True when this transaction reverses another
        reverses_journal_id: Id of the reversed transaction
        max_attempts: Attempts before a version conflict is re-raised

    Returns:
        The posted JournalTransaction with its entries

    Raises:
        UnbalancedEntryError: If debits and credits differ (nothing is written)
        UnknownAccountError: If an account code does not resolve (nothing is written)
        VersionConflictError: If account versions keep moving after max_attempts
    """
    validate_lines(lines)
    # fail before opening a write scope
    _resolve_accounts(store, lines)

    journal_id = str(uuid.uuid4())
    journal = JournalTransaction(
        id=journal_id,
        date=entry_date,
        description=description,
        posted_at=datetime.now(timezone.utc),
        external_transaction_id=external_transaction_id,
        strategy=strategy,
        trade_num=trade_num,
        amount=amount,
        is_reversal=is_reversal,
        reverses_journal_id=reverses_journal_id,
        entries=[
            LedgerEntry(
                id=str(uuid.uuid4()),
                transaction_id=journal_id,
                account_code=line.account_code,
                amount=line.amount,
                entry_type=line.entry_type,
            )
            for line in lines
        ],
    )

    writer = _write_journal
    if max_attempts != DEFAULT_MAX_ATTEMPTS:
        writer = _write_journal.retry_with(stop=stop_after_attempt(max_attempts))
    writer(store, journal, lines)

    logger.info(
        "Posted journal %s: %s (%d lines, %s)",
        journal.id,
        description,
        len(lines),
        journal.total_debits,
    )
    return journal


def reverse_journal(
    store: "LedgerStore",
    journal_id: str,
    *,
    reversal_date: date | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> JournalTransaction:
    """Post a transaction that mirrors every line of an earlier one.

    The original is never edited beyond its ``reversed_by_transaction_id``
    back-link.

    Raises:
        LedgerError: If the journal does not exist, is itself a reversal, or
            has already been reversed
    """
    original = store.get_journal(journal_id)
    if original is None:
        raise LedgerError(f"Journal transaction not found: {journal_id}")
    if original.is_reversal:
        raise LedgerError(f"Journal transaction {journal_id} is a reversal and cannot be reversed")
    if original.is_reversed:
        raise LedgerError(
            f"Journal transaction {journal_id} was already reversed by "
            f"{original.reversed_by_transaction_id}"
        )

    lines = [
        PostingLine(e.account_code, e.amount, e.entry_type.opposite) for e in original.entries
    ]
    with store.transaction():
        reversal = post_entry(
            store,
            reversal_date or original.date,
            f"REVERSAL: {original.description}",
            lines,
            external_transaction_id=original.external_transaction_id,
            strategy=original.strategy,
            trade_num=original.trade_num,
            amount=original.amount,
            is_reversal=True,
            reverses_journal_id=original.id,
            max_attempts=max_attempts,
        )
        store.mark_reversed(original.id, reversal.id)
    return reversal
