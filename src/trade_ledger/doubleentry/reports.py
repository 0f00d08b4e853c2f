"""Read-only views over posted ledger data."""

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from trade_ledger.doubleentry.models import Account, EntryType
from trade_ledger.exceptions import UnknownAccountError
from trade_ledger.money import Money, sum_money

if TYPE_CHECKING:
    from trade_ledger.store.base import LedgerStore


@dataclass(frozen=True)
class TrialBalanceRow:
    account: Account
    debit: Money
    credit: Money


@dataclass(frozen=True)
class TrialBalance:
    rows: list[TrialBalanceRow]

    @property
    def total_debits(self) -> Money:
        return sum_money(r.debit for r in self.rows)

    @property
    def total_credits(self) -> Money:
        return sum_money(r.credit for r in self.rows)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


@dataclass(frozen=True)
class AccountLedgerLine:
    journal_id: str
    date: date
    description: str
    entry_type: EntryType
    amount: Money
    balance: Money


def trial_balance(store: "LedgerStore", *, include_zero: bool = False) -> TrialBalance:
    """List every account's balance on its debit or credit column.

    A balance on the normal side goes in that side's column; a negative
    balance flips to the opposite column.
    """
    rows = []
    for account in sorted(store.list_accounts(), key=lambda a: a.code):
        if account.balance.is_zero() and not include_zero:
            continue
        side = account.normal_balance
        if account.balance.is_negative():
            side = side.opposite
        magnitude = abs(account.balance)
        if side == EntryType.DEBIT:
            rows.append(TrialBalanceRow(account, magnitude, Money.zero()))
        else:
            rows.append(TrialBalanceRow(account, Money.zero(), magnitude))
    return TrialBalance(rows)


def account_ledger(store: "LedgerStore", code: str) -> list[AccountLedgerLine]:
    """Return every entry posted to an account with the running balance.

    Raises:
        UnknownAccountError: If the account does not exist
    """
    account = store.get_account(code)
    if account is None:
        raise UnknownAccountError(f"Unknown account code: {code}", codes=[code])

    lines = []
    balance = Money.zero()
    for journal in store.list_journals():
        for entry in journal.entries:
            if entry.account_code != code:
                continue
            balance = balance + account.effect_of(entry.amount, entry.entry_type)
            lines.append(
                AccountLedgerLine(
                    journal_id=journal.id,
                    date=journal.date,
                    description=journal.description,
                    entry_type=entry.entry_type,
                    amount=entry.amount,
                    balance=balance,
                )
            )
    return lines


@dataclass(frozen=True)
class BalanceCheck:
    account: Account
    stored: Money
    recomputed: Money

    @property
    def drift(self) -> Money:
        return self.stored - self.recomputed

    @property
    def is_consistent(self) -> bool:
        return self.drift.is_zero()


def reconcile_balances(store: "LedgerStore") -> list[BalanceCheck]:
    """Compare each account's stored balance with the sum of its entry effects.

    Reversal journals count like any other posting. Nothing is written; a
    non-zero ``drift`` means the stored balance no longer matches the ledger.
    """
    accounts = {a.code: a for a in store.list_accounts()}
    recomputed = {code: Money.zero() for code in accounts}
    for journal in store.list_journals():
        for entry in journal.entries:
            account = accounts.get(entry.account_code)
            if account is None:
                raise UnknownAccountError(
                    f"Journal {journal.id} posts to unknown account {entry.account_code}",
                    codes=[entry.account_code],
                )
            recomputed[entry.account_code] += account.effect_of(entry.amount, entry.entry_type)

    return [
        BalanceCheck(account=accounts[code], stored=accounts[code].balance, recomputed=recomputed[code])
        for code in sorted(accounts)
    ]
