"""Dict-backed ledger store for tests and dry runs."""

import copy
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from trade_ledger.doubleentry.models import (
    Account,
    JournalTransaction,
    LegAnnotation,
    LotStatus,
    OptionType,
    PositionStatus,
    StockLot,
    TradingPosition,
)
from trade_ledger.exceptions import LedgerError, PositionStateError, VersionConflictError
from trade_ledger.money import Money


@dataclass
class _State:
    # dicts keep insertion order, which doubles as creation order
    accounts: dict[str, Account] = field(default_factory=dict)
    journals: dict[str, JournalTransaction] = field(default_factory=dict)
    positions: dict[str, TradingPosition] = field(default_factory=dict)
    lots: dict[str, StockLot] = field(default_factory=dict)
    annotations: dict[str, LegAnnotation] = field(default_factory=dict)

    def copy(self) -> "_State":
        return _State(
            accounts=dict(self.accounts),
            journals=dict(self.journals),
            positions=dict(self.positions),
            lots=dict(self.lots),
            annotations=dict(self.annotations),
        )


class InMemoryStore:
    """In-memory implementation of LedgerStore.

    ``transaction()`` snapshots the state on entry and restores it if the
    block raises, so nested scopes behave like savepoints. Stored rows are
    private copies that are replaced, never mutated, so the snapshot copies
    only the table dicts. Its cost is still linear in the number of rows,
    which suits tests and dry runs but not long histories; use ``SqlStore``
    for those.
    """

    def __init__(self) -> None:
        self._state = _State()
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        snapshot = self._state.copy()
        self._depth += 1
        try:
            yield
        except BaseException:
            self._state = snapshot
            raise
        finally:
            self._depth -= 1

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    # Accounts

    def get_account(self, code: str) -> Account | None:
        account = self._state.accounts.get(code)
        return copy.deepcopy(account) if account else None

    def get_accounts(self, codes: list[str]) -> dict[str, Account]:
        return {
            code: copy.deepcopy(self._state.accounts[code])
            for code in codes
            if code in self._state.accounts
        }

    def list_accounts(self) -> list[Account]:
        return [copy.deepcopy(a) for a in sorted(self._state.accounts.values(), key=lambda a: a.code)]

    def add_account(self, account: Account) -> None:
        if account.code in self._state.accounts:
            raise LedgerError(f"Account already exists: {account.code}")
        self._state.accounts[account.code] = copy.deepcopy(account)

    def apply_balance_change(self, code: str, delta: Money, *, expected_version: int) -> Account:
        account = self._state.accounts[code]
        if account.version != expected_version:
            raise VersionConflictError(
                f"Account {code} changed concurrently "
                f"(expected version {expected_version}, found {account.version})",
                account_code=code,
                expected_version=expected_version,
                actual_version=account.version,
            )
        updated = replace(account, balance=account.balance + delta, version=account.version + 1)
        self._state.accounts[code] = updated
        return copy.deepcopy(updated)

    # Journals

    def add_journal(self, journal: JournalTransaction) -> None:
        if journal.id in self._state.journals:
            raise LedgerError(f"Journal transaction already exists: {journal.id}")
        self._state.journals[journal.id] = copy.deepcopy(journal)

    def get_journal(self, journal_id: str) -> JournalTransaction | None:
        journal = self._state.journals.get(journal_id)
        return copy.deepcopy(journal) if journal else None

    def list_journals(self, *, trade_num: str | None = None) -> list[JournalTransaction]:
        return [
            copy.deepcopy(j)
            for j in self._state.journals.values()
            if trade_num is None or j.trade_num == trade_num
        ]

    def mark_reversed(self, journal_id: str, reversed_by_transaction_id: str) -> None:
        journal = self._state.journals[journal_id]
        self._state.journals[journal_id] = replace(
            journal, reversed_by_transaction_id=reversed_by_transaction_id
        )

    # Option positions

    def add_position(self, position: TradingPosition) -> None:
        if position.id in self._state.positions:
            raise LedgerError(f"Position already exists: {position.id}")
        self._state.positions[position.id] = copy.deepcopy(position)

    def get_position(self, position_id: str) -> TradingPosition | None:
        position = self._state.positions.get(position_id)
        return copy.deepcopy(position) if position else None

    def update_position(self, position: TradingPosition, *, expected_status: PositionStatus) -> None:
        stored = self._state.positions[position.id]
        if stored.status != expected_status:
            raise PositionStateError(
                f"Position {position.id} is {stored.status}, expected {expected_status}",
                position_id=position.id,
                status=stored.status,
            )
        self._state.positions[position.id] = copy.deepcopy(position)

    def _open_positions(self) -> list[TradingPosition]:
        # sorted() is stable, so creation order breaks open_date ties
        opened = [p for p in self._state.positions.values() if p.status == PositionStatus.OPEN]
        return [copy.deepcopy(p) for p in sorted(opened, key=lambda p: p.open_date)]

    def find_open_positions(
        self,
        symbol: str,
        strike_price: Decimal,
        option_type: OptionType,
        expiration_date: date,
    ) -> list[TradingPosition]:
        identity = (symbol, strike_price, option_type, expiration_date)
        return [p for p in self._open_positions() if p.identity == identity]

    def find_open_positions_by_trade(self, trade_num: str) -> list[TradingPosition]:
        return [p for p in self._open_positions() if p.trade_num == trade_num]

    def list_positions(
        self,
        *,
        status: PositionStatus | None = None,
        trade_num: str | None = None,
    ) -> list[TradingPosition]:
        return [
            copy.deepcopy(p)
            for p in self._state.positions.values()
            if (status is None or p.status == status)
            and (trade_num is None or p.trade_num == trade_num)
        ]

    # Stock lots

    def add_lot(self, lot: StockLot) -> None:
        if lot.id in self._state.lots:
            raise LedgerError(f"Stock lot already exists: {lot.id}")
        self._state.lots[lot.id] = copy.deepcopy(lot)

    def update_lot(self, lot: StockLot, *, expected_status: LotStatus) -> None:
        stored = self._state.lots[lot.id]
        if stored.status != expected_status:
            raise PositionStateError(
                f"Stock lot {lot.id} is {stored.status}, expected {expected_status}",
                position_id=lot.id,
                status=stored.status,
            )
        self._state.lots[lot.id] = copy.deepcopy(lot)

    def list_lots(
        self,
        *,
        status: LotStatus | None = None,
        trade_num: str | None = None,
    ) -> list[StockLot]:
        return [
            copy.deepcopy(lot)
            for lot in self._state.lots.values()
            if (status is None or lot.status == status)
            and (trade_num is None or lot.trade_num == trade_num)
        ]

    # Leg annotations

    def annotate_leg(self, annotation: LegAnnotation) -> None:
        self._state.annotations[annotation.leg_id] = copy.deepcopy(annotation)

    def get_annotation(self, leg_id: str) -> LegAnnotation | None:
        annotation = self._state.annotations.get(leg_id)
        return copy.deepcopy(annotation) if annotation else None

    def list_annotations(self, *, trade_num: str | None = None) -> list[LegAnnotation]:
        return [
            copy.deepcopy(a)
            for a in self._state.annotations.values()
            if trade_num is None or a.trade_num == trade_num
        ]

    def clear_annotation(self, leg_id: str) -> None:
        self._state.annotations.pop(leg_id, None)
