"""Storage contract consumed by the ledger engine."""

from contextlib import AbstractContextManager
from datetime import date
from decimal import Decimal
from typing import Protocol

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
from trade_ledger.money import Money


class LedgerStore(Protocol):
    """Transactional data store for accounts, journals, positions and lots.

    Every engine component receives the store explicitly. Implementations
    return detached copies from reads; changes are only persisted through the
    write methods below.

    ``transaction()`` opens an atomic scope. Scopes nest: an inner scope that
    raises is rolled back on its own, the outer scope decides whether the
    remaining work is kept.
    """

    def transaction(self) -> AbstractContextManager[None]: ...

    # Accounts

    def get_account(self, code: str) -> Account | None: ...

    def get_accounts(self, codes: list[str]) -> dict[str, Account]:
        """Return the accounts that exist among ``codes``, keyed by code."""
        ...

    def list_accounts(self) -> list[Account]: ...

    def add_account(self, account: Account) -> None: ...

    def apply_balance_change(self, code: str, delta: Money, *, expected_version: int) -> Account:
        """Add ``delta`` to an account balance and bump its version.

        The write only happens if the stored version still equals
        ``expected_version``.

        Raises:
            VersionConflictError: If the account version has moved on
        """
        ...

    # Journals

    def add_journal(self, journal: JournalTransaction) -> None:
        """Persist a journal transaction together with its entries."""
        ...

    def get_journal(self, journal_id: str) -> JournalTransaction | None: ...

    def list_journals(self, *, trade_num: str | None = None) -> list[JournalTransaction]:
        """Return journals in posting order, optionally for one trade."""
        ...

    def mark_reversed(self, journal_id: str, reversed_by_transaction_id: str) -> None: ...

    # Option positions

    def add_position(self, position: TradingPosition) -> None: ...

    def get_position(self, position_id: str) -> TradingPosition | None: ...

    def update_position(self, position: TradingPosition, *, expected_status: PositionStatus) -> None:
        """Persist a changed position.

        Raises:
            PositionStateError: If the stored status is not ``expected_status``
        """
        ...

    def find_open_positions(
        self,
        symbol: str,
        strike_price: Decimal,
        option_type: OptionType,
        expiration_date: date,
    ) -> list[TradingPosition]:
        """Return OPEN positions with this option identity, oldest first."""
        ...

    def find_open_positions_by_trade(self, trade_num: str) -> list[TradingPosition]:
        """Return OPEN positions tagged with ``trade_num``, oldest first."""
        ...

    def list_positions(
        self,
        *,
        status: PositionStatus | None = None,
        trade_num: str | None = None,
    ) -> list[TradingPosition]: ...

    # Stock lots

    def add_lot(self, lot: StockLot) -> None: ...

    def update_lot(self, lot: StockLot, *, expected_status: LotStatus) -> None: ...

    def list_lots(
        self,
        *,
        status: LotStatus | None = None,
        trade_num: str | None = None,
    ) -> list[StockLot]: ...

    # Leg annotations

    def annotate_leg(self, annotation: LegAnnotation) -> None:
        """Create or replace the processing tags of a leg."""
        ...

    def get_annotation(self, leg_id: str) -> LegAnnotation | None: ...

    def list_annotations(self, *, trade_num: str | None = None) -> list[LegAnnotation]: ...

    def clear_annotation(self, leg_id: str) -> None: ...
