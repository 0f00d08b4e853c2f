"""SQLModel-backed ledger store."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import event, update
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select
from sqlmodel.sql.expression import SelectOfScalar

from trade_ledger.doubleentry.models import (
    Account,
    AccountType,
    EntryType,
    JournalTransaction,
    LedgerEntry,
    LegAnnotation,
    LotStatus,
    OptionType,
    PositionStatus,
    PositionType,
    StockLot,
    TradingPosition,
)
from trade_ledger.exceptions import LedgerError, PositionStateError, VersionConflictError
from trade_ledger.money import Money
from trade_ledger.store.tables import (
    AccountRow,
    JournalRow,
    LedgerEntryRow,
    LegAnnotationRow,
    PositionRow,
    StockLotRow,
)

logger = logging.getLogger(__name__)


def make_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine, with SAVEPOINT-capable settings for SQLite."""
    connect_args: dict[str, Any] = {}
    kwargs: dict[str, Any] = {}
    is_sqlite = database_url.startswith("sqlite")

    if is_sqlite:
        # SQLite needs check_same_thread=False; in-memory databases need one shared connection
        connect_args["check_same_thread"] = False
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)

    if is_sqlite:
        # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
        @event.listens_for(engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection: Any, connection_record: Any) -> None:
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _emit_begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN")

    return engine


class SqlStore:
    """LedgerStore implementation over a relational database.

    The outermost ``transaction()`` commits or rolls back the session; inner
    scopes are savepoints. Balance updates are a single compare-and-swap
    ``UPDATE`` on the account version.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.session = Session(engine, expire_on_commit=False)
        self._depth = 0

    @classmethod
    def from_url(cls, database_url: str, *, create_tables: bool = True) -> "SqlStore":
        engine = make_engine(database_url)
        if create_tables:
            SQLModel.metadata.create_all(engine)
        return cls(engine)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "SqlStore":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._depth > 0:
            self._depth += 1
            try:
                with self.session.begin_nested():
                    yield
            finally:
                self._depth -= 1
            return

        self._depth += 1
        try:
            yield
            self.session.commit()
        except BaseException:
            self.session.rollback()
            raise
        finally:
            self._depth -= 1

    # Accounts

    def get_account(self, code: str) -> Account | None:
        row = self.session.get(AccountRow, code, populate_existing=True)
        return _account_from_row(row) if row else None

    def get_accounts(self, codes: list[str]) -> dict[str, Account]:
        if not codes:
            return {}
        rows = self.session.exec(
            select(AccountRow)
            .where(AccountRow.code.in_(codes))  # type: ignore[attr-defined]
            .execution_options(populate_existing=True)
        ).all()
        return {row.code: _account_from_row(row) for row in rows}

    def list_accounts(self) -> list[Account]:
        rows = self.session.exec(
            select(AccountRow).order_by(AccountRow.code).execution_options(populate_existing=True)
        ).all()
        return [_account_from_row(row) for row in rows]

    def add_account(self, account: Account) -> None:
        if self.session.get(AccountRow, account.code) is not None:
            raise LedgerError(f"Account already exists: {account.code}")
        self.session.add(
            AccountRow(
                code=account.code,
                name=account.name,
                account_type=account.account_type.value,
                normal_balance=str(account.normal_balance),
                balance_cents=account.balance.cents,
                version=account.version,
                description=account.description,
            )
        )
        self.session.flush()

    def apply_balance_change(self, code: str, delta: Money, *, expected_version: int) -> Account:
        statement = (
            update(AccountRow)
            .where(AccountRow.code == code, AccountRow.version == expected_version)
            .values(
                balance_cents=AccountRow.balance_cents + delta.cents,
                version=AccountRow.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.connection().execute(statement)
        if result.rowcount != 1:
            current = self.get_account(code)
            actual = current.version if current else None
            logger.debug("Balance CAS failed for %s: expected v%s, found v%s", code, expected_version, actual)
            raise VersionConflictError(
                f"Account {code} changed concurrently "
                f"(expected version {expected_version}, found {actual})",
                account_code=code,
                expected_version=expected_version,
                actual_version=actual,
            )
        account = self.get_account(code)
        if account is None:
            raise LedgerError(f"Account {code} disappeared after its balance update")
        return account

    # Journals

    def add_journal(self, journal: JournalTransaction) -> None:
        self.session.add(
            JournalRow(
                id=journal.id,
                transaction_date=journal.date,
                description=journal.description,
                posted_at=journal.posted_at,
                external_transaction_id=journal.external_transaction_id,
                strategy=journal.strategy,
                trade_num=journal.trade_num,
                amount_cents=journal.amount.cents if journal.amount is not None else None,
                is_reversal=journal.is_reversal,
                reverses_journal_id=journal.reverses_journal_id,
                reversed_by_transaction_id=journal.reversed_by_transaction_id,
            )
        )
        # parent row first so the entries' foreign key resolves
        self.session.flush()
        for line_no, entry in enumerate(journal.entries):
            self.session.add(
                LedgerEntryRow(
                    id=entry.id,
                    transaction_id=journal.id,
                    line_no=line_no,
                    account_code=entry.account_code,
                    amount_cents=entry.amount.cents,
                    entry_type=entry.entry_type.value,
                )
            )
        self.session.flush()

    def _journal_row(self, journal_id: str) -> JournalRow | None:
        return self.session.exec(
            select(JournalRow)
            .where(JournalRow.id == journal_id)
            .execution_options(populate_existing=True)
        ).first()

    def _entries_for(self, journal_id: str) -> list[LedgerEntry]:
        rows = self.session.exec(
            select(LedgerEntryRow)
            .where(LedgerEntryRow.transaction_id == journal_id)
            .order_by(LedgerEntryRow.line_no)  # type: ignore[arg-type]
        ).all()
        return [
            LedgerEntry(
                id=row.id,
                transaction_id=row.transaction_id,
                account_code=row.account_code,
                amount=Money(row.amount_cents),
                entry_type=EntryType(row.entry_type),
            )
            for row in rows
        ]

    def _journal_from_row(self, row: JournalRow) -> JournalTransaction:
        return JournalTransaction(
            id=row.id,
            date=row.transaction_date,
            description=row.description,
            posted_at=row.posted_at,
            external_transaction_id=row.external_transaction_id,
            strategy=row.strategy,
            trade_num=row.trade_num,
            amount=Money(row.amount_cents) if row.amount_cents is not None else None,
            is_reversal=row.is_reversal,
            reverses_journal_id=row.reverses_journal_id,
            reversed_by_transaction_id=row.reversed_by_transaction_id,
            entries=self._entries_for(row.id),
        )

    def get_journal(self, journal_id: str) -> JournalTransaction | None:
        row = self._journal_row(journal_id)
        return self._journal_from_row(row) if row else None

    def list_journals(self, *, trade_num: str | None = None) -> list[JournalTransaction]:
        statement = select(JournalRow)
        if trade_num is not None:
            statement = statement.where(JournalRow.trade_num == trade_num)
        rows = self.session.exec(
            statement.order_by(JournalRow.seq).execution_options(populate_existing=True)  # type: ignore[arg-type]
        ).all()
        return [self._journal_from_row(row) for row in rows]

    def mark_reversed(self, journal_id: str, reversed_by_transaction_id: str) -> None:
        row = self._journal_row(journal_id)
        if row is None:
            raise LedgerError(f"Journal transaction not found: {journal_id}")
        row.reversed_by_transaction_id = reversed_by_transaction_id
        self.session.add(row)
        self.session.flush()

    # Option positions

    def _position_row(self, position_id: str) -> PositionRow | None:
        return self.session.exec(
            select(PositionRow)
            .where(PositionRow.id == position_id)
            .execution_options(populate_existing=True)
        ).first()

    def add_position(self, position: TradingPosition) -> None:
        row = PositionRow(id=position.id, **_position_values(position))
        self.session.add(row)
        self.session.flush()

    def get_position(self, position_id: str) -> TradingPosition | None:
        row = self._position_row(position_id)
        return _position_from_row(row) if row else None

    def update_position(self, position: TradingPosition, *, expected_status: PositionStatus) -> None:
        row = self._position_row(position.id)
        if row is None:
            raise LedgerError(f"Position not found: {position.id}")
        if row.status != expected_status.value:
            raise PositionStateError(
                f"Position {position.id} is {row.status}, expected {expected_status}",
                position_id=position.id,
                status=row.status,
            )
        for key, value in _position_values(position).items():
            setattr(row, key, value)
        self.session.add(row)
        self.session.flush()

    def _open_positions_query(self) -> SelectOfScalar[PositionRow]:
        return (
            select(PositionRow)
            .where(PositionRow.status == PositionStatus.OPEN.value)
            .order_by(PositionRow.open_date, PositionRow.seq)  # type: ignore[arg-type]
            .execution_options(populate_existing=True)
        )

    def find_open_positions(
        self,
        symbol: str,
        strike_price: Decimal,
        option_type: OptionType,
        expiration_date: date,
    ) -> list[TradingPosition]:
        rows = self.session.exec(
            self._open_positions_query().where(
                PositionRow.symbol == symbol,
                PositionRow.strike_price == strike_price,
                PositionRow.option_type == option_type.value,
                PositionRow.expiration_date == expiration_date,
            )
        ).all()
        return [_position_from_row(row) for row in rows]

    def find_open_positions_by_trade(self, trade_num: str) -> list[TradingPosition]:
        rows = self.session.exec(
            self._open_positions_query().where(PositionRow.trade_num == trade_num)
        ).all()
        return [_position_from_row(row) for row in rows]

    def list_positions(
        self,
        *,
        status: PositionStatus | None = None,
        trade_num: str | None = None,
    ) -> list[TradingPosition]:
        statement = select(PositionRow)
        if status is not None:
            statement = statement.where(PositionRow.status == status.value)
        if trade_num is not None:
            statement = statement.where(PositionRow.trade_num == trade_num)
        rows = self.session.exec(
            statement.order_by(PositionRow.seq).execution_options(populate_existing=True)  # type: ignore[arg-type]
        ).all()
        return [_position_from_row(row) for row in rows]

    # Stock lots

    def add_lot(self, lot: StockLot) -> None:
        self.session.add(StockLotRow(id=lot.id, **_lot_values(lot)))
        self.session.flush()

    def update_lot(self, lot: StockLot, *, expected_status: LotStatus) -> None:
        row = self.session.exec(
            select(StockLotRow)
            .where(StockLotRow.id == lot.id)
            .execution_options(populate_existing=True)
        ).first()
        if row is None:
            raise LedgerError(f"Stock lot not found: {lot.id}")
        if row.status != expected_status.value:
            raise PositionStateError(
                f"Stock lot {lot.id} is {row.status}, expected {expected_status}",
                position_id=lot.id,
                status=row.status,
            )
        for key, value in _lot_values(lot).items():
            setattr(row, key, value)
        self.session.add(row)
        self.session.flush()

    def list_lots(
        self,
        *,
        status: LotStatus | None = None,
        trade_num: str | None = None,
    ) -> list[StockLot]:
        statement = select(StockLotRow)
        if status is not None:
            statement = statement.where(StockLotRow.status == status.value)
        if trade_num is not None:
            statement = statement.where(StockLotRow.trade_num == trade_num)
        rows = self.session.exec(
            statement.order_by(StockLotRow.seq).execution_options(populate_existing=True)  # type: ignore[arg-type]
        ).all()
        return [_lot_from_row(row) for row in rows]

    # Leg annotations

    def annotate_leg(self, annotation: LegAnnotation) -> None:
        row = self.session.get(LegAnnotationRow, annotation.leg_id)
        if row is None:
            row = LegAnnotationRow(leg_id=annotation.leg_id)
        row.strategy = annotation.strategy
        row.trade_num = annotation.trade_num
        row.account_code = annotation.account_code
        self.session.add(row)
        self.session.flush()

    def get_annotation(self, leg_id: str) -> LegAnnotation | None:
        row = self.session.get(LegAnnotationRow, leg_id, populate_existing=True)
        return _annotation_from_row(row) if row else None

    def list_annotations(self, *, trade_num: str | None = None) -> list[LegAnnotation]:
        statement = select(LegAnnotationRow)
        if trade_num is not None:
            statement = statement.where(LegAnnotationRow.trade_num == trade_num)
        rows = self.session.exec(statement.execution_options(populate_existing=True)).all()
        return [_annotation_from_row(row) for row in rows]

    def clear_annotation(self, leg_id: str) -> None:
        row = self.session.get(LegAnnotationRow, leg_id)
        if row is not None:
            self.session.delete(row)
            self.session.flush()


def _account_from_row(row: AccountRow) -> Account:
    return Account(
        code=row.code,
        name=row.name,
        account_type=AccountType(row.account_type),
        normal_balance=EntryType(row.normal_balance),
        balance=Money(row.balance_cents),
        version=row.version,
        description=row.description,
    )


def _position_values(position: TradingPosition) -> dict[str, Any]:
    return {
        "symbol": position.symbol,
        "option_type": position.option_type.value,
        "strike_price": position.strike_price,
        "expiration_date": position.expiration_date,
        "position_type": position.position_type.value,
        "quantity": position.quantity,
        "open_price": position.open_price,
        "open_fees": position.open_fees,
        "open_date": position.open_date,
        "cost_basis_cents": position.cost_basis.cents,
        "status": position.status.value,
        "open_leg_id": position.open_leg_id,
        "trade_num": position.trade_num,
        "strategy": position.strategy,
        "close_leg_id": position.close_leg_id,
        "close_price": position.close_price,
        "close_fees": position.close_fees,
        "close_date": position.close_date,
        "proceeds_cents": position.proceeds.cents if position.proceeds is not None else None,
        "realized_pl_cents": position.realized_pl.cents if position.realized_pl is not None else None,
    }


def _position_from_row(row: PositionRow) -> TradingPosition:
    return TradingPosition(
        id=row.id,
        symbol=row.symbol,
        option_type=OptionType(row.option_type),
        strike_price=Decimal(row.strike_price),
        expiration_date=row.expiration_date,
        position_type=PositionType(row.position_type),
        quantity=Decimal(row.quantity),
        open_price=Decimal(row.open_price),
        open_fees=Decimal(row.open_fees),
        open_date=row.open_date,
        cost_basis=Money(row.cost_basis_cents),
        status=PositionStatus(row.status),
        open_leg_id=row.open_leg_id,
        trade_num=row.trade_num,
        strategy=row.strategy,
        close_leg_id=row.close_leg_id,
        close_price=Decimal(row.close_price) if row.close_price is not None else None,
        close_fees=Decimal(row.close_fees) if row.close_fees is not None else None,
        close_date=row.close_date,
        proceeds=Money(row.proceeds_cents) if row.proceeds_cents is not None else None,
        realized_pl=Money(row.realized_pl_cents) if row.realized_pl_cents is not None else None,
    )


def _lot_values(lot: StockLot) -> dict[str, Any]:
    return {
        "symbol": lot.symbol,
        "acquired_date": lot.acquired_date,
        "original_quantity": lot.original_quantity,
        "remaining_quantity": lot.remaining_quantity,
        "cost_per_share": lot.cost_per_share,
        "total_cost_basis_cents": lot.total_cost_basis.cents,
        "fees": lot.fees,
        "status": lot.status.value,
        "open_leg_id": lot.open_leg_id,
        "trade_num": lot.trade_num,
        "strategy": lot.strategy,
    }


def _lot_from_row(row: StockLotRow) -> StockLot:
    return StockLot(
        id=row.id,
        symbol=row.symbol,
        acquired_date=row.acquired_date,
        original_quantity=Decimal(row.original_quantity),
        remaining_quantity=Decimal(row.remaining_quantity),
        cost_per_share=Decimal(row.cost_per_share),
        total_cost_basis=Money(row.total_cost_basis_cents),
        fees=Decimal(row.fees),
        status=LotStatus(row.status),
        open_leg_id=row.open_leg_id,
        trade_num=row.trade_num,
        strategy=row.strategy,
    )


def _annotation_from_row(row: LegAnnotationRow) -> LegAnnotation:
    return LegAnnotation(
        leg_id=row.leg_id,
        strategy=row.strategy,
        trade_num=row.trade_num,
        account_code=row.account_code,
    )
