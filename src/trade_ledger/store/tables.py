"""SQLModel tables backing SqlStore."""

from datetime import date, datetime
from decimal import Decimal

from sqlmodel import Field, SQLModel


class AccountRow(SQLModel, table=True):
    __tablename__ = "account"

    code: str = Field(primary_key=True)
    name: str
    account_type: str
    normal_balance: str  # "D" or "C"
    balance_cents: int = 0
    version: int = 0
    description: str = ""


class JournalRow(SQLModel, table=True):
    __tablename__ = "journal_transaction"

    seq: int | None = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True)
    transaction_date: date
    description: str
    posted_at: datetime
    external_transaction_id: str | None = Field(default=None, index=True)
    strategy: str | None = None
    trade_num: str | None = Field(default=None, index=True)
    amount_cents: int | None = None
    is_reversal: bool = False
    reverses_journal_id: str | None = None
    reversed_by_transaction_id: str | None = None


class LedgerEntryRow(SQLModel, table=True):
    __tablename__ = "ledger_entry"

    id: str = Field(primary_key=True)
    transaction_id: str = Field(foreign_key="journal_transaction.id", index=True)
    line_no: int
    account_code: str = Field(foreign_key="account.code", index=True)
    amount_cents: int
    entry_type: str  # "D" or "C"


class PositionRow(SQLModel, table=True):
    __tablename__ = "trading_position"

    seq: int | None = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True)
    symbol: str = Field(index=True)
    option_type: str
    strike_price: Decimal = Field(max_digits=18, decimal_places=4)
    expiration_date: date
    position_type: str
    quantity: Decimal = Field(max_digits=18, decimal_places=4)
    open_price: Decimal = Field(max_digits=18, decimal_places=4)
    open_fees: Decimal = Field(max_digits=18, decimal_places=4)
    open_date: date
    cost_basis_cents: int
    status: str = Field(index=True)
    open_leg_id: str | None = None
    trade_num: str | None = Field(default=None, index=True)
    strategy: str | None = None
    close_leg_id: str | None = None
    close_price: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)
    close_fees: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)
    close_date: date | None = None
    proceeds_cents: int | None = None
    realized_pl_cents: int | None = None


class StockLotRow(SQLModel, table=True):
    __tablename__ = "stock_lot"

    seq: int | None = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True)
    symbol: str = Field(index=True)
    acquired_date: date
    original_quantity: Decimal = Field(max_digits=18, decimal_places=6)
    remaining_quantity: Decimal = Field(max_digits=18, decimal_places=6)
    cost_per_share: Decimal = Field(max_digits=18, decimal_places=6)
    total_cost_basis_cents: int
    fees: Decimal = Field(max_digits=18, decimal_places=4)
    status: str = Field(index=True)
    open_leg_id: str | None = None
    trade_num: str | None = Field(default=None, index=True)
    strategy: str | None = None


class LegAnnotationRow(SQLModel, table=True):
    __tablename__ = "leg_annotation"

    leg_id: str = Field(primary_key=True)
    strategy: str | None = None
    trade_num: str | None = Field(default=None, index=True)
    account_code: str | None = None
