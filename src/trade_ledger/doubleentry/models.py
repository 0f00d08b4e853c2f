"""Double-entry bookkeeping and position ledger models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from trade_ledger.money import Money, sum_money


class AccountType(StrEnum):
    """Classification of accounts in double-entry bookkeeping.

    Debit increases: ASSET, EXPENSE
    Credit increases: LIABILITY, EQUITY, REVENUE
    """

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def default_normal_balance(self) -> "EntryType":
        """Return the side that increases an account of this type."""
        if self in (AccountType.ASSET, AccountType.EXPENSE):
            return EntryType.DEBIT
        return EntryType.CREDIT


class EntryType(StrEnum):
    """Side of a ledger entry."""

    DEBIT = "D"
    CREDIT = "C"

    @property
    def opposite(self) -> "EntryType":
        return EntryType.CREDIT if self is EntryType.DEBIT else EntryType.DEBIT


class OptionType(StrEnum):
    CALL = "CALL"
    PUT = "PUT"


class PositionType(StrEnum):
    """LONG when opened by buying, SHORT when opened by selling."""

    LONG = "LONG"
    SHORT = "SHORT"


class PositionStatus(StrEnum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    REVERSED = "REVERSED"


class LotStatus(StrEnum):
    OPEN = "OPEN"
    PARTIAL = "PARTIAL"
    CLOSED = "CLOSED"
    REVERSED = "REVERSED"


@dataclass
class Account:
    """A chart-of-accounts row.

    Attributes:
        code: Unique, stable identifier (e.g., "T-1010"); the join key used
            by ledger entries instead of any surrogate id
        name: Human-readable name
        account_type: The type classification (asset, liability, etc.)
        normal_balance: Side whose entries increase the stored balance
        balance: Running balance; only ever mutated by a posting
        version: Incremented on every balance mutation
    """

    code: str
    name: str
    account_type: AccountType
    normal_balance: EntryType | None = None
    balance: Money = field(default_factory=Money.zero)
    version: int = 0
    description: str = ""

    def __post_init__(self) -> None:
        if self.normal_balance is None:
            self.normal_balance = self.account_type.default_normal_balance

    def effect_of(self, amount: Money, entry_type: EntryType) -> Money:
        """Return the signed balance change of an entry against this account."""
        return amount if entry_type == self.normal_balance else -amount

    def increases_with_debit(self) -> bool:
        """Return True if debits increase this account's balance."""
        return self.normal_balance == EntryType.DEBIT

    def increases_with_credit(self) -> bool:
        """Return True if credits increase this account's balance."""
        return self.normal_balance == EntryType.CREDIT


@dataclass(frozen=True)
class PostingLine:
    """One requested debit or credit line, before it is posted."""

    account_code: str
    amount: Money
    entry_type: EntryType

    @classmethod
    def debit(cls, account_code: str, amount: Money) -> "PostingLine":
        return cls(account_code, amount, EntryType.DEBIT)

    @classmethod
    def credit(cls, account_code: str, amount: Money) -> "PostingLine":
        return cls(account_code, amount, EntryType.CREDIT)

    @classmethod
    def signed(cls, account_code: str, amount: Money) -> "PostingLine | None":
        """Build a line from a signed amount: positive debits, negative credits.

        Returns None for a zero amount, since ledger entries are never empty.
        """
        if amount.is_zero():
            return None
        if amount.is_negative():
            return cls(account_code, -amount, EntryType.CREDIT)
        return cls(account_code, amount, EntryType.DEBIT)


@dataclass(frozen=True)
class LedgerEntry:
    """One immutable line of a posted journal transaction."""

    id: str
    transaction_id: str
    account_code: str
    amount: Money
    entry_type: EntryType

    @property
    def is_debit(self) -> bool:
        return self.entry_type == EntryType.DEBIT

    @property
    def is_credit(self) -> bool:
        return self.entry_type == EntryType.CREDIT


@dataclass
class JournalTransaction:
    """One atomic accounting event.

    Immutable once posted except for ``reversed_by_transaction_id``, which is
    set when a later reversing transaction is posted against it.
    """

    id: str
    date: date
    description: str
    posted_at: datetime
    external_transaction_id: str | None = None
    strategy: str | None = None
    trade_num: str | None = None
    amount: Money | None = None
    is_reversal: bool = False
    reverses_journal_id: str | None = None
    reversed_by_transaction_id: str | None = None
    entries: list[LedgerEntry] = field(default_factory=list)

    @property
    def total_debits(self) -> Money:
        return sum_money(e.amount for e in self.entries if e.is_debit)

    @property
    def total_credits(self) -> Money:
        return sum_money(e.amount for e in self.entries if e.is_credit)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    @property
    def is_reversed(self) -> bool:
        return self.reversed_by_transaction_id is not None


@dataclass
class TradingPosition:
    """An option contract's lifecycle from open to close.

    Prices are per-share premiums in major units as reported by the broker;
    ``cost_basis``, ``proceeds`` and ``realized_pl`` are contract totals.
    """

    id: str
    symbol: str
    option_type: OptionType
    strike_price: Decimal
    expiration_date: date
    position_type: PositionType
    quantity: Decimal
    open_price: Decimal
    open_fees: Decimal
    open_date: date
    cost_basis: Money
    status: PositionStatus = PositionStatus.OPEN
    open_leg_id: str | None = None
    trade_num: str | None = None
    strategy: str | None = None
    close_leg_id: str | None = None
    close_price: Decimal | None = None
    close_fees: Decimal | None = None
    close_date: date | None = None
    proceeds: Money | None = None
    realized_pl: Money | None = None

    @property
    def is_open(self) -> bool:
        return self.status == PositionStatus.OPEN

    @property
    def identity(self) -> tuple[str, Decimal, OptionType, date]:
        """Option identity used to match closing legs."""
        return (self.symbol, self.strike_price, self.option_type, self.expiration_date)


@dataclass
class StockLot:
    """A stock acquisition tracked for cost basis."""

    id: str
    symbol: str
    acquired_date: date
    original_quantity: Decimal
    remaining_quantity: Decimal
    cost_per_share: Decimal
    total_cost_basis: Money
    fees: Decimal
    status: LotStatus = LotStatus.OPEN
    open_leg_id: str | None = None
    trade_num: str | None = None
    strategy: str | None = None


@dataclass
class LegAnnotation:
    """Processing tags written back onto an imported leg after a commit."""

    leg_id: str
    strategy: str | None
    trade_num: str | None
    account_code: str | None = None
