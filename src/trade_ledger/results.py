"""Outcomes of committing trade legs."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any

from trade_ledger.money import Money


class LegOutcome(StrEnum):
    """What a committed leg did to the books."""

    OPEN = "OPEN"
    CLOSE = "CLOSE"
    EXERCISE = "EXERCISE"
    ASSIGNMENT = "ASSIGNMENT"
    OPEN_LOT = "OPEN_LOT"


class SkipReason(StrEnum):
    """Structured reasons for a leg that produced no ledger posting."""

    NO_OPEN_POSITION = "NO_OPEN_POSITION"
    ZERO_AMOUNT_TRANSFER = "ZERO_AMOUNT_TRANSFER"
    STOCK_LOT_CONSUMPTION_UNSUPPORTED = "STOCK_LOT_CONSUMPTION_UNSUPPORTED"


def _money(value: Money | None) -> int | None:
    return value.cents if value is not None else None


@dataclass
class LegResult:
    """Result of processing one leg.

    Amounts are in minor units. A result with ``skipped=True`` was processed
    and tagged but deliberately not posted (e.g. a zero-amount exercise
    transfer).
    """

    leg_id: str
    action: LegOutcome
    journal_id: str | None = None
    account_code: str | None = None
    cost_basis: Money | None = None
    realized_pl: Money | None = None
    proceeds: Money | None = None
    original_cost: Money | None = None
    position_id: str | None = None
    lot_id: str | None = None
    skipped: bool = False
    reason: SkipReason | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "leg_id": self.leg_id,
            "action": self.action.value,
            "journal_id": self.journal_id,
            "account_code": self.account_code,
            "cost_basis": _money(self.cost_basis),
            "realized_pl": _money(self.realized_pl),
            "proceeds": _money(self.proceeds),
            "original_cost": _money(self.original_cost),
            "position_id": self.position_id,
            "lot_id": self.lot_id,
        }
        data = {k: v for k, v in data.items() if v is not None}
        if self.skipped:
            data["skipped"] = True
            data["reason"] = self.reason.value if self.reason else None
        return data


@dataclass
class SkippedLeg:
    """A close leg that could not be applied; the rest of the trade proceeds."""

    leg_id: str
    reason: SkipReason
    symbol: str
    strike: Decimal | None = None
    contract_type: str | None = None
    expiry: date | None = None
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "leg_id": self.leg_id,
            "reason": self.reason.value,
            "symbol": self.symbol,
            "strike": str(self.strike) if self.strike is not None else None,
            "contract_type": self.contract_type,
            "expiry": self.expiry.isoformat() if self.expiry else None,
            "detail": self.detail,
        }


@dataclass
class CommitResult:
    """Outcome of committing one trade's legs.

    ``success`` stays True when legs are skipped: a skip is a per-leg outcome,
    not a failure of the trade. Fatal problems raise instead.
    """

    strategy: str
    trade_num: str
    results: list[LegResult] = field(default_factory=list)
    skipped: list[SkippedLeg] = field(default_factory=list)
    success: bool = True

    @property
    def committed(self) -> list[LegResult]:
        """Results that were actually posted or applied."""
        return [r for r in self.results if not r.skipped]

    @property
    def journal_ids(self) -> list[str]:
        return [r.journal_id for r in self.results if r.journal_id]

    @property
    def realized_pl(self) -> Money:
        """Sum of realized P&L over the trade's closing legs."""
        return Money(sum(r.realized_pl.cents for r in self.results if r.realized_pl is not None))

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "strategy": self.strategy,
            "trade_num": self.trade_num,
            "results": [r.to_dict() for r in self.results],
            "skipped": [s.to_dict() for s in self.skipped],
        }
