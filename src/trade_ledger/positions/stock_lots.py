"""Stock tax lots."""

import logging
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from trade_ledger.config import LedgerConfig
from trade_ledger.doubleentry.models import PostingLine, StockLot
from trade_ledger.doubleentry.posting import post_entry
from trade_ledger.exceptions import MalformedLegError
from trade_ledger.legs import Leg, LegAction, PositionEffect
from trade_ledger.money import Money
from trade_ledger.results import LegOutcome, LegResult

if TYPE_CHECKING:
    from trade_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)

_PER_SHARE = Decimal("0.000001")


def stock_lot_cost(leg: Leg) -> Money:
    """Total cost of a stock buy: the absolute cash amount plus fees.

    Falls back to ``price * quantity`` when the broker reports no amount.
    """
    gross = abs(leg.amount) if leg.amount else leg.price * leg.quantity
    return Money.from_major(gross + leg.fees)


def open_stock_lot(
    store: "LedgerStore",
    leg: Leg,
    *,
    strategy: str,
    trade_num: str,
    config: LedgerConfig,
) -> LegResult:
    """Record a stock purchase as a new tax lot.

        Debit:  Stock position    total cost
        Credit: Cash                    total cost

    Raises:
        MalformedLegError: If the leg is not a stock buy-to-open or has no cost
    """
    if leg.is_option or leg.action != LegAction.BUY or leg.position_effect != PositionEffect.OPEN:
        raise MalformedLegError(
            f"Leg {leg.id} ({leg.symbol}) is not a stock purchase",
            leg_id=leg.id,
            field="action",
        )

    total_cost = stock_lot_cost(leg)
    if total_cost.is_zero():
        raise MalformedLegError(f"Stock purchase {leg.id} has no cost", leg_id=leg.id, field="amount")

    accounts = config.accounts
    lot = StockLot(
        id=str(uuid.uuid4()),
        symbol=leg.symbol,
        acquired_date=leg.trade_date,
        original_quantity=leg.quantity,
        remaining_quantity=leg.quantity,
        cost_per_share=(total_cost.major / leg.quantity).quantize(_PER_SHARE),
        total_cost_basis=total_cost,
        fees=leg.fees,
        open_leg_id=leg.id,
        trade_num=trade_num,
        strategy=strategy,
    )

    with store.transaction():
        journal = post_entry(
            store,
            leg.trade_date,
            f"BUY STOCK: {leg.quantity} {leg.symbol} - {strategy}",
            [
                PostingLine.debit(accounts.stock_position, total_cost),
                PostingLine.credit(accounts.cash, total_cost),
            ],
            external_transaction_id=leg.id,
            strategy=strategy,
            trade_num=trade_num,
            amount=total_cost,
            max_attempts=config.max_posting_attempts,
        )
        store.add_lot(lot)

    logger.info("Opened stock lot %s: %s %s at %s", lot.id, leg.quantity, leg.symbol, total_cost)
    return LegResult(
        leg_id=leg.id,
        action=LegOutcome.OPEN_LOT,
        journal_id=journal.id,
        account_code=accounts.stock_position,
        cost_basis=total_cost,
        lot_id=lot.id,
    )
