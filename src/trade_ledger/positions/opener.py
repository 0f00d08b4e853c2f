"""Open option positions from opening legs."""

import logging
import uuid
from typing import TYPE_CHECKING

from trade_ledger.config import LedgerConfig
from trade_ledger.doubleentry.models import PositionType, PostingLine, TradingPosition
from trade_ledger.doubleentry.posting import post_entry
from trade_ledger.exceptions import MalformedLegError
from trade_ledger.legs import Leg, LegAction, PositionEffect
from trade_ledger.positions.pricing import option_leg_value, require_option_identity
from trade_ledger.results import LegOutcome, LegResult

if TYPE_CHECKING:
    from trade_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)


def open_position(
    store: "LedgerStore",
    leg: Leg,
    *,
    strategy: str,
    trade_num: str,
    config: LedgerConfig,
) -> LegResult:
    """Record a buy-to-open or sell-to-open option leg.

    Buy to open (LONG, asset):
        Debit:  Long call/put position        cost basis
        Credit: Cash                                cost basis

    Sell to open (SHORT, liability):
        Debit:  Cash                          cost basis
        Credit: Short call/put position             cost basis

    Raises:
        MalformedLegError: If the leg is not an option open or has non-positive cost basis
    """
    if leg.position_effect != PositionEffect.OPEN:
        raise MalformedLegError(f"Leg {leg.id} is not an opening leg", leg_id=leg.id, field="position_effect")
    option_type, strike, expiry = require_option_identity(leg)

    position_type = PositionType.LONG if leg.action == LegAction.BUY else PositionType.SHORT
    cost_basis = option_leg_value(leg, config.option_multiplier)
    if cost_basis.is_zero() or cost_basis.is_negative():
        raise MalformedLegError(
            f"Opening leg {leg.id} has non-positive cost basis {cost_basis}", leg_id=leg.id, field="price"
        )

    accounts = config.accounts
    position_account = accounts.position_account(position_type, option_type)

    if position_type == PositionType.LONG:
        lines = [
            PostingLine.signed(position_account, cost_basis),
            PostingLine.signed(accounts.cash, -cost_basis),
        ]
    else:
        lines = [
            PostingLine.signed(accounts.cash, cost_basis),
            PostingLine.signed(position_account, -cost_basis),
        ]

    position = TradingPosition(
        id=str(uuid.uuid4()),
        symbol=leg.symbol,
        option_type=option_type,
        strike_price=strike,
        expiration_date=expiry,
        position_type=position_type,
        quantity=leg.quantity,
        open_price=leg.price,
        open_fees=leg.fees,
        open_date=leg.trade_date,
        cost_basis=cost_basis,
        open_leg_id=leg.id,
        trade_num=trade_num,
        strategy=strategy,
    )

    with store.transaction():
        journal = post_entry(
            store,
            leg.trade_date,
            f"OPEN {position_type}: {leg.describe()} - {strategy}",
            [line for line in lines if line is not None],
            external_transaction_id=leg.id,
            strategy=strategy,
            trade_num=trade_num,
            amount=cost_basis,
            max_attempts=config.max_posting_attempts,
        )
        store.add_position(position)

    logger.info(
        "Opened %s %s (position %s, cost basis %s)",
        position_type,
        leg.describe(),
        position.id,
        cost_basis,
    )
    return LegResult(
        leg_id=leg.id,
        action=LegOutcome.OPEN,
        journal_id=journal.id,
        account_code=position_account,
        cost_basis=cost_basis,
        position_id=position.id,
    )
