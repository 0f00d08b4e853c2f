"""Close option positions and realize profit or loss."""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from trade_ledger.config import LedgerConfig, MatchOrder
from trade_ledger.doubleentry.models import (
    PositionStatus,
    PositionType,
    PostingLine,
    TradingPosition,
)
from trade_ledger.doubleentry.posting import post_entry
from trade_ledger.exceptions import MalformedLegError
from trade_ledger.legs import Leg, PositionEffect
from trade_ledger.money import Money
from trade_ledger.positions.pricing import option_leg_value, require_option_identity
from trade_ledger.results import LegOutcome, LegResult, SkippedLeg, SkipReason

if TYPE_CHECKING:
    from trade_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)


def pick_position(candidates: list[TradingPosition], order: MatchOrder) -> TradingPosition | None:
    """Choose among open positions that share one identity (oldest first in ``candidates``)."""
    if not candidates:
        return None
    return candidates[0] if order == MatchOrder.FIFO else candidates[-1]


def realized_pl_for(position: TradingPosition, proceeds: Money) -> Money:
    """LONG gains when proceeds exceed cost; SHORT gains when they fall short."""
    if position.position_type == PositionType.LONG:
        return proceeds - position.cost_basis
    return position.cost_basis - proceeds


def skipped_leg(leg: Leg, reason: SkipReason, detail: str = "") -> SkippedLeg:
    return SkippedLeg(
        leg_id=leg.id,
        reason=reason,
        symbol=leg.symbol,
        strike=leg.strike,
        contract_type=leg.contract_type.value if leg.contract_type else None,
        expiry=leg.expiry,
        detail=detail,
    )


def close_position(
    store: "LedgerStore",
    leg: Leg,
    *,
    strategy: str,
    trade_num: str,
    config: LedgerConfig,
) -> LegResult | SkippedLeg:
    """Record a sell-to-close or buy-to-close option leg.

    The open position is matched on (symbol, strike, option type, expiry).
    Without a match the leg is returned as a SkippedLeg instead of raising,
    so the rest of the trade can still be committed.

    Closing a LONG position:
        Debit:  Cash                          proceeds
        Credit: Long call/put position              original cost
        Credit: Realized gain                       gain    (or Debit: Realized loss)

    Closing a SHORT position:
        Debit:  Short call/put position       original cost
        Credit: Cash                                proceeds
        Credit: Realized gain                       gain    (or Debit: Realized loss)

    Raises:
        MalformedLegError: If the leg is not an option close
        PositionStateError: If the matched position was closed concurrently
    """
    if leg.position_effect != PositionEffect.CLOSE:
        raise MalformedLegError(f"Leg {leg.id} is not a closing leg", leg_id=leg.id, field="position_effect")
    option_type, strike, expiry = require_option_identity(leg)

    candidates = store.find_open_positions(leg.symbol, strike, option_type, expiry)
    position = pick_position(candidates, config.close_match_order)
    if position is None:
        detail = f"No open position found for {leg.describe()}"
        logger.warning("Skipping close leg %s: %s", leg.id, detail)
        return skipped_leg(leg, SkipReason.NO_OPEN_POSITION, detail)
    if len(candidates) > 1:
        logger.info(
            "%d open positions match %s, closing %s (%s)",
            len(candidates),
            leg.describe(),
            position.id,
            config.close_match_order,
        )

    accounts = config.accounts
    proceeds = option_leg_value(leg, config.option_multiplier)
    original_cost = position.cost_basis
    realized_pl = realized_pl_for(position, proceeds)
    is_gain = realized_pl.cents > 0
    pl_account = accounts.realized_gain if is_gain else accounts.realized_loss
    position_account = accounts.position_account(position.position_type, position.option_type)

    # signed lines: positive debits, negative credits; the P&L line absorbs the difference
    if position.position_type == PositionType.LONG:
        lines = [
            PostingLine.signed(accounts.cash, proceeds),
            PostingLine.signed(position_account, -original_cost),
        ]
    else:
        lines = [
            PostingLine.signed(position_account, original_cost),
            PostingLine.signed(accounts.cash, -proceeds),
        ]
    lines.append(PostingLine.signed(pl_account, -realized_pl))

    closed = replace(
        position,
        status=PositionStatus.CLOSED,
        close_leg_id=leg.id,
        close_price=leg.price,
        close_fees=leg.fees,
        close_date=leg.trade_date,
        proceeds=proceeds,
        realized_pl=realized_pl,
    )

    with store.transaction():
        journal = post_entry(
            store,
            leg.trade_date,
            f"CLOSE {position.position_type}: {leg.describe()} - "
            f"{'GAIN' if is_gain else 'LOSS'} {abs(realized_pl)}",
            [line for line in lines if line is not None],
            external_transaction_id=leg.id,
            strategy=strategy,
            trade_num=trade_num,
            amount=proceeds,
            max_attempts=config.max_posting_attempts,
        )
        store.update_position(closed, expected_status=PositionStatus.OPEN)

    logger.info(
        "Closed %s %s (position %s, realized %s)",
        position.position_type,
        leg.describe(),
        position.id,
        realized_pl,
    )
    return LegResult(
        leg_id=leg.id,
        action=LegOutcome.CLOSE,
        journal_id=journal.id,
        account_code=pl_account,
        realized_pl=realized_pl,
        proceeds=proceeds,
        original_cost=original_cost,
        position_id=position.id,
    )
