"""Exercise and assignment settlements."""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from trade_ledger.config import LedgerConfig, MatchOrder
from trade_ledger.doubleentry.models import PositionStatus, PositionType, TradingPosition
from trade_ledger.legs import Leg, LegKind
from trade_ledger.money import Money
from trade_ledger.positions.closer import skipped_leg
from trade_ledger.results import LegOutcome, LegResult, SkippedLeg, SkipReason

if TYPE_CHECKING:
    from trade_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)


def _match_settlement(leg: Leg, candidates: list[TradingPosition], order: MatchOrder) -> TradingPosition | None:
    # exercise settles a LONG option, assignment a SHORT one
    expected = PositionType.LONG if leg.kind == LegKind.EXERCISE else PositionType.SHORT
    matches = [p for p in candidates if p.symbol == leg.symbol and p.position_type == expected]
    if not matches:
        return None
    return matches[0] if order == MatchOrder.FIFO else matches[-1]


def resolve_settlement(
    store: "LedgerStore",
    leg: Leg,
    *,
    strategy: str,
    trade_num: str,
    config: LedgerConfig,
) -> LegResult | SkippedLeg:
    """Apply an exercise or assignment stock settlement to the trade's open option.

    A settlement carries no option identity, so the open position is found by
    ``trade_num`` among the trade's positions on the same symbol: LONG for an
    exercise, SHORT for an assignment. Any other position is left alone.

    Zero-amount transfers are reported as skipped results and leave positions
    untouched. Otherwise the position is closed without a ledger posting and
    with zero realized P&L; the stock side is booked by the broker's own cash
    lines.
    """
    outcome = LegOutcome.EXERCISE if leg.kind == LegKind.EXERCISE else LegOutcome.ASSIGNMENT

    if leg.amount == 0 or leg.price == 0:
        logger.warning(
            "Skipping %s leg %s for %s: zero-amount transfer",
            leg.kind,
            leg.id,
            leg.symbol,
        )
        return LegResult(
            leg_id=leg.id,
            action=outcome,
            skipped=True,
            reason=SkipReason.ZERO_AMOUNT_TRANSFER,
        )

    candidates = store.find_open_positions_by_trade(trade_num)
    position = _match_settlement(leg, candidates, config.close_match_order)
    if position is None:
        detail = f"No open position in trade {trade_num} for {leg.kind} of {leg.symbol}"
        logger.warning("Skipping %s leg %s: %s", leg.kind, leg.id, detail)
        return skipped_leg(leg, SkipReason.NO_OPEN_POSITION, detail)

    proceeds = abs(Money.from_major(leg.amount))
    closed = replace(
        position,
        status=PositionStatus.CLOSED,
        close_leg_id=leg.id,
        close_price=leg.price,
        close_fees=leg.fees,
        close_date=leg.trade_date,
        proceeds=proceeds,
        realized_pl=Money.zero(),
    )
    store.update_position(closed, expected_status=PositionStatus.OPEN)

    logger.info(
        "%s settled position %s (%s %s %s)",
        outcome,
        position.id,
        position.symbol,
        position.strike_price,
        position.option_type,
    )
    return LegResult(
        leg_id=leg.id,
        action=outcome,
        account_code=config.accounts.stock_position,
        realized_pl=Money.zero(),
        proceeds=proceeds,
        original_cost=position.cost_basis,
        position_id=position.id,
    )
