"""Commit a trade's legs to the ledger."""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from trade_ledger.config import LedgerConfig
from trade_ledger.doubleentry.models import LegAnnotation
from trade_ledger.exceptions import MalformedLegError
from trade_ledger.legs import Leg, LegAction, PositionEffect
from trade_ledger.positions.closer import close_position, skipped_leg
from trade_ledger.positions.exercise import resolve_settlement
from trade_ledger.positions.opener import open_position
from trade_ledger.positions.stock_lots import open_stock_lot
from trade_ledger.results import CommitResult, LegResult, SkippedLeg, SkipReason

if TYPE_CHECKING:
    from trade_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)


class _DryRunRollback(Exception):
    """Raised inside the commit scope to discard a dry run's writes."""


def validate_trade_legs(store: "LedgerStore", legs: Sequence[Leg], config: LedgerConfig) -> None:
    """Check a trade's legs before anything is written.

    Raises:
        MalformedLegError: If there are no legs, ids repeat, the legs span more
            than ``max_leg_span_days``, or a leg was already posted
    """
    if not legs:
        raise MalformedLegError("A trade needs at least one leg")

    seen: set[str] = set()
    for leg in legs:
        if leg.id in seen:
            raise MalformedLegError(f"Duplicate leg id {leg.id}", leg_id=leg.id, field="id")
        seen.add(leg.id)

    dates = [leg.trade_date for leg in legs]
    span = (max(dates) - min(dates)).days
    if span > config.max_leg_span_days:
        raise MalformedLegError(
            f"Legs span {span} days ({min(dates)} to {max(dates)}), "
            f"more than the allowed {config.max_leg_span_days}",
            field="date",
        )

    for leg in legs:
        annotation = store.get_annotation(leg.id)
        if annotation is not None and annotation.account_code is not None:
            raise MalformedLegError(
                f"Leg {leg.id} was already committed to trade {annotation.trade_num}",
                leg_id=leg.id,
            )


def _open_leg(store: "LedgerStore", leg: Leg, strategy: str, trade_num: str, config: LedgerConfig) -> LegResult:
    if leg.is_settlement:
        raise MalformedLegError(
            f"{leg.kind} leg {leg.id} cannot open a position",
            leg_id=leg.id,
            field="kind",
        )
    if leg.is_option:
        return open_position(store, leg, strategy=strategy, trade_num=trade_num, config=config)
    if leg.action == LegAction.SELL:
        raise MalformedLegError(
            f"Short stock leg {leg.id} ({leg.symbol}) is not supported",
            leg_id=leg.id,
            field="action",
        )
    return open_stock_lot(store, leg, strategy=strategy, trade_num=trade_num, config=config)


def _close_leg(
    store: "LedgerStore", leg: Leg, strategy: str, trade_num: str, config: LedgerConfig
) -> LegResult | SkippedLeg:
    if leg.is_settlement:
        return resolve_settlement(store, leg, strategy=strategy, trade_num=trade_num, config=config)
    if leg.is_stock:
        detail = f"Stock sale of {leg.quantity} {leg.symbol} does not consume lots"
        logger.warning("Skipping stock close leg %s: %s", leg.id, detail)
        return skipped_leg(leg, SkipReason.STOCK_LOT_CONSUMPTION_UNSUPPORTED, detail)
    return close_position(store, leg, strategy=strategy, trade_num=trade_num, config=config)


def commit_trade(
    store: "LedgerStore",
    legs: Sequence[Leg],
    *,
    strategy: str,
    trade_num: str,
    config: LedgerConfig | None = None,
    dry_run: bool = False,
) -> CommitResult:
    """Post every leg of a trade and tag the legs with the trade.

    Opening legs are processed first so that a close in the same trade finds
    the position it closes. Closing legs that cannot be matched are reported
    in ``skipped`` and do not undo the rest of the trade. Any fatal error
    rolls the whole trade back.

    Args:
        store: Ledger store
        legs: The trade's imported legs
        strategy: Strategy label, e.g. "Iron Condor"
        trade_num: Trade number shared by the legs
        config: Engine configuration (defaults when omitted)
        dry_run: Compute the result, then discard every write

    Returns:
        CommitResult with per-leg results and skipped legs

    Raises:
        MalformedLegError: If the legs are invalid
        UnbalancedEntryError, UnknownAccountError, VersionConflictError,
        PositionStateError: On fatal posting failures
    """
    config = config or LedgerConfig()
    validate_trade_legs(store, legs, config)

    result = CommitResult(strategy=strategy, trade_num=trade_num)
    opens = [leg for leg in legs if leg.position_effect == PositionEffect.OPEN]
    closes = [leg for leg in legs if leg.position_effect == PositionEffect.CLOSE]
    logger.debug(
        "Committing trade %s (%s): %d open leg(s), %d close leg(s)",
        trade_num,
        strategy,
        len(opens),
        len(closes),
    )

    try:
        with store.transaction():
            for leg in opens:
                result.results.append(_open_leg(store, leg, strategy, trade_num, config))

            for leg in closes:
                outcome = _close_leg(store, leg, strategy, trade_num, config)
                if isinstance(outcome, SkippedLeg):
                    result.skipped.append(outcome)
                else:
                    result.results.append(outcome)

            account_codes = {r.leg_id: r.account_code for r in result.results if not r.skipped}
            for leg in legs:
                store.annotate_leg(
                    LegAnnotation(
                        leg_id=leg.id,
                        strategy=strategy,
                        trade_num=trade_num,
                        account_code=account_codes.get(leg.id),
                    )
                )

            if dry_run:
                raise _DryRunRollback
    except _DryRunRollback:
        logger.info("Dry run for trade %s: discarded %d result(s)", trade_num, len(result.results))
        return result

    logger.info(
        "Committed trade %s (%s): %d posted, %d skipped, realized %s",
        trade_num,
        strategy,
        len(result.committed),
        len(result.skipped) + len(result.results) - len(result.committed),
        result.realized_pl,
    )
    return result
