"""Uncommit a trade by posting reversing entries."""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import TYPE_CHECKING, Any

from trade_ledger.config import LedgerConfig
from trade_ledger.doubleentry.models import LotStatus, PositionStatus
from trade_ledger.doubleentry.posting import reverse_journal
from trade_ledger.exceptions import LedgerError

if TYPE_CHECKING:
    from trade_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)


@dataclass
class ReversalResult:
    """What ``reverse_trade`` changed."""

    trade_num: str
    reversal_journal_ids: list[str] = field(default_factory=list)
    reversed_positions: list[str] = field(default_factory=list)
    reopened_positions: list[str] = field(default_factory=list)
    reversed_lots: list[str] = field(default_factory=list)
    cleared_legs: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_num": self.trade_num,
            "reversal_journal_ids": self.reversal_journal_ids,
            "reversed_positions": self.reversed_positions,
            "reopened_positions": self.reopened_positions,
            "reversed_lots": self.reversed_lots,
            "cleared_legs": self.cleared_legs,
        }


def reverse_trade(
    store: "LedgerStore",
    trade_num: str,
    *,
    reversal_date: date | None = None,
    config: LedgerConfig | None = None,
) -> ReversalResult:
    """Reverse every posting of a trade and restore the position ledger.

    Nothing is deleted. Each unreversed journal of the trade gets a mirror
    transaction, positions and lots the trade opened are marked REVERSED,
    positions it closed that were opened by another trade are reopened, and
    the legs' annotations are cleared so they can be committed again.

    Raises:
        LedgerError: If the trade has nothing left to reverse, or one of its
            positions was since closed by another trade
    """
    config = config or LedgerConfig()

    journals = [
        j for j in store.list_journals(trade_num=trade_num) if not j.is_reversal and not j.is_reversed
    ]
    annotations = store.list_annotations(trade_num=trade_num)
    leg_ids = {a.leg_id for a in annotations}

    opened = [p for p in store.list_positions(trade_num=trade_num) if p.status != PositionStatus.REVERSED]
    for position in opened:
        if position.close_leg_id is not None and position.close_leg_id not in leg_ids:
            raise LedgerError(
                f"Position {position.id} of trade {trade_num} was closed by leg "
                f"{position.close_leg_id}; reverse that trade first"
            )
    reopen = [
        p
        for p in store.list_positions(status=PositionStatus.CLOSED)
        if p.trade_num != trade_num and p.close_leg_id in leg_ids
    ]
    lots = [lot for lot in store.list_lots(trade_num=trade_num) if lot.status != LotStatus.REVERSED]

    if not (journals or opened or reopen or lots or annotations):
        raise LedgerError(f"Trade {trade_num} has nothing to reverse")

    result = ReversalResult(trade_num=trade_num)
    with store.transaction():
        for journal in journals:
            reversal = reverse_journal(
                store,
                journal.id,
                reversal_date=reversal_date,
                max_attempts=config.max_posting_attempts,
            )
            result.reversal_journal_ids.append(reversal.id)

        for position in opened:
            store.update_position(
                replace(position, status=PositionStatus.REVERSED),
                expected_status=position.status,
            )
            result.reversed_positions.append(position.id)

        for position in reopen:
            store.update_position(
                replace(
                    position,
                    status=PositionStatus.OPEN,
                    close_leg_id=None,
                    close_price=None,
                    close_fees=None,
                    close_date=None,
                    proceeds=None,
                    realized_pl=None,
                ),
                expected_status=PositionStatus.CLOSED,
            )
            result.reopened_positions.append(position.id)

        for lot in lots:
            store.update_lot(replace(lot, status=LotStatus.REVERSED), expected_status=lot.status)
            result.reversed_lots.append(lot.id)

        for annotation in annotations:
            store.clear_annotation(annotation.leg_id)
            result.cleared_legs.append(annotation.leg_id)

    logger.info(
        "Reversed trade %s: %d journal(s), %d position(s) reversed, %d reopened, %d lot(s)",
        trade_num,
        len(result.reversal_journal_ids),
        len(result.reversed_positions),
        len(result.reopened_positions),
        len(result.reversed_lots),
    )
    return result
