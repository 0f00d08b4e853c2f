"""Option position and stock lot lifecycle."""

from trade_ledger.positions.closer import close_position
from trade_ledger.positions.exercise import resolve_settlement
from trade_ledger.positions.opener import open_position
from trade_ledger.positions.pricing import option_leg_value
from trade_ledger.positions.stock_lots import open_stock_lot

__all__ = [
    "close_position",
    "open_position",
    "open_stock_lot",
    "option_leg_value",
    "resolve_settlement",
]
