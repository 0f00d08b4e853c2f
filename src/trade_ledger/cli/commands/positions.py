"""Option position and stock lot commands."""

import typer

from trade_ledger.cli.config import CLIConfig, OutputFormat
from trade_ledger.cli.formatters import format_money, format_output
from trade_ledger.doubleentry.models import LotStatus, PositionStatus
from trade_ledger.money import Money

app = typer.Typer(no_args_is_help=True)
lots_app = typer.Typer(no_args_is_help=True)


def _money(amount: Money | None, output: OutputFormat) -> str | int | None:
    if output == OutputFormat.TABLE:
        return format_money(amount)
    return amount.cents if amount is not None else None


@app.command("list")
def list_positions(
    ctx: typer.Context,
    status: PositionStatus | None = typer.Option(
        None,
        "--status",
        help="Only positions with this status.",
        case_sensitive=False,
    ),
    trade_num: str | None = typer.Option(
        None,
        "--trade-num",
        "-t",
        help="Only positions opened by this trade.",
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """List option positions."""
    config: CLIConfig = ctx.obj

    with config.open_store() as store:
        positions = store.list_positions(status=status, trade_num=trade_num)

    rows = [
        {
            "id": p.id,
            "symbol": p.symbol,
            "strike": p.strike_price,
            "type": p.option_type.value,
            "expiry": p.expiration_date.isoformat(),
            "side": p.position_type.value,
            "quantity": p.quantity,
            "status": p.status.value,
            "cost_basis": _money(p.cost_basis, output),
            "proceeds": _money(p.proceeds, output),
            "realized_pl": _money(p.realized_pl, output),
            "trade_num": p.trade_num,
        }
        for p in positions
    ]
    format_output(rows, output, title="Positions")


@lots_app.command("list")
def list_lots(
    ctx: typer.Context,
    status: LotStatus | None = typer.Option(
        None,
        "--status",
        help="Only lots with this status.",
        case_sensitive=False,
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """List stock tax lots."""
    config: CLIConfig = ctx.obj

    with config.open_store() as store:
        lots = store.list_lots(status=status)

    rows = [
        {
            "id": lot.id,
            "symbol": lot.symbol,
            "acquired": lot.acquired_date.isoformat(),
            "quantity": lot.original_quantity,
            "remaining": lot.remaining_quantity,
            "cost_per_share": lot.cost_per_share,
            "total_cost": _money(lot.total_cost_basis, output),
            "status": lot.status.value,
            "trade_num": lot.trade_num,
        }
        for lot in lots
    ]
    format_output(rows, output, title="Stock Lots")
