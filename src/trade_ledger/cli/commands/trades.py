"""Trade commit and reversal commands."""

from pathlib import Path

import typer
from pydantic import ValidationError

from trade_ledger.cli.config import CLIConfig, OutputFormat
from trade_ledger.cli.formatters import (
    console,
    format_money,
    format_output,
    print_error,
    print_json,
    print_success,
    print_warning,
)
from trade_ledger.commit import commit_trade
from trade_ledger.exceptions import LedgerError, UnknownAccountError
from trade_ledger.legs import load_legs
from trade_ledger.results import CommitResult
from trade_ledger.reversal import reverse_trade

app = typer.Typer(no_args_is_help=True)


def _print_commit_table(result: CommitResult, dry_run: bool) -> None:
    rows = [
        {
            "leg_id": r.leg_id,
            "action": r.action.value,
            "account": r.account_code,
            "cost_basis": format_money(r.cost_basis),
            "realized_pl": format_money(r.realized_pl),
            "journal_id": r.journal_id,
            "note": r.reason.value if r.reason else None,
        }
        for r in result.results
    ]
    format_output(
        rows,
        OutputFormat.TABLE,
        title=f"Trade {result.trade_num} ({result.strategy})" + (" [dry run]" if dry_run else ""),
    )
    for skipped in result.skipped:
        print_warning(f"Skipped {skipped.leg_id}: {skipped.reason.value} {skipped.detail}".rstrip())

    console.print(f"[bold]Realized P&L:[/bold] {result.realized_pl}")


@app.command("commit")
def commit(
    ctx: typer.Context,
    legs_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Legs to commit (.json or .csv).",
    ),
    strategy: str = typer.Option(
        ...,
        "--strategy",
        "-s",
        help="Strategy label, e.g. 'Iron Condor'.",
    ),
    trade_num: str = typer.Option(
        ...,
        "--trade-num",
        "-t",
        help="Trade number shared by the legs.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be posted without writing anything.",
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Commit a trade's legs as journal postings and position updates.

    Opening legs create positions or stock lots; closing legs close the
    matching open position and realize P&L. Closes with no open position
    are reported as skipped.

    Example:
        trade-ledger trades commit legs.json --strategy "Short Call" --trade-num 42
    """
    config: CLIConfig = ctx.obj

    try:
        legs = load_legs(legs_file)
    except (ValidationError, ValueError) as e:
        print_error(f"Invalid legs file {legs_file}: {e}")
        raise typer.Exit(1) from None

    with config.open_store() as store:
        try:
            result = commit_trade(
                store,
                legs,
                strategy=strategy,
                trade_num=trade_num,
                config=config.ledger,
                dry_run=dry_run,
            )
        except UnknownAccountError as e:
            print_error(f"{e.message}. Run 'trade-ledger accounts seed' first.")
            raise typer.Exit(1) from None
        except LedgerError as e:
            print_error(e.message)
            raise typer.Exit(1) from None

    if output == OutputFormat.JSON:
        print_json(result.to_dict())
    elif output == OutputFormat.CSV:
        format_output([r.to_dict() for r in result.results], output)
    else:
        _print_commit_table(result, dry_run)
        if not dry_run:
            print_success(f"Committed {len(result.committed)} leg(s) to trade {trade_num}.")


@app.command("reverse")
def reverse(
    ctx: typer.Context,
    trade_num: str = typer.Argument(..., help="Trade number to reverse."),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Reverse every posting of a trade and free its legs for re-commit."""
    config: CLIConfig = ctx.obj

    with config.open_store() as store:
        try:
            result = reverse_trade(store, trade_num, config=config.ledger)
        except LedgerError as e:
            print_error(e.message)
            raise typer.Exit(1) from None

    if output == OutputFormat.TABLE:
        print_success(
            f"Reversed trade {trade_num}: {len(result.reversal_journal_ids)} journal(s), "
            f"{len(result.reversed_positions)} position(s), "
            f"{len(result.reopened_positions)} reopened, {len(result.reversed_lots)} lot(s)."
        )
    else:
        format_output(result.to_dict(), output)
