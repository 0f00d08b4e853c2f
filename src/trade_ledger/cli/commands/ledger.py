"""Journal, trial balance and account ledger commands."""

import typer
from rich.table import Table

from trade_ledger.cli.config import CLIConfig, OutputFormat
from trade_ledger.cli.formatters import console, format_money, format_output, print_error, print_info
from trade_ledger.doubleentry.models import JournalTransaction
from trade_ledger.doubleentry.reports import account_ledger, reconcile_balances, trial_balance
from trade_ledger.exceptions import UnknownAccountError

app = typer.Typer(no_args_is_help=True)


def _print_journal_entry(journal: JournalTransaction, names: dict[str, str]) -> None:
    """Print a single journal transaction in ledger format."""
    marker = " [yellow](reversed)[/yellow]" if journal.is_reversed else ""
    console.print(f"[bold]{journal.date.isoformat()}[/bold]  [cyan]{journal.description}[/cyan]{marker}")

    for entry in journal.entries:
        account_name = f"{entry.account_code} {names.get(entry.account_code, '')}".strip()
        amount_str = format_money(entry.amount)
        if entry.is_debit:
            console.print(f"    {account_name:<44} {amount_str:>14}")
        else:
            # credits indented, amount in the right column
            console.print(f"        {account_name:<40} {' ':>14}{amount_str:>14}")

    console.print()


@app.command("journal")
def journal(
    ctx: typer.Context,
    trade_num: str | None = typer.Option(
        None,
        "--trade-num",
        "-t",
        help="Only transactions of this trade.",
    ),
    limit: int | None = typer.Option(
        None,
        "--limit",
        "-n",
        help="Maximum entries to show.",
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Show posted journal transactions with their debit and credit lines.

    Example:
        2025-03-03  OPEN SHORT: XYZ 50 CALL 2025-03-21 - Short Call
            T-1010 Trading Cash Account                        199.35
                T-2100 Options Positions - Short Calls                        199.35
    """
    config: CLIConfig = ctx.obj

    with config.open_store() as store:
        journals = store.list_journals(trade_num=trade_num)
        names = {a.code: a.name for a in store.list_accounts()}

    if limit and len(journals) > limit:
        journals = journals[:limit]

    if output != OutputFormat.TABLE:
        rows = [
            {
                "journal_id": j.id,
                "date": j.date.isoformat(),
                "description": j.description,
                "trade_num": j.trade_num,
                "leg_id": j.external_transaction_id,
                "account_code": e.account_code,
                "entry_type": e.entry_type.value,
                "amount": e.amount.cents,
                "is_reversal": j.is_reversal,
            }
            for j in journals
            for e in j.entries
        ]
        format_output(rows, output)
        return

    if not journals:
        print_info("No journal transactions found.")
        return

    console.print()
    console.print(f"[bold]Journal Entries[/bold] ({len(journals)} entries)")
    console.print("=" * 70)
    console.print()
    for j in journals:
        _print_journal_entry(j, names)


@app.command("trial-balance")
def trial_balance_cmd(
    ctx: typer.Context,
    include_zero: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Include accounts with a zero balance.",
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Show trial balance with all account totals.

    The trial balance lists each account's balance in its debit or credit
    column. Total debits must equal total credits.
    """
    config: CLIConfig = ctx.obj

    with config.open_store() as store:
        report = trial_balance(store, include_zero=include_zero)

    if output != OutputFormat.TABLE:
        rows = [
            {
                "code": r.account.code,
                "name": r.account.name,
                "debit": r.debit.cents,
                "credit": r.credit.cents,
            }
            for r in report.rows
        ]
        format_output(rows, output)
        return

    table = Table(title="Trial Balance")
    table.add_column("Code", style="cyan")
    table.add_column("Account")
    table.add_column("Debit", justify="right", style="green")
    table.add_column("Credit", justify="right", style="red")

    for r in report.rows:
        table.add_row(r.account.code, r.account.name, format_money(r.debit), format_money(r.credit))

    table.add_section()
    table.add_row(
        "",
        "[bold]Total[/bold]",
        f"[bold]{report.total_debits.major:,.2f}[/bold]",
        f"[bold]{report.total_credits.major:,.2f}[/bold]",
    )
    console.print(table)

    if report.is_balanced:
        console.print("[green]✓ Debits equal credits[/green]")
    else:
        console.print(
            f"[red]✗ Out of balance by {report.total_debits - report.total_credits}[/red]"
        )


@app.command("account")
def account(
    ctx: typer.Context,
    code: str = typer.Argument(..., help="Account code, e.g. T-1010."),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Show ledger for a specific account.

    Displays all activity for one account with running balance.
    """
    config: CLIConfig = ctx.obj

    with config.open_store() as store:
        try:
            lines = account_ledger(store, code)
        except UnknownAccountError as e:
            print_error(e.message)
            raise typer.Exit(1) from None

    if output != OutputFormat.TABLE:
        rows = [
            {
                "journal_id": line.journal_id,
                "date": line.date.isoformat(),
                "description": line.description,
                "entry_type": line.entry_type.value,
                "amount": line.amount.cents,
                "balance": line.balance.cents,
            }
            for line in lines
        ]
        format_output(rows, output)
        return

    if not lines:
        print_info(f"No activity found for account: {code}")
        return

    table = Table(title=f"Ledger: {code}")
    table.add_column("Date", style="cyan")
    table.add_column("Description")
    table.add_column("Debit", justify="right", style="green")
    table.add_column("Credit", justify="right", style="red")
    table.add_column("Balance", justify="right", style="bold")

    for line in lines:
        table.add_row(
            line.date.isoformat(),
            line.description[:40],
            format_money(line.amount) if line.entry_type == "D" else "",
            format_money(line.amount) if line.entry_type == "C" else "",
            f"{line.balance.major:,.2f}",
        )

    console.print()
    console.print(table)
    console.print()
    console.print(f"[bold]Final Balance: {lines[-1].balance}[/bold]")


@app.command("check")
def check(
    ctx: typer.Context,
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Check stored account balances against the ledger entries.

    Recomputes every balance from its posted entries and reports any drift.
    Exits with status 1 when an account is out of step.
    """
    config: CLIConfig = ctx.obj

    with config.open_store() as store:
        checks = reconcile_balances(store)

    drifted = [c for c in checks if not c.is_consistent]

    if output != OutputFormat.TABLE:
        rows = [
            {
                "code": c.account.code,
                "name": c.account.name,
                "stored": c.stored.cents,
                "recomputed": c.recomputed.cents,
                "drift": c.drift.cents,
            }
            for c in checks
        ]
        format_output(rows, output)
    else:
        table = Table(title="Balance Check")
        table.add_column("Code", style="cyan")
        table.add_column("Account")
        table.add_column("Stored", justify="right")
        table.add_column("Recomputed", justify="right")
        table.add_column("Drift", justify="right")

        for c in checks:
            drift = "" if c.is_consistent else f"[red]{c.drift.major:,.2f}[/red]"
            table.add_row(
                c.account.code,
                c.account.name,
                f"{c.stored.major:,.2f}",
                f"{c.recomputed.major:,.2f}",
                drift,
            )
        console.print(table)

        if drifted:
            console.print(f"[red]✗ {len(drifted)} account(s) out of step with the ledger[/red]")
        else:
            console.print("[green]✓ Stored balances match the ledger[/green]")

    if drifted:
        raise typer.Exit(1)
