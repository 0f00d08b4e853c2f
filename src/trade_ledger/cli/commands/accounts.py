"""Chart of accounts commands."""

import typer

from trade_ledger.cli.config import CLIConfig, OutputFormat
from trade_ledger.cli.formatters import format_money, format_output, print_info, print_success
from trade_ledger.doubleentry.chart import seed_chart

app = typer.Typer(no_args_is_help=True)


@app.command("seed")
def seed(ctx: typer.Context) -> None:
    """Create the default trading chart of accounts.

    Accounts that already exist are left untouched.
    """
    config: CLIConfig = ctx.obj

    with config.open_store() as store:
        created = seed_chart(store)

    if created:
        print_success(f"Created {len(created)} account(s).")
    else:
        print_info("Chart of accounts already seeded.")


@app.command("list")
def list_accounts_cmd(
    ctx: typer.Context,
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """List accounts with their balances."""
    config: CLIConfig = ctx.obj

    with config.open_store() as store:
        accounts = sorted(store.list_accounts(), key=lambda a: a.code)

    if not accounts:
        print_info("No accounts. Run 'trade-ledger accounts seed' first.")
        return

    rows = [
        {
            "code": a.code,
            "name": a.name,
            "type": a.account_type.value,
            "normal_balance": a.normal_balance.value if a.normal_balance else None,
            "balance": format_money(a.balance) if output == OutputFormat.TABLE else a.balance.cents,
            "version": a.version,
        }
        for a in accounts
    ]
    format_output(rows, output, title="Chart of Accounts")
