"""trade-ledger command-line interface."""

from trade_ledger.cli.app import app

# Import command modules to register them with the app
from trade_ledger.cli.commands import accounts, ledger, positions, trades

# Register sub-apps
app.add_typer(accounts.app, name="accounts", help="Chart of accounts.")
app.add_typer(trades.app, name="trades", help="Commit and reverse trades.")
app.add_typer(positions.app, name="positions", help="Option positions.")
app.add_typer(positions.lots_app, name="lots", help="Stock tax lots.")
app.add_typer(ledger.app, name="ledger", help="Journal, trial balance and account ledgers.")


def main() -> None:
    """Entry point for the CLI."""
    app()


__all__ = ["app", "main"]
