"""Main Typer application."""

import logging
from pathlib import Path

import typer

from trade_ledger.cli.config import CLIConfig
from trade_ledger.config import LedgerConfig

# Create main app
app = typer.Typer(
    name="trade-ledger",
    help="Double-entry ledger and option position tracker.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on the verbose flag.

    Commands report skipped legs in their own output, so engine records only
    surface with --verbose; otherwise just errors are shown.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


@app.callback()
def main(
    ctx: typer.Context,
    database_url: str | None = typer.Option(
        None,
        "--database-url",
        "-d",
        help="SQLAlchemy database URL (default: ~/.local/share/trade-ledger/ledger.db).",
        envvar="TRADE_LEDGER_DATABASE_URL",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: ~/.config/trade-ledger/config.json).",
        envvar="TRADE_LEDGER_CONFIG",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
) -> None:
    """Double-entry ledger and option position tracker.

    Commit imported brokerage legs as balanced journal postings and track
    the option positions and stock lots they open and close.
    """
    setup_logging(verbose)
    ctx.obj = CLIConfig(
        ledger=LedgerConfig.load(config_file),
        database_url=database_url,
        verbose=verbose,
    )
