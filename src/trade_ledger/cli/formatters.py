"""Output formatters for CLI commands."""

import csv
import io
import json
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.table import Table

from trade_ledger.cli.config import OutputFormat
from trade_ledger.money import Money

console = Console()
error_console = Console(stderr=True)


def format_money(amount: Money | None) -> str:
    """Format minor units as dollars; blank for None or zero."""
    if amount is None or amount.is_zero():
        return ""
    return f"{amount.major:,.2f}"


def format_output(
    data: dict[str, Any] | Sequence[dict[str, Any]],
    output_format: OutputFormat,
    *,
    title: str | None = None,
    columns: list[str] | None = None,
) -> None:
    """Format and print output in the specified format.

    Args:
        data: A row or list of rows
        output_format: Output format (table, json, csv)
        title: Optional title for table output
        columns: Optional column names to include (for table/csv)
    """
    converted = [data] if isinstance(data, dict) else list(data)

    if output_format == OutputFormat.JSON:
        _format_json(converted)
    elif output_format == OutputFormat.CSV:
        _format_csv(converted, columns)
    else:
        _format_table(converted, title, columns)


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def _format_json(data: list[dict[str, Any]]) -> None:
    """Format as JSON."""
    if len(data) == 1:
        print_json(data[0])
    else:
        print_json(data)


def _format_csv(data: list[dict[str, Any]], columns: list[str] | None) -> None:
    """Format as CSV."""
    if not data:
        return

    if columns is None:
        columns = list(data[0].keys())

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    writer.writerows(data)
    console.print(output.getvalue(), end="", markup=False, highlight=False)


def _snake_to_title(s: str) -> str:
    """Convert snake_case to Title Case for table headers."""
    return " ".join(word.capitalize() for word in s.split("_"))


def _format_table(
    data: list[dict[str, Any]],
    title: str | None,
    columns: list[str] | None,
) -> None:
    """Format as rich table."""
    if not data:
        console.print("[dim]No data[/dim]")
        return

    if columns is None:
        columns = list(data[0].keys())

    table = Table(title=title, show_header=True, header_style="bold")
    for col in columns:
        table.add_column(_snake_to_title(col))

    for row in data:
        table.add_row(*["" if row.get(col) is None else str(row[col]) for col in columns])

    console.print(table)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning:[/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]i[/blue] {message}")
