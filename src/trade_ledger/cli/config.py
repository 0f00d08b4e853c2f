"""CLI configuration passed through the Typer context."""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from sqlalchemy.engine import make_url

from trade_ledger.config import LedgerConfig
from trade_ledger.store.sql import SqlStore


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"
    CSV = "csv"


@dataclass
class CLIConfig:
    """Configuration passed through Typer context.

    Attributes:
        ledger: Engine configuration (file and environment, see LedgerConfig.load)
        database_url: Database the commands read and write
        verbose: Enable verbose output.
    """

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    database_url: str | None = None
    verbose: bool = False

    @property
    def url(self) -> str:
        return self.database_url or self.ledger.database_url

    def open_store(self) -> SqlStore:
        """Open the SQL store, creating the SQLite file's directory if needed."""
        url = make_url(self.url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        return SqlStore.from_url(self.url)
