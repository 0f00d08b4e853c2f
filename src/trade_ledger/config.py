"""Configuration management for the trade ledger engine."""

import json
import os
from dataclasses import dataclass, field, fields, replace
from enum import StrEnum
from pathlib import Path
from typing import Any

from trade_ledger.doubleentry.models import OptionType, PositionType

ENV_PREFIX = "TRADE_LEDGER_"


def _get_config_dir() -> Path:
    """Get XDG-compliant config directory."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "trade-ledger"
    return Path.home() / ".config" / "trade-ledger"


def _get_data_dir() -> Path:
    """Get XDG-compliant data directory for the default SQLite database."""
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data) / "trade-ledger"
    return Path.home() / ".local" / "share" / "trade-ledger"


def _default_database_url() -> str:
    return f"sqlite:///{_get_data_dir() / 'ledger.db'}"


class MatchOrder(StrEnum):
    """Which open position a close takes when several share one option identity."""

    FIFO = "fifo"  # earliest open_date first
    LIFO = "lifo"  # latest open_date first


@dataclass(frozen=True, slots=True)
class AccountCodes:
    """Account codes the engine posts to.

    The codes are deployment configuration; the defaults match the trading
    chart in ``trade_ledger.doubleentry.chart``.
    """

    cash: str = "T-1010"
    stock_position: str = "T-1100"
    long_call: str = "T-1200"
    long_put: str = "T-1210"
    short_call: str = "T-2100"
    short_put: str = "T-2110"
    realized_gain: str = "T-4140"
    realized_loss: str = "T-5140"

    def position_account(self, position_type: PositionType, option_type: OptionType) -> str:
        """Return the option position account for a (position, option) pair."""
        table = {
            (PositionType.LONG, OptionType.CALL): self.long_call,
            (PositionType.LONG, OptionType.PUT): self.long_put,
            (PositionType.SHORT, OptionType.CALL): self.short_call,
            (PositionType.SHORT, OptionType.PUT): self.short_put,
        }
        return table[(position_type, option_type)]

    def all_codes(self) -> list[str]:
        return [getattr(self, f.name) for f in fields(self)]


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    """Trade ledger configuration.

    Attributes:
        accounts: Account code table used by every posting component
        option_multiplier: Shares per option contract
        close_match_order: Order among identical open positions when closing
        max_leg_span_days: Maximum days between the first and last leg of a trade
        max_posting_attempts: Attempts per posting on account version conflicts
        database_url: SQLAlchemy URL used by the CLI's SQL store
    """

    accounts: AccountCodes = field(default_factory=AccountCodes)
    option_multiplier: int = 100
    close_match_order: MatchOrder = MatchOrder.FIFO
    max_leg_span_days: int = 7
    max_posting_attempts: int = 5
    database_url: str = field(default_factory=_default_database_url)

    def __post_init__(self) -> None:
        if self.option_multiplier <= 0:
            raise ValueError(f"option_multiplier must be positive, got {self.option_multiplier}")
        if self.max_posting_attempts < 1:
            raise ValueError(
                f"max_posting_attempts must be at least 1, got {self.max_posting_attempts}"
            )
        if self.max_leg_span_days < 0:
            raise ValueError(f"max_leg_span_days must not be negative, got {self.max_leg_span_days}")

    def with_overrides(self, data: dict[str, Any]) -> "LedgerConfig":
        """Return a copy with values from a flat or nested mapping applied.

        Recognized keys are the attribute names above; ``accounts`` may be a
        mapping of AccountCodes attribute names to codes.
        """
        changes: dict[str, Any] = {}

        if "accounts" in data:
            account_data = data["accounts"]
            unknown = set(account_data) - {f.name for f in fields(AccountCodes)}
            if unknown:
                raise ValueError(f"Unknown account keys: {', '.join(sorted(unknown))}")
            changes["accounts"] = replace(self.accounts, **account_data)
        if "option_multiplier" in data:
            changes["option_multiplier"] = int(data["option_multiplier"])
        if "close_match_order" in data:
            changes["close_match_order"] = MatchOrder(str(data["close_match_order"]).lower())
        if "max_leg_span_days" in data:
            changes["max_leg_span_days"] = int(data["max_leg_span_days"])
        if "max_posting_attempts" in data:
            changes["max_posting_attempts"] = int(data["max_posting_attempts"])
        if "database_url" in data:
            changes["database_url"] = str(data["database_url"])

        return replace(self, **changes)

    @classmethod
    def from_env(cls, base: "LedgerConfig | None" = None) -> "LedgerConfig":
        """Create config from environment variables.

        Recognized env vars:
        - TRADE_LEDGER_DATABASE_URL
        - TRADE_LEDGER_CLOSE_MATCH_ORDER (fifo | lifo)
        - TRADE_LEDGER_OPTION_MULTIPLIER
        - TRADE_LEDGER_MAX_LEG_SPAN_DAYS
        - TRADE_LEDGER_MAX_POSTING_ATTEMPTS
        - TRADE_LEDGER_ACCOUNT_<NAME>, e.g. TRADE_LEDGER_ACCOUNT_CASH
        """
        data: dict[str, Any] = {}
        for key in (
            "database_url",
            "close_match_order",
            "option_multiplier",
            "max_leg_span_days",
            "max_posting_attempts",
        ):
            if value := os.environ.get(f"{ENV_PREFIX}{key.upper()}"):
                data[key] = value

        accounts: dict[str, str] = {}
        for f in fields(AccountCodes):
            if value := os.environ.get(f"{ENV_PREFIX}ACCOUNT_{f.name.upper()}"):
                accounts[f.name] = value
        if accounts:
            data["accounts"] = accounts

        return (base or cls()).with_overrides(data)

    @classmethod
    def from_file(cls, path: Path | None = None) -> "LedgerConfig":
        """Load config from JSON file.

        Default path: ~/.config/trade-ledger/config.json

        Expected format:
        {
            "close_match_order": "fifo",
            "accounts": {"cash": "T-1010", "realized_gain": "T-4140"}
        }
        """
        if path is None:
            path = _get_config_dir() / "config.json"

        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)

        with path.open() as f:
            data = json.load(f)

        return cls().with_overrides(data)

    @classmethod
    def load(cls, path: Path | None = None) -> "LedgerConfig":
        """Load config from file (if present) with environment overrides on top."""
        try:
            base = cls.from_file(path)
        except FileNotFoundError:
            base = cls()
        return cls.from_env(base)
