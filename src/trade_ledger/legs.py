"""Imported brokerage trade legs."""

import csv
import json
from datetime import date
from decimal import Decimal
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from trade_ledger.doubleentry.models import OptionType


class LegAction(StrEnum):
    BUY = "buy"
    SELL = "sell"


class PositionEffect(StrEnum):
    OPEN = "open"
    CLOSE = "close"


class ContractType(StrEnum):
    CALL = "call"
    PUT = "put"


class LegKind(StrEnum):
    """What economic event a leg records, as classified by the importer."""

    TRADE = "trade"
    EXERCISE = "exercise"
    ASSIGNMENT = "assignment"


class Leg(BaseModel):
    """One imported trade line: a single buy or sell that opens or closes.

    Option legs carry ``strike``, ``expiry`` and ``contract_type``; stock legs
    leave all three empty. Prices and fees are in major units as the broker
    reports them. ``amount`` is the signed cash amount of the line.
    """

    id: str
    trade_date: date = Field(alias="date")
    symbol: str
    strike: Decimal | None = Field(default=None)
    expiry: date | None = Field(default=None)
    contract_type: ContractType | None = Field(default=None, alias="contractType")
    action: LegAction
    position_effect: PositionEffect = Field(alias="positionEffect")
    quantity: Decimal = Field(gt=0)
    price: Decimal = Field(default=Decimal(0), ge=0)
    fees: Decimal = Field(default=Decimal(0), ge=0)
    amount: Decimal = Field(default=Decimal(0))
    name: str | None = Field(default=None)
    kind: LegKind = Field(default=LegKind.TRADE)

    model_config = {"populate_by_name": True}

    @field_validator("contract_type", "action", "position_effect", "kind", mode="before")
    @classmethod
    def _lowercase_enum(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def is_option(self) -> bool:
        return self.contract_type is not None

    @property
    def is_stock(self) -> bool:
        return self.contract_type is None

    @property
    def is_settlement(self) -> bool:
        """Return True for exercise/assignment stock settlements."""
        return self.kind in (LegKind.EXERCISE, LegKind.ASSIGNMENT)

    @property
    def option_type(self) -> OptionType | None:
        if self.contract_type is None:
            return None
        return OptionType(self.contract_type.value.upper())

    def describe(self) -> str:
        """Short human-readable label, e.g. "XYZ 50 CALL 2025-03-21"."""
        if self.is_stock:
            return self.symbol
        parts = [self.symbol]
        if self.strike is not None:
            parts.append(f"{self.strike.normalize():f}")
        if self.option_type is not None:
            parts.append(self.option_type.value)
        if self.expiry is not None:
            parts.append(self.expiry.isoformat())
        return " ".join(parts)


_LEG_LIST = TypeAdapter(list[Leg])


def parse_legs(data: Any) -> list[Leg]:
    """Validate raw leg records (a list, or a mapping with a "legs" list)."""
    if isinstance(data, dict):
        data = data.get("legs", [])
    return _LEG_LIST.validate_python(data)


def load_legs(path: Path) -> list[Leg]:
    """Load legs from a JSON or CSV file.

    CSV headers use the same field names as JSON; empty cells are treated as
    missing values.

    Raises:
        pydantic.ValidationError: If any record is invalid
        ValueError: If the file extension is not .json or .csv
    """
    suffix = path.suffix.lower()
    if suffix == ".json":
        with path.open() as f:
            return parse_legs(json.load(f))
    if suffix == ".csv":
        with path.open(newline="") as f:
            rows = [{k: v for k, v in row.items() if v not in ("", None)} for row in csv.DictReader(f)]
        return parse_legs(rows)

    msg = f"Unsupported leg file type: {path.suffix or path.name}"
    raise ValueError(msg)
