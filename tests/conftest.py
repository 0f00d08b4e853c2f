"""Shared fixtures for trade ledger tests."""

from collections.abc import Callable, Iterator
from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from trade_ledger.config import LedgerConfig
from trade_ledger.doubleentry.chart import seed_chart
from trade_ledger.legs import Leg
from trade_ledger.store.memory import InMemoryStore
from trade_ledger.store.sql import SqlStore

LegFactory = Callable[..., Leg]


@pytest.fixture
def config() -> LedgerConfig:
    return LedgerConfig(database_url="sqlite://")


@pytest.fixture
def store() -> InMemoryStore:
    """In-memory store with the default chart seeded."""
    memory = InMemoryStore()
    seed_chart(memory)
    return memory


@pytest.fixture
def sql_store() -> Iterator[SqlStore]:
    """SQLite in-memory store with the default chart seeded."""
    with SqlStore.from_url("sqlite://") as sql:
        seed_chart(sql)
        yield sql


@pytest.fixture
def make_leg() -> LegFactory:
    """Build legs with option defaults: XYZ 50 CALL expiring 2025-03-21."""
    counter = iter(range(1, 10_000))

    def factory(**overrides: Any) -> Leg:
        data: dict[str, Any] = {
            "id": f"leg-{next(counter)}",
            "date": date(2025, 3, 3),
            "symbol": "XYZ",
            "strike": Decimal("50"),
            "expiry": date(2025, 3, 21),
            "contractType": "call",
            "action": "sell",
            "positionEffect": "open",
            "quantity": Decimal("1"),
            "price": Decimal("2.00"),
            "fees": Decimal("0.65"),
        }
        data.update(overrides)
        return Leg.model_validate(data)

    return factory


@pytest.fixture
def make_stock_leg(make_leg: LegFactory) -> LegFactory:
    """Build stock legs (no strike, expiry or contract type)."""

    def factory(**overrides: Any) -> Leg:
        data: dict[str, Any] = {
            "strike": None,
            "expiry": None,
            "contractType": None,
            "action": "buy",
            "quantity": Decimal("100"),
            "price": Decimal("50.00"),
            "fees": Decimal("0"),
            "amount": Decimal("-5000.00"),
        }
        data.update(overrides)
        return make_leg(**data)

    return factory
