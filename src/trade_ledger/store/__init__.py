"""Ledger storage: the LedgerStore contract and its implementations."""

from trade_ledger.store.base import LedgerStore
from trade_ledger.store.memory import InMemoryStore
from trade_ledger.store.sql import SqlStore, make_engine

__all__ = [
    "InMemoryStore",
    "LedgerStore",
    "SqlStore",
    "make_engine",
]
