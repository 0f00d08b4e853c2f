"""Tests for the trade commit orchestrator."""

from collections.abc import Callable
from datetime import date
from decimal import Decimal

import pytest

from trade_ledger.commit import commit_trade
from trade_ledger.config import LedgerConfig
from trade_ledger.doubleentry.models import PositionStatus
from trade_ledger.exceptions import MalformedLegError, UnknownAccountError
from trade_ledger.legs import Leg
from trade_ledger.money import Money
from trade_ledger.results import LegOutcome, SkipReason
from trade_ledger.store.memory import InMemoryStore

LegFactory = Callable[..., Leg]


class TestCommitTrade:
    """Tests for commit_trade."""

    def test_open_and_close_in_one_trade(
        self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory
    ) -> None:
        """Should process opens before closes regardless of input order."""
        close_leg = make_leg(
            id="close-1", date=date(2025, 3, 7), action="buy", positionEffect="close", price=Decimal("0.50")
        )
        open_leg = make_leg(id="open-1")

        result = commit_trade(store, [close_leg, open_leg], strategy="Short Call", trade_num="42", config=config)

        assert result.success
        assert [r.action for r in result.results] == [LegOutcome.OPEN, LegOutcome.CLOSE]
        assert result.skipped == []
        assert result.realized_pl == Money(14870)
        assert len(result.journal_ids) == 2
        assert all(j.is_balanced for j in store.list_journals())

    def test_annotates_every_leg(
        self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory
    ) -> None:
        """Should tag posted legs with their account and skipped legs without one."""
        open_leg = make_leg(id="open-1")
        orphan = make_leg(id="orphan", strike=Decimal("60"), action="buy", positionEffect="close")

        commit_trade(store, [open_leg, orphan], strategy="Short Call", trade_num="42", config=config)

        posted = store.get_annotation("open-1")
        skipped = store.get_annotation("orphan")
        assert posted is not None and skipped is not None
        assert (posted.strategy, posted.trade_num, posted.account_code) == ("Short Call", "42", "T-2100")
        assert (skipped.strategy, skipped.trade_num, skipped.account_code) == ("Short Call", "42", None)

    def test_unmatched_close_is_skipped_and_batch_continues(
        self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory
    ) -> None:
        """Should keep the committed legs and report the unmatched one."""
        legs = [
            make_leg(id="open-1"),
            make_leg(id="orphan", strike=Decimal("60"), action="buy", positionEffect="close"),
            make_leg(id="close-1", action="buy", positionEffect="close", price=Decimal("0.50")),
        ]
        result = commit_trade(store, legs, strategy="s", trade_num="1", config=config)

        assert result.success
        assert [s.leg_id for s in result.skipped] == ["orphan"]
        assert result.skipped[0].reason == SkipReason.NO_OPEN_POSITION
        assert [r.leg_id for r in result.results] == ["open-1", "close-1"]
        assert len(store.list_journals()) == 2

    def test_stock_sale_is_skipped_not_dropped(
        self, store: InMemoryStore, config: LedgerConfig, make_stock_leg: LegFactory
    ) -> None:
        """Should report stock closes as unsupported lot consumption."""
        buy = make_stock_leg(id="buy-1")
        sell = make_stock_leg(id="sell-1", action="sell", positionEffect="close", amount=Decimal("5200"))

        result = commit_trade(store, [buy, sell], strategy="Stock", trade_num="3", config=config)

        assert [r.action for r in result.results] == [LegOutcome.OPEN_LOT]
        assert [(s.leg_id, s.reason) for s in result.skipped] == [
            ("sell-1", SkipReason.STOCK_LOT_CONSUMPTION_UNSUPPORTED)
        ]
        assert len(store.list_lots()) == 1

    def test_zero_amount_settlement_is_in_results(
        self,
        store: InMemoryStore,
        config: LedgerConfig,
        make_leg: LegFactory,
        make_stock_leg: LegFactory,
    ) -> None:
        """Should keep a zero transfer in results with skipped=True and no account tag."""
        transfer = make_stock_leg(
            id="transfer",
            kind="assignment",
            action="sell",
            positionEffect="close",
            amount=Decimal("0"),
        )
        result = commit_trade(
            store, [make_leg(id="open-1"), transfer], strategy="s", trade_num="1", config=config
        )

        (skipped_result,) = [r for r in result.results if r.leg_id == "transfer"]
        assert skipped_result.skipped
        assert skipped_result.reason == SkipReason.ZERO_AMOUNT_TRANSFER
        assert result.skipped == []
        assert store.get_annotation("transfer").account_code is None  # type: ignore[union-attr]
        assert store.list_positions(status=PositionStatus.OPEN) != []

    def test_to_dict_shape(self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory) -> None:
        """Should expose success, results and skipped."""
        result = commit_trade(store, [make_leg(id="open-1")], strategy="s", trade_num="1", config=config)
        data = result.to_dict()
        assert data["success"] is True
        assert data["skipped"] == []
        assert data["results"][0]["leg_id"] == "open-1"
        assert data["results"][0]["cost_basis"] == 19935
        assert "realized_pl" not in data["results"][0]


class TestCommitValidation:
    """Tests for legs rejected before anything is written."""

    def test_empty_trade(self, store: InMemoryStore, config: LedgerConfig) -> None:
        with pytest.raises(MalformedLegError):
            commit_trade(store, [], strategy="s", trade_num="1", config=config)

    def test_duplicate_leg_ids(self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory) -> None:
        with pytest.raises(MalformedLegError):
            commit_trade(store, [make_leg(id="a"), make_leg(id="a")], strategy="s", trade_num="1", config=config)

    def test_leg_span_limit(self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory) -> None:
        """Should reject legs further apart than max_leg_span_days."""
        legs = [make_leg(date=date(2025, 3, 1)), make_leg(date=date(2025, 3, 9))]
        with pytest.raises(MalformedLegError) as exc_info:
            commit_trade(store, legs, strategy="s", trade_num="1", config=config)
        assert exc_info.value.field == "date"
        assert store.list_journals() == []

    def test_leg_span_at_limit_is_allowed(
        self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory
    ) -> None:
        legs = [make_leg(date=date(2025, 3, 1)), make_leg(date=date(2025, 3, 8))]
        result = commit_trade(store, legs, strategy="s", trade_num="1", config=config)
        assert len(result.results) == 2

    def test_recommit_of_posted_leg_is_rejected(
        self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory
    ) -> None:
        """Should refuse to post the same leg twice."""
        leg = make_leg(id="open-1")
        commit_trade(store, [leg], strategy="s", trade_num="1", config=config)
        with pytest.raises(MalformedLegError):
            commit_trade(store, [leg], strategy="s", trade_num="2", config=config)
        assert len(store.list_journals()) == 1

    def test_skipped_leg_can_be_committed_later(
        self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory
    ) -> None:
        """Should allow a previously skipped close to be re-run once its position exists."""
        close_leg = make_leg(id="close-1", action="buy", positionEffect="close", price=Decimal("0.50"))
        first = commit_trade(store, [close_leg], strategy="s", trade_num="1", config=config)
        assert [s.leg_id for s in first.skipped] == ["close-1"]

        commit_trade(store, [make_leg(id="open-1")], strategy="s", trade_num="0", config=config)
        second = commit_trade(store, [close_leg], strategy="s", trade_num="1", config=config)
        assert [r.action for r in second.results] == [LegOutcome.CLOSE]


class TestCommitAtomicity:
    """Tests for all-or-nothing behavior on fatal errors."""

    def test_malformed_open_rolls_back_earlier_legs(
        self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory
    ) -> None:
        """Should undo every posting of the trade when one open is malformed."""
        legs = [make_leg(id="good"), make_leg(id="bad", expiry=None)]
        with pytest.raises(MalformedLegError):
            commit_trade(store, legs, strategy="s", trade_num="1", config=config)

        assert store.list_journals() == []
        assert store.list_positions() == []
        assert store.get_annotation("good") is None
        assert store.get_account("T-1010").balance == Money(0)  # type: ignore[union-attr]

    def test_settlement_cannot_open(
        self, store: InMemoryStore, config: LedgerConfig, make_stock_leg: LegFactory
    ) -> None:
        with pytest.raises(MalformedLegError):
            commit_trade(store, [make_stock_leg(kind="exercise")], strategy="s", trade_num="1", config=config)

    def test_unseeded_store_fails_cleanly(self, config: LedgerConfig, make_leg: LegFactory) -> None:
        """Should raise UnknownAccountError and leave no positions behind."""
        empty = InMemoryStore()
        with pytest.raises(UnknownAccountError):
            commit_trade(empty, [make_leg()], strategy="s", trade_num="1", config=config)
        assert empty.list_positions() == []

    def test_dry_run_discards_writes(
        self, store: InMemoryStore, config: LedgerConfig, make_leg: LegFactory
    ) -> None:
        """Should return the computed result without keeping any write."""
        result = commit_trade(
            store, [make_leg(id="open-1")], strategy="s", trade_num="1", config=config, dry_run=True
        )
        assert result.results[0].cost_basis == Money(19935)
        assert store.list_journals() == []
        assert store.list_positions() == []
        assert store.get_annotation("open-1") is None
