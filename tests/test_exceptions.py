"""Tests for the exception hierarchy."""

import pytest

from trade_ledger.exceptions import (
    LedgerError,
    MalformedLegError,
    PositionStateError,
    UnbalancedEntryError,
    UnknownAccountError,
    VersionConflictError,
)


class TestExceptions:
    """Tests for exception context attributes."""

    def test_all_derive_from_ledger_error(self) -> None:
        """Should let callers catch every engine error at once."""
        for exc_type in (
            UnbalancedEntryError,
            UnknownAccountError,
            MalformedLegError,
            VersionConflictError,
            PositionStateError,
        ):
            assert issubclass(exc_type, LedgerError)

    def test_message_attribute(self) -> None:
        """Should keep the message on .message and str()."""
        error = LedgerError("boom")
        assert error.message == "boom"
        assert str(error) == "boom"

    def test_unbalanced_imbalance(self) -> None:
        """Should compute debits minus credits."""
        error = UnbalancedEntryError("unbalanced", debits=19935, credits=19900)
        assert error.imbalance == 35

    def test_version_conflict_context(self) -> None:
        """Should carry account and versions."""
        error = VersionConflictError("conflict", account_code="T-1010", expected_version=3, actual_version=4)
        assert error.account_code == "T-1010"
        assert error.expected_version == 3
        assert error.actual_version == 4

    def test_malformed_leg_defaults(self) -> None:
        """Should allow errors without a leg id."""
        error = MalformedLegError("no legs")
        assert error.leg_id is None
        assert error.field is None

    def test_raise_and_catch(self) -> None:
        """Should be catchable as LedgerError with context intact."""
        with pytest.raises(LedgerError) as exc_info:
            raise UnknownAccountError("missing", codes=["T-9999"])
        assert isinstance(exc_info.value, UnknownAccountError)
        assert exc_info.value.codes == ["T-9999"]
