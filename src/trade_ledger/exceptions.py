"""Typed exceptions for the trade ledger engine."""


class LedgerError(Exception):
    """Base exception for all trade ledger errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnbalancedEntryError(LedgerError):
    """Debit and credit totals of a posting differ."""

    def __init__(self, message: str, *, debits: int, credits: int) -> None:
        self.debits = debits  # minor units
        self.credits = credits
        super().__init__(message)

    @property
    def imbalance(self) -> int:
        """Return debits minus credits in minor units."""
        return self.debits - self.credits


class UnknownAccountError(LedgerError):
    """One or more account codes do not resolve to an account."""

    def __init__(self, message: str, *, codes: list[str]) -> None:
        self.codes = codes
        super().__init__(message)


class MalformedLegError(LedgerError):
    """An imported leg cannot be processed as given."""

    def __init__(
        self,
        message: str,
        *,
        leg_id: str | None = None,
        field: str | None = None,
    ) -> None:
        self.leg_id = leg_id
        self.field = field
        super().__init__(message)


class VersionConflictError(LedgerError):
    """An account balance was modified concurrently."""

    def __init__(
        self,
        message: str,
        *,
        account_code: str,
        expected_version: int,
        actual_version: int | None = None,
    ) -> None:
        self.account_code = account_code
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(message)


class PositionStateError(LedgerError):
    """A position or lot is not in the state an operation requires."""

    def __init__(self, message: str, *, position_id: str, status: str) -> None:
        self.position_id = position_id
        self.status = status  # the status actually found
        super().__init__(message)
