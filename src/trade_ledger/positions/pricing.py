"""Cash values of option legs."""

from datetime import date
from decimal import Decimal

from trade_ledger.doubleentry.models import OptionType
from trade_ledger.exceptions import MalformedLegError
from trade_ledger.legs import Leg, LegAction
from trade_ledger.money import Money


def option_leg_value(leg: Leg, multiplier: int) -> Money:
    """Return the cash value of an option leg in minor units.

    ``price * quantity * multiplier``, plus fees when buying (they add to what
    is paid), minus fees when selling (they reduce what is received). The
    same rule gives the cost basis of an open and the proceeds of a close.
    """
    gross = leg.price * leg.quantity * multiplier
    if leg.action == LegAction.BUY:
        return Money.from_major(gross + leg.fees)
    return Money.from_major(gross - leg.fees)


def require_option_identity(leg: Leg) -> tuple[OptionType, Decimal, date]:
    """Return the leg's (option type, strike, expiry).

    Raises:
        MalformedLegError: If any part of the option identity is missing
    """
    option_type, strike, expiry = leg.option_type, leg.strike, leg.expiry
    if option_type is None:
        raise _missing(leg, "contract_type")
    if strike is None:
        raise _missing(leg, "strike")
    if expiry is None:
        raise _missing(leg, "expiry")
    return option_type, strike, expiry


def _missing(leg: Leg, field_name: str) -> MalformedLegError:
    return MalformedLegError(
        f"Option leg {leg.id} ({leg.symbol}) is missing {field_name}",
        leg_id=leg.id,
        field=field_name,
    )
