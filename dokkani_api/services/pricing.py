"""Price parsing and currency unit conversion."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")

ZERO = Decimal("0")
MINOR_UNITS_PER_MAJOR = Decimal("100")


def parse_price(value: Any) -> Decimal:
    """Normalize a client-supplied price into a decimal amount.

    Numbers are taken as-is. Strings such as "$12.50" or "QAR 1,200" have
    everything except digits and dots removed and the leading number parsed.
    Anything else, or a string without digits, is zero.

    Args:
        value: Price as sent by the client.

    Returns:
        Decimal: Price in major currency units.
    """
    if isinstance(value, bool):
        return ZERO

    if isinstance(value, (int, float, Decimal)):
        try:
            price = Decimal(str(value))
        except InvalidOperation:
            return ZERO
        return price if price.is_finite() else ZERO

    if isinstance(value, str):
        match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", value))
        if not match:
            return ZERO
        return Decimal(match.group())

    return ZERO


def to_minor_units(price: Decimal) -> int:
    """Convert a major-unit price to Stripe's integer minor units, rounding half up."""
    return int((price * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int | None) -> Decimal:
    """Convert a Stripe minor-unit amount back to major units; None is zero."""
    if amount is None:
        return ZERO
    return Decimal(amount) / MINOR_UNITS_PER_MAJOR
