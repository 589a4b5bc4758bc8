# stakedapp/units.py
"""
StakeDApp: Amount Conversion

Decimal <-> base-unit conversion at the edges of the core. Amounts cross
the contract boundary as integers in the smallest unit (wei); users type
and read them as decimal strings in a display unit (ether by default).

Parsing is strict: anything that is not a finite, positive decimal with
no more fractional digits than the unit resolves is rejected instead of
being rounded.

Usage:
    wei = parse_amount("1.5")          # 1500000000000000000
    text = format_amount(wei)          # "1.5"
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from typing import Optional

from web3 import Web3

from .errors import InvalidAmountError


DEFAULT_UNIT = "ether"

# Largest value a uint256 argument can carry
MAX_UINT256 = 2**256 - 1

# Significant digits needed to show a uint256 amount in any unit exactly
DISPLAY_PRECISION = 100


def unit_decimals(unit: str = DEFAULT_UNIT) -> int:
    """Number of fractional digits a display unit resolves to."""
    # to_wei raises ValueError for unknown unit names
    return len(str(Web3.to_wei(1, unit))) - 1


def parse_amount(text: Optional[str], unit: str = DEFAULT_UNIT) -> int:
    """
    Parse a user-entered amount into base units.

    Args:
        text: Decimal amount as typed, e.g. "0.25"
        unit: Display unit name understood by web3 ("ether", "gwei", ...)

    Returns:
        Amount in base units (always > 0)

    Raises:
        InvalidAmountError: empty, unparseable, non-finite, non-positive,
            too precise or too large
    """
    if text is None:
        raise InvalidAmountError("Amount is required")
    if isinstance(text, (int, Decimal)) and not isinstance(text, bool):
        text = str(text)
    cleaned = text.strip().replace("_", "")
    if not cleaned:
        raise InvalidAmountError("Amount is required")

    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        raise InvalidAmountError(f"Not a number: {text!r}")

    if not value.is_finite():
        raise InvalidAmountError(f"Not a finite amount: {text!r}")
    if value <= 0:
        raise InvalidAmountError(f"Amount must be greater than zero: {text!r}")

    if _fraction_digits(value) > unit_decimals(unit):
        raise InvalidAmountError(f"Too many decimal places for {unit}: {text!r}")

    try:
        wei = Web3.to_wei(value, unit)
    except ValueError as e:
        raise InvalidAmountError(f"Amount out of range: {text!r}") from e

    if wei > MAX_UINT256:
        raise InvalidAmountError(f"Amount out of range: {text!r}")
    return int(wei)


def _fraction_digits(value: Decimal) -> int:
    """Significant fractional digits, counted exactly from the digit tuple."""
    _, digits, exponent = value.as_tuple()
    trailing_zeros = len(digits) - len("".join(map(str, digits)).rstrip("0"))
    return max(0, -(exponent + trailing_zeros))


def to_display(amount: int, unit: str = DEFAULT_UNIT) -> Decimal:
    """Base units -> Decimal in the display unit, exact."""
    return Decimal(Web3.from_wei(amount, unit))


def format_amount(amount: int, unit: str = DEFAULT_UNIT) -> str:
    """Base units -> plain decimal string without exponent or trailing zeros."""
    value = to_display(amount, unit)
    if value == 0:
        return "0"
    # enough digits for any uint256 amount; the default context keeps 28
    with localcontext() as ctx:
        ctx.prec = DISPLAY_PRECISION
        return format(value.normalize(), "f")


def short_address(address: Optional[str]) -> str:
    """0x1234...abcd form used by wallet UIs."""
    if not address:
        return ""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"
