"""
Price helpers for display-formatted money strings.

Prices travel through the storefront as strings such as "₹45.99" or
"45 per kg". Arithmetic extracts the numeric part first, multiplies and
sums exact decimals, and rounds to integer minor units (paise) once at the
end. Display strings are only produced here.
"""

import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from farmease.config.checkout_config import CHECKOUT_CONFIG

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_price(display: str) -> float:
    """
    Extract the numeric amount from a display price.

    Every character that is not a digit or a decimal point is dropped, then
    the longest leading decimal number is read ("1.2.3" reads as 1.2).

    Args:
        display: Display price string

    Returns:
        Parsed amount, or nan when no digits remain
    """
    if display is None:
        return math.nan
    cleaned = _NON_NUMERIC.sub("", str(display))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return math.nan
    return float(match.group(0))


def exact_amount(amount: Union[float, Decimal], quantity: int = 1) -> Decimal:
    """Exact decimal value of amount * quantity, before any rounding."""
    return Decimal(str(amount)) * quantity


def to_minor_units(amount: Union[float, Decimal]) -> int:
    """Convert an amount to paise, rounding half up."""
    quantized = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return int(quantized * 100)


def from_minor_units(minor: int) -> float:
    """Convert paise back to an amount."""
    return float(Decimal(minor) / 100)


def format_price(amount: float) -> str:
    """Render an amount with the currency glyph and two decimals."""
    return format_minor_units(to_minor_units(amount))


def format_minor_units(minor: int) -> str:
    """Render paise with the currency glyph and two decimals."""
    return f"{CHECKOUT_CONFIG['currency_symbol']}{Decimal(minor) / 100:.2f}"


def display_price(display: str) -> str:
    """Normalize a display price, keeping the original text when unparseable."""
    amount = parse_price(display)
    if math.isnan(amount):
        return display
    return format_price(amount)


def line_total_display(display: str, quantity: int) -> str:
    """Render price * quantity, or "N/A" when the price is unparseable."""
    amount = parse_price(display)
    if math.isnan(amount):
        return "N/A"
    return format_minor_units(to_minor_units(exact_amount(amount, quantity)))
