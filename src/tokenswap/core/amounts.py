"""
Canonical amount handling.

Amounts travel through the engine as canonical decimal strings: ASCII digits,
an optional '.' and fraction, never grouping marks or exponents. They are
parsed to Decimal only for arithmetic and rounded once, at the display
precision boundary, so that repeated derivations never drift.
"""

import re
from decimal import Decimal
from fractions import Fraction

AMOUNT_PLACES = 6

_ZERO = Decimal("0")
_CANONICAL = re.compile(r"^-?(?:[0-9]+\.?[0-9]*|\.[0-9]+)$")


def parse_amount(value: str | None) -> Decimal | None:
    """
    Parse a canonical amount string.

    Returns None for anything outside the canonical grammar: empty text,
    '+' signs, exponents, underscores and non-ASCII digits included. A
    leading '-' is accepted so that negatives are reported as such. A
    trailing decimal point ("12.") is a valid intermediate value and parses
    as 12.
    """
    if value is None:
        return None
    text = value.strip()
    if not _CANONICAL.match(text):
        return None
    return Decimal(text)


def round_fraction(value: Fraction, places: int = AMOUNT_PLACES) -> Decimal:
    """Round an exact rational to `places` decimals, half away from zero."""
    scale = 10**places
    scaled = abs(value) * scale
    whole, remainder = divmod(scaled.numerator, scaled.denominator)
    if 2 * remainder >= scaled.denominator:
        whole += 1
    if value < 0:
        whole = -whole
    return Decimal(whole).scaleb(-places)


def to_canonical_string(amount: Decimal) -> str:
    """Render a Decimal as a canonical string without insignificant zeros."""
    if amount == _ZERO:
        return "0"
    text = format(amount, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def quantize_amount(amount: Decimal, places: int = AMOUNT_PLACES) -> str:
    """Round a Decimal to `places` decimals and return its canonical string."""
    return to_canonical_string(round_fraction(Fraction(amount), places))


def is_positive(value: str | None) -> bool:
    amount = parse_amount(value)
    return amount is not None and amount > _ZERO
