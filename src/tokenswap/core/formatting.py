"""
Conversion between canonical amounts and what the user sees and types.

The display format groups the integer part in clusters of three and uses a
configurable decimal mark. Parsing display text back is exact for anything
to_display() produced. For hand-typed text in formats whose grouping mark is
also a common decimal mark (e.g. '.' in European notation), parsing falls
back to a best-effort heuristic: a lone grouping mark followed by one or two
digits is read as a decimal mark, anything else is stripped as grouping.
"""

import re
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator

from tokenswap.core.amounts import AMOUNT_PLACES, quantize_amount
from tokenswap.core.errors import InputFormatError

_GROUPS = re.compile(r"\B(?=(\d{3})+(?!\d))")


class NumberFormat(BaseModel):
    """Grouping and decimal marks for one display convention."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    grouping: str = ""
    decimal: str = "."

    @model_validator(mode="after")
    def _distinct_marks(self) -> "NumberFormat":
        if len(self.decimal) != 1:
            raise ValueError("decimal mark must be a single character")
        if len(self.grouping) > 1:
            raise ValueError("grouping mark must be at most one character")
        if self.grouping == self.decimal:
            raise ValueError("grouping and decimal marks must differ")
        return self


PLAIN = NumberFormat(name="plain", grouping="", decimal=".")
EUROPEAN = NumberFormat(name="european", grouping=".", decimal=",")
ENGLISH = NumberFormat(name="english", grouping=",", decimal=".")


class FormatMode(Enum):
    """Named display conventions selectable from configuration."""

    PLAIN = "plain"
    EUROPEAN = "european"
    ENGLISH = "english"

    @property
    def number_format(self) -> NumberFormat:
        return {
            FormatMode.PLAIN: PLAIN,
            FormatMode.EUROPEAN: EUROPEAN,
            FormatMode.ENGLISH: ENGLISH,
        }[self]


class NumberFormatter:
    """Bidirectional canonical <-> display mapping for one NumberFormat."""

    def __init__(self, number_format: NumberFormat = PLAIN) -> None:
        self._format = number_format
        marks = {number_format.decimal}
        if number_format.grouping:
            marks.add(number_format.grouping)
        self._allowed = re.compile(
            "^[0-9" + "".join(re.escape(m) for m in sorted(marks)) + "]*$"
        )

    @property
    def number_format(self) -> NumberFormat:
        return self._format

    def to_display(self, canonical: str) -> str:
        """Render a canonical amount for display."""
        if not canonical:
            return ""
        sign = ""
        if canonical[0] in "+-":
            sign, canonical = canonical[0], canonical[1:]
        integer, point, fraction = canonical.partition(".")
        if self._format.grouping:
            integer = _GROUPS.sub(self._format.grouping, integer)
        if point:
            return f"{sign}{integer}{self._format.decimal}{fraction}"
        return f"{sign}{integer}"

    def to_canonical(self, display: str) -> str:
        """
        Parse display text back to a canonical amount.

        Raises InputFormatError if the text contains anything other than
        digits and this format's marks.
        """
        text = display.strip()
        if not text:
            return ""
        if not self._allowed.match(text):
            raise InputFormatError(display)

        decimal = self._format.decimal
        grouping = self._format.grouping

        if decimal in text:
            head, _, fraction = text.rpartition(decimal)
            return f"{self._digits(head)}.{self._digits(fraction)}"

        if grouping and grouping in text:
            parts = text.split(grouping)
            if len(parts) == 2 and 1 <= len(parts[1]) <= 2:
                return f"{parts[0]}.{parts[1]}"
            return text.replace(grouping, "")

        return text

    def format_decimal(self, amount: Decimal, places: int = AMOUNT_PLACES) -> str:
        """Round a Decimal to `places` and render it for display."""
        return self.to_display(quantize_amount(amount, places))

    def format_fixed(self, amount: Decimal, places: int = 2) -> str:
        """Render with exactly `places` decimals, as used for fiat values."""
        canonical = format(
            Decimal(quantize_amount(amount, places)).quantize(Decimal(1).scaleb(-places)), "f"
        )
        return self.to_display(canonical)

    @staticmethod
    def _digits(text: str) -> str:
        return "".join(ch for ch in text if ch.isdigit())


def formatter_for(mode: FormatMode | str) -> NumberFormatter:
    """Build a formatter for a configured mode name."""
    if isinstance(mode, str):
        mode = FormatMode(mode)
    return NumberFormatter(mode.number_format)
