"""
Tokens, price books and exchange rates.

A price feed may list the same currency several times with different
timestamps. PriceBook collapses it to one Token per currency; rates are then
derived from two token prices as exact rationals so that a rate and its
inverse multiply to exactly one.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum, auto
from fractions import Fraction
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from tokenswap.core.amounts import AMOUNT_PLACES, round_fraction
from tokenswap.core.errors import RateUnavailableError

logger = structlog.get_logger()


class DedupPolicy(Enum):
    """How duplicate price records for one currency are collapsed."""

    LATEST = auto()  # Keep the record with the most recent date
    FIRST_SEEN = auto()  # Keep the first record in feed order


class PriceRecord(BaseModel):
    """One entry of a price feed."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    currency: str = Field(min_length=1)
    date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    price: Decimal = Field(ge=0)

    @field_validator("price", mode="before")
    @classmethod
    def _price_from_float(cls, value: Any) -> Any:
        # JSON feeds carry floats; go through str so 0.1 stays 0.1
        if isinstance(value, float):
            return Decimal(str(value))
        return value


class Token(BaseModel):
    """A selectable currency with its price in the common unit."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    currency: str = Field(min_length=1)
    price: Decimal = Field(ge=0)
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ExchangeRate:
    """An exact conversion factor from one currency into another."""

    from_currency: str
    to_currency: str
    value: Fraction

    def inverse(self) -> "ExchangeRate":
        return ExchangeRate(
            from_currency=self.to_currency,
            to_currency=self.from_currency,
            value=1 / self.value,
        )

    def convert(self, amount: Decimal, places: int = AMOUNT_PLACES) -> Decimal:
        """Convert `amount` and round to `places` decimals."""
        return round_fraction(Fraction(amount) * self.value, places)

    def as_decimal(self, places: int = AMOUNT_PLACES) -> Decimal:
        return round_fraction(self.value, places)


def resolve_rate(from_token: Token | None, to_token: Token | None) -> ExchangeRate | None:
    """
    Derive the rate for converting `from_token` amounts into `to_token`.

    Returns None when either token is missing or either price is zero, which
    callers render as an empty derived amount.
    """
    if from_token is None or to_token is None:
        return None
    if not from_token.price or not to_token.price:
        return None
    return ExchangeRate(
        from_currency=from_token.currency,
        to_currency=to_token.currency,
        value=Fraction(from_token.price) / Fraction(to_token.price),
    )


_RECORDS_ADAPTER = TypeAdapter(list[PriceRecord])


class PriceBook(Mapping[str, Token]):
    """Immutable snapshot of one price-refresh cycle, keyed by currency."""

    def __init__(self, tokens: Iterable[Token] = ()) -> None:
        self._tokens: dict[str, Token] = {t.currency: t for t in tokens}

    @classmethod
    def from_records(
        cls,
        records: Iterable[PriceRecord | Mapping[str, Any]],
        policy: DedupPolicy = DedupPolicy.LATEST,
    ) -> "PriceBook":
        """Build a book from raw feed records, one token per currency."""
        chosen: dict[str, PriceRecord] = {}
        duplicates = 0

        for raw in records:
            record = raw if isinstance(raw, PriceRecord) else PriceRecord.model_validate(raw)
            existing = chosen.get(record.currency)
            if existing is None:
                chosen[record.currency] = record
                continue
            duplicates += 1
            if policy == DedupPolicy.LATEST and record.date > existing.date:
                chosen[record.currency] = record

        logger.debug(
            "price_book_built",
            tokens=len(chosen),
            duplicates=duplicates,
            policy=policy.name,
        )
        return cls(
            Token(currency=r.currency, price=r.price, updated_at=r.date)
            for r in chosen.values()
        )

    @classmethod
    def from_json(
        cls,
        path: str | Path,
        policy: DedupPolicy = DedupPolicy.LATEST,
    ) -> "PriceBook":
        """Load a JSON array of price records from disk."""
        records = _RECORDS_ADAPTER.validate_json(Path(path).read_bytes())
        return cls.from_records(records, policy)

    @classmethod
    def from_prices(cls, prices: Mapping[str, Decimal | int | str]) -> "PriceBook":
        """Build a book from a plain currency -> price mapping."""
        return cls(Token(currency=c, price=Decimal(str(p))) for c, p in prices.items())

    def __getitem__(self, currency: str) -> Token:
        return self._tokens[currency]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def price_of(self, currency: str | None) -> Decimal:
        """Price of `currency`, 0 if unknown."""
        if currency is None or currency not in self._tokens:
            return Decimal("0")
        return self._tokens[currency].price

    def rate(self, from_currency: str | None, to_currency: str | None) -> ExchangeRate | None:
        from_token = self._tokens.get(from_currency) if from_currency else None
        to_token = self._tokens.get(to_currency) if to_currency else None
        return resolve_rate(from_token, to_token)

    def rate_for(self, from_currency: str | None, to_currency: str | None) -> ExchangeRate:
        """Strict variant of rate() that raises when no rate can be derived."""
        rate = self.rate(from_currency, to_currency)
        if rate is None:
            raise RateUnavailableError(from_currency, to_currency)
        return rate

    def sorted_tokens(self) -> list[Token]:
        """Tokens ordered alphabetically by currency symbol."""
        return sorted(self._tokens.values(), key=lambda t: t.currency.lower())
