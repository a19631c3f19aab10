"""Core building blocks: amounts, tokens and rates, formatting, validation."""

from tokenswap.core.errors import (
    CommitInFlightError,
    InputFormatError,
    RateUnavailableError,
    SwapRejectedError,
    TokenSwapError,
    ValidationCode,
)
from tokenswap.core.formatting import EUROPEAN, ENGLISH, PLAIN, NumberFormat, NumberFormatter
from tokenswap.core.tokens import DedupPolicy, ExchangeRate, PriceBook, Token, resolve_rate
from tokenswap.core.validation import ValidationResult, validate_amount, validate_selection

__all__ = [
    "CommitInFlightError",
    "DedupPolicy",
    "ENGLISH",
    "EUROPEAN",
    "ExchangeRate",
    "InputFormatError",
    "NumberFormat",
    "NumberFormatter",
    "PLAIN",
    "PriceBook",
    "RateUnavailableError",
    "SwapRejectedError",
    "Token",
    "TokenSwapError",
    "ValidationCode",
    "ValidationResult",
    "resolve_rate",
    "validate_amount",
    "validate_selection",
]
