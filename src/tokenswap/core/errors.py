"""
Error taxonomy for the swap engine.

Only SwapRejectedError and CommitInFlightError are meant to reach callers;
everything else is recovered locally and surfaced as state (an empty derived
amount, a field message).
"""

from enum import Enum


class ValidationCode(Enum):
    """Reasons a swap request cannot be submitted."""

    REQUIRED = "required"
    NOT_POSITIVE = "not_positive"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    SAME_TOKEN = "same_token"
    TOKEN_REQUIRED = "token_required"


class TokenSwapError(Exception):
    """Base class for all tokenswap errors."""


class InputFormatError(TokenSwapError, ValueError):
    """Typed input contains characters that cannot form a number."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid amount format: {value!r}")
        self.value = value


class RateUnavailableError(TokenSwapError, LookupError):
    """No exchange rate can be derived for a currency pair."""

    def __init__(self, from_currency: str | None, to_currency: str | None) -> None:
        super().__init__(f"No exchange rate for {from_currency} -> {to_currency}")
        self.from_currency = from_currency
        self.to_currency = to_currency


class SwapRejectedError(TokenSwapError):
    """A commit was attempted while validation fails."""

    def __init__(self, code: ValidationCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class CommitInFlightError(TokenSwapError, RuntimeError):
    """A commit was attempted while another one is still settling."""

    def __init__(self) -> None:
        super().__init__("A swap is already in progress")
