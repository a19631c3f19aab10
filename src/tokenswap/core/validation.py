"""
Amount and selection validation.

Rules are evaluated in order and the first failure wins. Results are plain
values, recomputed from current state whenever they are read.
"""

from dataclasses import dataclass
from decimal import Decimal

from tokenswap.core.amounts import parse_amount
from tokenswap.core.errors import SwapRejectedError, ValidationCode
from tokenswap.core.formatting import NumberFormatter

MESSAGES: dict[ValidationCode, str] = {
    ValidationCode.REQUIRED: "Please enter an amount",
    ValidationCode.NOT_POSITIVE: "Amount must be greater than 0",
    ValidationCode.INSUFFICIENT_BALANCE: "Insufficient balance (max: {balance})",
    ValidationCode.SAME_TOKEN: "Select a different token",
    ValidationCode.TOKEN_REQUIRED: "Select a token",
}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validation rule set."""

    code: ValidationCode | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.code is None

    def raise_for_error(self) -> None:
        if self.code is not None:
            raise SwapRejectedError(self.code, self.message or self.code.value)


VALID = ValidationResult()


def failure(code: ValidationCode, **params: str) -> ValidationResult:
    return ValidationResult(code=code, message=MESSAGES[code].format(**params))


def validate_amount(
    amount: str,
    balance: Decimal,
    formatter: NumberFormatter | None = None,
) -> ValidationResult:
    """Check that `amount` is a positive number not exceeding `balance`."""
    value = parse_amount(amount)
    if value is None:
        return failure(ValidationCode.REQUIRED)
    if value <= 0:
        return failure(ValidationCode.NOT_POSITIVE)
    if value > balance:
        formatter = formatter or NumberFormatter()
        return failure(
            ValidationCode.INSUFFICIENT_BALANCE,
            balance=formatter.format_decimal(balance),
        )
    return VALID


def validate_selection(from_currency: str | None, to_currency: str | None) -> ValidationResult:
    """Both currencies must be chosen and must differ."""
    if not from_currency or not to_currency:
        return failure(ValidationCode.TOKEN_REQUIRED)
    if from_currency == to_currency:
        return failure(ValidationCode.SAME_TOKEN)
    return VALID
