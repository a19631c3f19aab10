"""
WalletLedger: in-memory per-currency balances.

All mutation goes through deduct_balance, add_balance and transfer. Each
call reads and writes without awaiting in between, so within one event loop
every call is a single atomic update. Deduction clamps at zero; addition is
never clamped.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

import structlog

from tokenswap.core.amounts import parse_amount

logger = structlog.get_logger()

_ZERO = Decimal("0")


@dataclass(frozen=True)
class BalanceChange:
    """Before/after view of one currency touched by a ledger update."""

    currency: str
    previous: Decimal
    current: Decimal

    @property
    def delta(self) -> Decimal:
        return self.current - self.previous


def _as_amount(amount: Decimal | int | str) -> Decimal:
    value = amount if isinstance(amount, Decimal) else parse_amount(str(amount))
    if value is None or not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    if value < 0:
        raise ValueError(f"Amount must not be negative: {amount!r}")
    return value


class WalletLedger:
    """Balances keyed by currency symbol."""

    def __init__(self, balances: Mapping[str, Decimal | int | str] | None = None) -> None:
        self._balances: dict[str, Decimal] = {
            currency: _as_amount(amount) for currency, amount in (balances or {}).items()
        }
        self._version = 0
        self._log = logger.bind(component="wallet_ledger")

    @classmethod
    def seeded(
        cls,
        currencies: Iterable[str],
        amounts: Mapping[str, Decimal],
        default: Decimal = _ZERO,
    ) -> "WalletLedger":
        """Open a wallet for `currencies`, using `amounts` where listed."""
        return cls({c: amounts.get(c, default) for c in currencies})

    @property
    def version(self) -> int:
        """Incremented on every mutation; lets readers detect stale snapshots."""
        return self._version

    def get_balance(self, currency: str | None) -> Decimal:
        if currency is None:
            return _ZERO
        return self._balances.get(currency, _ZERO)

    def snapshot(self) -> dict[str, Decimal]:
        return dict(self._balances)

    def deduct_balance(self, currency: str, amount: Decimal | int | str) -> BalanceChange:
        """Subtract `amount`, flooring the balance at zero."""
        value = _as_amount(amount)
        previous = self.get_balance(currency)
        current = max(_ZERO, previous - value)
        if previous - value < _ZERO:
            self._log.warning(
                "deduction_clamped",
                currency=currency,
                balance=str(previous),
                amount=str(value),
            )
        self._commit({currency: current})
        return BalanceChange(currency, previous, current)

    def add_balance(self, currency: str, amount: Decimal | int | str) -> BalanceChange:
        value = _as_amount(amount)
        previous = self.get_balance(currency)
        current = previous + value
        self._commit({currency: current})
        return BalanceChange(currency, previous, current)

    def transfer(
        self,
        from_currency: str,
        from_amount: Decimal | int | str,
        to_currency: str,
        to_amount: Decimal | int | str,
    ) -> tuple[BalanceChange, BalanceChange]:
        """
        Deduct from one currency and credit another as one update.

        Both new balances are computed first and written together, so no
        reader ever sees one side of the swap without the other.
        """
        if from_currency == to_currency:
            raise ValueError("Cannot transfer between identical currencies")
        out_value = _as_amount(from_amount)
        in_value = _as_amount(to_amount)

        from_previous = self.get_balance(from_currency)
        to_previous = self.get_balance(to_currency)
        from_current = max(_ZERO, from_previous - out_value)
        to_current = to_previous + in_value
        if from_previous - out_value < _ZERO:
            self._log.warning(
                "deduction_clamped",
                currency=from_currency,
                balance=str(from_previous),
                amount=str(out_value),
            )

        self._commit({from_currency: from_current, to_currency: to_current})
        return (
            BalanceChange(from_currency, from_previous, from_current),
            BalanceChange(to_currency, to_previous, to_current),
        )

    def _commit(self, updates: dict[str, Decimal]) -> None:
        self._balances.update(updates)
        self._version += 1
        self._log.debug(
            "balances_updated",
            version=self._version,
            balances={c: str(v) for c, v in updates.items()},
        )
