"""
SwapCommitter: validates, settles and applies a swap to the wallet ledger.

One commit may be in flight per committer. The settlement delay cannot be
cancelled once started, and the ledger update that follows it is a single
synchronous transfer, so observers see either the old balances or the new
ones and never a half-applied swap.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

import anyio
import structlog
from pydantic import BaseModel, ConfigDict
from ulid import ULID

from tokenswap.bus.message_bus import MessageBus
from tokenswap.bus.topics import SwapTopics, WalletTopics
from tokenswap.core.amounts import to_canonical_string
from tokenswap.core.errors import CommitInFlightError, SwapRejectedError, ValidationCode
from tokenswap.core.formatting import NumberFormatter
from tokenswap.core.messages import Message
from tokenswap.core.validation import (
    MESSAGES,
    VALID,
    ValidationResult,
    failure,
    validate_amount,
    validate_selection,
)
from tokenswap.swap.ledger import BalanceChange, WalletLedger

logger = structlog.get_logger()

DEFAULT_SETTLEMENT_DELAY = 2.0


class SwapRequest(BaseModel):
    """Amounts and currencies the user confirmed."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    from_currency: str | None
    to_currency: str | None
    from_amount: Decimal
    to_amount: Decimal


@dataclass(frozen=True)
class SwapReceipt:
    """Result of a settled swap."""

    from_currency: str
    to_currency: str
    from_amount: Decimal
    to_amount: Decimal
    from_balance: BalanceChange
    to_balance: BalanceChange
    id: str = field(default_factory=lambda: str(ULID()))
    executed_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class SwapCommitter:
    """Applies confirmed swaps to a WalletLedger."""

    def __init__(
        self,
        ledger: WalletLedger,
        *,
        settlement_delay: float = DEFAULT_SETTLEMENT_DELAY,
        bus: MessageBus | None = None,
        formatter: NumberFormatter | None = None,
    ) -> None:
        self._ledger = ledger
        self._settlement_delay = settlement_delay
        self._bus = bus
        self._formatter = formatter or NumberFormatter()
        self._in_flight = False
        self._committed = 0
        self._log = logger.bind(component="swap_committer")

    @property
    def ledger(self) -> WalletLedger:
        return self._ledger

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def committed_count(self) -> int:
        return self._committed

    def check(self, request: SwapRequest) -> ValidationResult:
        """Re-run selection and amount rules against the current balance."""
        selection = validate_selection(request.from_currency, request.to_currency)
        if not selection.ok:
            return selection

        amount = validate_amount(
            to_canonical_string(request.from_amount),
            self._ledger.get_balance(request.from_currency),
            self._formatter,
        )
        if not amount.ok:
            return amount

        if request.to_amount <= 0:
            return failure(ValidationCode.NOT_POSITIVE)
        return VALID

    async def commit(
        self,
        request: SwapRequest,
        on_settled: Callable[[SwapReceipt], None] | None = None,
    ) -> SwapReceipt:
        """
        Settle `request` and move the balances.

        `on_settled` runs synchronously right after the ledger update and
        before the committer reports idle, e.g. to clear the form inputs.

        Raises:
            CommitInFlightError: another commit has not finished yet.
            SwapRejectedError: the request fails validation.
        """
        if self._in_flight:
            self._log.warning("commit_rejected_in_flight")
            raise CommitInFlightError()

        result = self.check(request)
        if not result.ok:
            self._log.info(
                "commit_rejected",
                code=result.code.value if result.code else None,
                reason=result.message,
            )
            await self._emit(
                str(SwapTopics.REJECTED),
                {"code": result.code.value if result.code else None, "message": result.message},
            )
            result.raise_for_error()

        from_currency, to_currency = request.from_currency, request.to_currency
        if from_currency is None or to_currency is None:
            raise SwapRejectedError(
                ValidationCode.TOKEN_REQUIRED, MESSAGES[ValidationCode.TOKEN_REQUIRED]
            )

        self._in_flight = True
        try:
            self._log.info(
                "swap_settling",
                from_currency=from_currency,
                to_currency=to_currency,
                from_amount=str(request.from_amount),
                to_amount=str(request.to_amount),
            )
            await self._emit(str(SwapTopics.STARTED), request.model_dump(mode="json"))

            with anyio.CancelScope(shield=True):
                await anyio.sleep(self._settlement_delay)

            out_change, in_change = self._ledger.transfer(
                from_currency,
                request.from_amount,
                to_currency,
                request.to_amount,
            )
            receipt = SwapReceipt(
                from_currency=from_currency,
                to_currency=to_currency,
                from_amount=request.from_amount,
                to_amount=request.to_amount,
                from_balance=out_change,
                to_balance=in_change,
            )
            self._committed += 1
            if on_settled is not None:
                on_settled(receipt)
        finally:
            self._in_flight = False

        self._log.info(
            "swap_completed",
            receipt_id=receipt.id,
            from_balance=str(out_change.current),
            to_balance=str(in_change.current),
        )
        await self._emit(
            str(WalletTopics.BALANCE_CHANGED),
            {c.currency: str(c.current) for c in (out_change, in_change)},
            correlation_id=receipt.id,
        )
        await self._emit(
            str(SwapTopics.COMPLETED),
            {
                "receipt_id": receipt.id,
                "from_currency": receipt.from_currency,
                "to_currency": receipt.to_currency,
                "from_amount": str(receipt.from_amount),
                "to_amount": str(receipt.to_amount),
            },
            correlation_id=receipt.id,
        )
        return receipt

    async def _emit(
        self,
        topic: str,
        payload: dict[str, object],
        correlation_id: str | None = None,
    ) -> None:
        if self._bus is None:
            return
        await self._bus.publish(
            Message.event(topic, "swap_committer", payload, correlation_id=correlation_id)
        )
