"""
SwapForm: the swap form as seen by a UI layer.

The UI forwards user actions (typing, picking tokens, flipping sides,
confirming) and renders the properties exposed here. Amounts are kept in
canonical form by the synchronizer and pass through the NumberFormatter on
the way in and out. Validation is derived from the current state and the
current ledger balance every time it is read.
"""

from decimal import Decimal

import structlog

from tokenswap.bus.message_bus import MessageBus
from tokenswap.core.amounts import is_positive, parse_amount, to_canonical_string
from tokenswap.core.errors import (
    CommitInFlightError,
    InputFormatError,
    SwapRejectedError,
    ValidationCode,
)
from tokenswap.core.formatting import NumberFormatter
from tokenswap.core.tokens import ExchangeRate, PriceBook, Token
from tokenswap.core.validation import (
    MESSAGES,
    ValidationResult,
    validate_amount,
    validate_selection,
)
from tokenswap.swap.committer import (
    DEFAULT_SETTLEMENT_DELAY,
    SwapCommitter,
    SwapReceipt,
    SwapRequest,
)
from tokenswap.swap.ledger import WalletLedger
from tokenswap.swap.synchronizer import (
    ActiveInput,
    AmountSynchronizer,
    ClearAmounts,
    EditFrom,
    EditTo,
    SelectFrom,
    SelectTo,
    SwapDirection,
    SwapEvent,
    SwapState,
)

logger = structlog.get_logger()

FIELD_FROM_AMOUNT = "from_amount"
FIELD_FROM_CURRENCY = "from_currency"
FIELD_TO_CURRENCY = "to_currency"


class SwapForm:
    """One swap form instance bound to a price book and a wallet."""

    def __init__(
        self,
        prices: PriceBook,
        ledger: WalletLedger,
        *,
        formatter: NumberFormatter | None = None,
        committer: SwapCommitter | None = None,
        bus: MessageBus | None = None,
        settlement_delay: float = DEFAULT_SETTLEMENT_DELAY,
        from_currency: str | None = None,
        to_currency: str | None = None,
    ) -> None:
        self._formatter = formatter or NumberFormatter()
        self._ledger = ledger
        self._committer = committer or SwapCommitter(
            ledger,
            settlement_delay=settlement_delay,
            bus=bus,
            formatter=self._formatter,
        )
        self._sync = AmountSynchronizer(
            prices,
            SwapState(from_currency=from_currency, to_currency=to_currency),
        )
        self._touched = False
        self._log = logger.bind(component="swap_form")

    # --- State ---

    @property
    def state(self) -> SwapState:
        return self._sync.state

    @property
    def prices(self) -> PriceBook:
        return self._sync.prices

    @property
    def ledger(self) -> WalletLedger:
        return self._ledger

    @property
    def formatter(self) -> NumberFormatter:
        return self._formatter

    @property
    def exchange_rate(self) -> ExchangeRate | None:
        return self._sync.rate

    @property
    def wallet_balance(self) -> Decimal:
        """Balance of the currency being sold."""
        return self._ledger.get_balance(self.state.from_currency)

    # --- User actions ---

    def type_from(self, text: str) -> SwapState:
        """
        The user typed into the 'from' field (display notation).

        Text with characters the formatter does not accept is dropped and
        the field keeps its previous value.
        """
        self._touched = True
        value = self._parse_input(text)
        if value is None:
            return self.state
        return self._dispatch(EditFrom(value=value))

    def type_to(self, text: str) -> SwapState:
        """The user typed into the 'to' field (display notation)."""
        self._touched = True
        value = self._parse_input(text)
        if value is None:
            return self.state
        return self._dispatch(EditTo(value=value))

    def select_from(self, currency: str | None) -> SwapState:
        return self._dispatch(SelectFrom(currency=currency))

    def select_to(self, currency: str | None) -> SwapState:
        return self._dispatch(SelectTo(currency=currency))

    def swap_direction(self) -> SwapState:
        return self._dispatch(SwapDirection())

    def set_max(self) -> SwapState:
        """Fill the 'from' field with the whole balance of the sold currency."""
        balance = self.wallet_balance
        if self.state.from_currency is None or balance <= 0:
            return self.state
        self._touched = True
        return self._dispatch(EditFrom(value=to_canonical_string(balance)))

    def refresh_prices(self, prices: PriceBook) -> SwapState:
        return self._sync.refresh_prices(prices)

    # --- Display ---

    @property
    def from_display(self) -> str:
        return self._formatter.to_display(self.state.from_amount)

    @property
    def to_display(self) -> str:
        return self._formatter.to_display(self.state.to_amount)

    @property
    def balance_display(self) -> str:
        return self._formatter.format_decimal(self.wallet_balance)

    @property
    def rate_display(self) -> str:
        rate = self.exchange_rate
        if rate is None:
            return ""
        return self._formatter.format_decimal(rate.as_decimal())

    def fiat_value(self, side: ActiveInput) -> str:
        """Amount on `side` valued in the common price unit, two decimals."""
        if side == ActiveInput.FROM:
            amount, currency = self.state.from_amount, self.state.from_currency
        else:
            amount, currency = self.state.to_amount, self.state.to_currency
        value = parse_amount(amount)
        if value is None or currency is None:
            return ""
        return self._formatter.format_fixed(value * self.prices.price_of(currency), 2)

    def token_options(self, side: ActiveInput) -> list[Token]:
        """Tokens selectable on `side`, without the one picked on the other side."""
        other = self.state.to_currency if side == ActiveInput.FROM else self.state.from_currency
        return [t for t in self.prices.sorted_tokens() if t.currency != other]

    # --- Validation / submission surface ---

    @property
    def amount_validation(self) -> ValidationResult:
        return validate_amount(self.state.from_amount, self.wallet_balance, self._formatter)

    @property
    def selection_validation(self) -> ValidationResult:
        return validate_selection(self.state.from_currency, self.state.to_currency)

    @property
    def errors(self) -> dict[str, str]:
        """Messages keyed by field name for every failing rule."""
        errors: dict[str, str] = {}

        amount = self.amount_validation
        if not amount.ok and amount.message:
            if self._touched or amount.code != ValidationCode.REQUIRED:
                errors[FIELD_FROM_AMOUNT] = amount.message

        selection = self.selection_validation
        if not selection.ok and selection.message:
            if selection.code == ValidationCode.SAME_TOKEN:
                errors[FIELD_TO_CURRENCY] = selection.message
            else:
                if not self.state.from_currency:
                    errors[FIELD_FROM_CURRENCY] = selection.message
                if not self.state.to_currency:
                    errors[FIELD_TO_CURRENCY] = selection.message

        return errors

    @property
    def is_submitting(self) -> bool:
        return self._committer.in_flight

    @property
    def can_submit(self) -> bool:
        return (
            not self.is_submitting
            and self.amount_validation.ok
            and self.selection_validation.ok
            and is_positive(self.state.to_amount)
        )

    async def submit(self) -> SwapReceipt:
        """
        Commit the swap currently shown in the form.

        Raises:
            CommitInFlightError: a previous submission is still settling.
            SwapRejectedError: the form does not validate.
        """
        if self.is_submitting:
            raise CommitInFlightError()

        self.selection_validation.raise_for_error()
        self.amount_validation.raise_for_error()

        state = self.state
        from_amount = parse_amount(state.from_amount)
        to_amount = parse_amount(state.to_amount)
        if from_amount is None or to_amount is None or to_amount <= 0:
            # No rate for the pair, so nothing would be received
            raise SwapRejectedError(
                ValidationCode.NOT_POSITIVE, MESSAGES[ValidationCode.NOT_POSITIVE]
            )

        request = SwapRequest(
            from_currency=state.from_currency,
            to_currency=state.to_currency,
            from_amount=from_amount,
            to_amount=to_amount,
        )
        self._log.info(
            "swap_submitted",
            from_currency=request.from_currency,
            to_currency=request.to_currency,
            from_amount=str(request.from_amount),
        )
        return await self._committer.commit(request, on_settled=self._on_settled)

    # --- Internals ---

    def _on_settled(self, receipt: SwapReceipt) -> None:
        self._dispatch(ClearAmounts())
        self._touched = False

    def _dispatch(self, event: SwapEvent) -> SwapState:
        return self._sync.dispatch(event)

    def _parse_input(self, text: str) -> str | None:
        try:
            return self._formatter.to_canonical(text)
        except InputFormatError:
            self._log.debug("input_rejected", text=text)
            return None

