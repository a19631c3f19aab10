"""
Amount synchronizer: the bidirectional swap form state machine.

The form holds two amount buffers under one exchange rate. Whichever field
the user edited last is the source of truth; the other is always derived from
it, rounded to AMOUNT_PLACES. When the rate changes (currency picked, sides
swapped, prices refreshed) the last edit is replayed against the new rate,
so the number the user typed is preserved exactly and the counterpart never
accumulates rounding from being derived back and forth.

apply_event() is pure: it returns a new SwapState and touches nothing else.
"""

from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict

from tokenswap.core.amounts import parse_amount, to_canonical_string
from tokenswap.core.tokens import ExchangeRate, PriceBook

logger = structlog.get_logger()


class ActiveInput(Enum):
    """Which amount field the user edited last."""

    FROM = "from"
    TO = "to"


class SwapState(BaseModel):
    """Snapshot of the swap form."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    from_currency: str | None = None
    to_currency: str | None = None
    from_amount: str = ""
    to_amount: str = ""
    active_input: ActiveInput = ActiveInput.FROM


# --- Events ---


class SwapEvent(BaseModel):
    """Base class for synchronizer events."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class EditFrom(SwapEvent):
    value: str


class EditTo(SwapEvent):
    value: str


class SelectFrom(SwapEvent):
    currency: str | None


class SelectTo(SwapEvent):
    currency: str | None


class SwapDirection(SwapEvent):
    pass


class PricesRefreshed(SwapEvent):
    pass


class ClearAmounts(SwapEvent):
    pass


# --- Transitions ---


def _derive(value: str, rate: ExchangeRate | None) -> str:
    """Counterpart amount for `value` under `rate`, or "" if undefined."""
    amount = parse_amount(value)
    if amount is None or rate is None or not rate.value:
        return ""
    return to_canonical_string(rate.convert(amount))


def _edit_from(state: SwapState, value: str, prices: PriceBook) -> SwapState:
    rate = prices.rate(state.from_currency, state.to_currency)
    return state.model_copy(
        update={
            "active_input": ActiveInput.FROM,
            "from_amount": value,
            "to_amount": _derive(value, rate),
        }
    )


def _edit_to(state: SwapState, value: str, prices: PriceBook) -> SwapState:
    rate = prices.rate(state.from_currency, state.to_currency)
    inverse = rate.inverse() if rate is not None else None
    return state.model_copy(
        update={
            "active_input": ActiveInput.TO,
            "to_amount": value,
            "from_amount": _derive(value, inverse),
        }
    )


def _replay(state: SwapState, prices: PriceBook) -> SwapState:
    """Re-run the user's last edit against the current rate."""
    if state.active_input == ActiveInput.FROM:
        if state.from_amount:
            return _edit_from(state, state.from_amount, prices)
    elif state.to_amount:
        return _edit_to(state, state.to_amount, prices)
    return state


def apply_event(state: SwapState, event: SwapEvent, prices: PriceBook) -> SwapState:
    """Compute the state that follows `event`."""
    match event:
        case EditFrom(value=value):
            return _edit_from(state, value, prices)
        case EditTo(value=value):
            return _edit_to(state, value, prices)
        case SelectFrom(currency=currency):
            return _replay(state.model_copy(update={"from_currency": currency}), prices)
        case SelectTo(currency=currency):
            return _replay(state.model_copy(update={"to_currency": currency}), prices)
        case SwapDirection():
            swapped = state.model_copy(
                update={
                    "from_currency": state.to_currency,
                    "to_currency": state.from_currency,
                }
            )
            return _replay(swapped, prices)
        case PricesRefreshed():
            return _replay(state, prices)
        case ClearAmounts():
            return state.model_copy(update={"from_amount": "", "to_amount": ""})
        case _:
            logger.warning("unknown_swap_event", event_type=type(event).__name__)
            return state


class AmountSynchronizer:
    """Holds the current SwapState and a price book, applying events in order."""

    def __init__(self, prices: PriceBook, state: SwapState | None = None) -> None:
        self._prices = prices
        self._state = state or SwapState()
        self._log = logger.bind(component="amount_synchronizer")

    @property
    def state(self) -> SwapState:
        return self._state

    @property
    def prices(self) -> PriceBook:
        return self._prices

    @property
    def rate(self) -> ExchangeRate | None:
        return self._prices.rate(self._state.from_currency, self._state.to_currency)

    def dispatch(self, event: SwapEvent) -> SwapState:
        self._state = apply_event(self._state, event, self._prices)
        self._log.debug(
            "event_applied",
            event_type=type(event).__name__,
            from_amount=self._state.from_amount,
            to_amount=self._state.to_amount,
            active=self._state.active_input.value,
        )
        return self._state

    def refresh_prices(self, prices: PriceBook) -> SwapState:
        """Swap in a new price snapshot and recompute the derived amount."""
        self._prices = prices
        return self.dispatch(PricesRefreshed())
