"""End-to-end tests for the swap form."""

import asyncio
from decimal import Decimal

import pytest

from tokenswap.bus.message_bus import MessageBus
from tokenswap.core.errors import CommitInFlightError, SwapRejectedError, ValidationCode
from tokenswap.core.formatting import EUROPEAN, NumberFormatter
from tokenswap.core.messages import Message
from tokenswap.core.tokens import PriceBook
from tokenswap.swap.form import SwapForm
from tokenswap.swap.ledger import WalletLedger
from tokenswap.swap.synchronizer import ActiveInput


@pytest.fixture
def prices() -> PriceBook:
    return PriceBook.from_prices({"ETH": 2000, "USDC": 1, "ATOM": 8})


@pytest.fixture
def ledger() -> WalletLedger:
    return WalletLedger({"ETH": 1500, "USDC": 5000})


@pytest.fixture
def form(prices: PriceBook, ledger: WalletLedger) -> SwapForm:
    return SwapForm(
        prices,
        ledger,
        settlement_delay=0,
        from_currency="ETH",
        to_currency="USDC",
    )


class TestSwapFlow:
    @pytest.mark.asyncio
    async def test_quote_and_submit(self, form: SwapForm, ledger: WalletLedger) -> None:
        form.type_from("1")
        assert form.state.to_amount == "2000"
        assert form.rate_display == "2000"
        assert form.errors == {}
        assert form.can_submit

        receipt = await form.submit()

        assert receipt.from_amount == Decimal("1")
        assert receipt.to_amount == Decimal("2000")
        assert ledger.get_balance("ETH") == Decimal("1499")
        assert ledger.get_balance("USDC") == Decimal("7000")
        assert form.state.from_amount == ""
        assert form.state.to_amount == ""
        assert form.state.from_currency == "ETH"
        assert not form.is_submitting
        assert form.balance_display == "1499"
        assert form.errors == {}

    def test_type_to(self, form: SwapForm) -> None:
        form.type_to("4000")
        assert form.state.from_amount == "2"
        assert form.state.active_input == ActiveInput.TO

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, form: SwapForm, ledger: WalletLedger) -> None:
        form.type_from("2000")
        assert form.errors == {"from_amount": "Insufficient balance (max: 1500)"}
        assert not form.can_submit

        with pytest.raises(SwapRejectedError) as exc_info:
            await form.submit()
        assert exc_info.value.code == ValidationCode.INSUFFICIENT_BALANCE
        assert ledger.version == 0
        assert form.state.from_amount == "2000"

    @pytest.mark.asyncio
    async def test_same_token(self, form: SwapForm) -> None:
        form.select_to("ETH")
        form.type_from("1")
        assert form.errors == {"to_currency": "Select a different token"}
        assert not form.can_submit

        with pytest.raises(SwapRejectedError) as exc_info:
            await form.submit()
        assert exc_info.value.code == ValidationCode.SAME_TOKEN

    @pytest.mark.asyncio
    async def test_double_submit(self, prices: PriceBook, ledger: WalletLedger) -> None:
        form = SwapForm(
            prices, ledger, settlement_delay=0.05, from_currency="ETH", to_currency="USDC"
        )
        form.type_from("1")
        first = asyncio.create_task(form.submit())
        await asyncio.sleep(0)

        assert form.is_submitting
        assert not form.can_submit
        with pytest.raises(CommitInFlightError):
            await form.submit()

        await first
        assert ledger.get_balance("ETH") == Decimal("1499")
        assert not form.is_submitting

    @pytest.mark.asyncio
    async def test_bus_sees_balance_change(self, prices: PriceBook, ledger: WalletLedger) -> None:
        bus = MessageBus()
        received: list[Message] = []

        async def handler(msg: Message) -> None:
            received.append(msg)

        await bus.subscribe("wallet.#", handler)
        form = SwapForm(
            prices, ledger, bus=bus, settlement_delay=0, from_currency="ETH", to_currency="USDC"
        )
        form.type_from("1")
        await form.submit()

        assert len(received) == 1
        assert received[0].payload == {"ETH": "1499", "USDC": "7000"}


class TestValidationSurface:
    def test_untouched_form_hides_required(self, form: SwapForm) -> None:
        assert form.errors == {}
        assert not form.can_submit

    def test_cleared_input_shows_required(self, form: SwapForm) -> None:
        form.type_from("1")
        form.type_from("")
        assert form.errors == {"from_amount": "Please enter an amount"}

    def test_non_numeric_input(self, form: SwapForm) -> None:
        form.type_from("abc")
        assert form.state.from_amount == ""
        assert form.state.to_amount == ""
        assert form.errors == {"from_amount": "Please enter an amount"}

    def test_rejected_keystroke_keeps_previous_value(self, form: SwapForm) -> None:
        form.type_from("12")
        form.type_from("12x")
        assert form.state.from_amount == "12"
        assert form.state.to_amount == "24000"
        form.type_to("5e")
        assert form.state.to_amount == "24000"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["+5", "1e3", "1_000", "５"])
    async def test_non_canonical_text_never_commits(
        self, form: SwapForm, ledger: WalletLedger, text: str
    ) -> None:
        form.type_from(text)
        assert form.state.from_amount == ""
        assert form.state.to_amount == ""
        assert not form.can_submit

        with pytest.raises(SwapRejectedError) as exc_info:
            await form.submit()
        assert exc_info.value.code == ValidationCode.REQUIRED
        assert ledger.snapshot() == {"ETH": Decimal("1500"), "USDC": Decimal("5000")}

    @pytest.mark.asyncio
    async def test_submit_without_rate(self, ledger: WalletLedger) -> None:
        prices = PriceBook.from_prices({"ETH": 2000, "USDC": 0})
        form = SwapForm(prices, ledger, settlement_delay=0, from_currency="ETH", to_currency="USDC")
        form.type_from("1")
        assert form.state.to_amount == ""
        assert not form.can_submit

        with pytest.raises(SwapRejectedError) as exc_info:
            await form.submit()
        assert exc_info.value.code == ValidationCode.NOT_POSITIVE
        assert ledger.version == 0

    def test_zero_amount(self, form: SwapForm) -> None:
        form.type_from("0")
        assert form.errors == {"from_amount": "Amount must be greater than 0"}

    def test_missing_currencies(self, prices: PriceBook, ledger: WalletLedger) -> None:
        form = SwapForm(prices, ledger, settlement_delay=0)
        assert form.errors == {
            "from_currency": "Select a token",
            "to_currency": "Select a token",
        }
        form.select_from("ETH")
        assert form.errors == {"to_currency": "Select a token"}

    def test_balance_change_revalidates(self, form: SwapForm, ledger: WalletLedger) -> None:
        form.type_from("1000")
        assert form.amount_validation.ok

        ledger.deduct_balance("ETH", 600)
        assert form.amount_validation.code == ValidationCode.INSUFFICIENT_BALANCE
        assert form.errors["from_amount"] == "Insufficient balance (max: 900)"

    def test_swap_direction_revalidates(self, form: SwapForm) -> None:
        form.type_from("1000")
        assert form.can_submit
        form.swap_direction()
        assert form.state.from_currency == "USDC"
        assert form.state.to_amount == "0.5"
        assert form.can_submit


class TestFormExtras:
    def test_set_max(self, form: SwapForm) -> None:
        form.set_max()
        assert form.state.from_amount == "1500"
        assert form.state.to_amount == "3000000"
        assert form.can_submit

    def test_set_max_with_empty_wallet(self, prices: PriceBook) -> None:
        form = SwapForm(prices, WalletLedger(), from_currency="ATOM", to_currency="ETH")
        form.set_max()
        assert form.state.from_amount == ""

    def test_token_options(self, form: SwapForm) -> None:
        assert [t.currency for t in form.token_options(ActiveInput.FROM)] == ["ATOM", "ETH"]
        assert [t.currency for t in form.token_options(ActiveInput.TO)] == ["ATOM", "USDC"]

    def test_fiat_value(self, form: SwapForm) -> None:
        form.type_from("1.5")
        assert form.fiat_value(ActiveInput.FROM) == "3000.00"
        assert form.fiat_value(ActiveInput.TO) == "3000.00"
        form.type_from("")
        assert form.fiat_value(ActiveInput.FROM) == ""

    def test_refresh_prices(self, form: SwapForm) -> None:
        form.type_from("1")
        form.refresh_prices(PriceBook.from_prices({"ETH": 2500, "USDC": 1}))
        assert form.state.to_amount == "2500"
        assert form.rate_display == "2500"

    def test_no_rate_display_without_pair(self, prices: PriceBook, ledger: WalletLedger) -> None:
        form = SwapForm(prices, ledger, from_currency="ETH")
        assert form.rate_display == ""
        assert form.exchange_rate is None


class TestEuropeanForm:
    @pytest.fixture
    def form(self, prices: PriceBook, ledger: WalletLedger) -> SwapForm:
        ledger.add_balance("ETH", 2000)
        return SwapForm(
            prices,
            ledger,
            formatter=NumberFormatter(EUROPEAN),
            settlement_delay=0,
            from_currency="ETH",
            to_currency="USDC",
        )

    def test_typed_display_value(self, form: SwapForm) -> None:
        form.type_from("1.234,5")
        assert form.state.from_amount == "1234.5"
        assert form.state.to_amount == "2469000"
        assert form.from_display == "1.234,5"
        assert form.to_display == "2.469.000"

    def test_trailing_decimal_mark(self, form: SwapForm) -> None:
        form.type_from("1,")
        assert form.from_display == "1,"
        assert form.to_display == "2.000"

    def test_balance_message(self, form: SwapForm) -> None:
        form.type_from("4000")
        assert form.errors == {"from_amount": "Insufficient balance (max: 3.500)"}
        assert form.balance_display == "3.500"

    def test_letters_are_dropped(self, form: SwapForm) -> None:
        form.type_from("12x")
        assert form.state.from_amount == ""
        assert not form.can_submit
