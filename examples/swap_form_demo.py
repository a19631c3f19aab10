#!/usr/bin/env python3
"""
Example: Swap Form Demo

Demonstrates:
- PriceBook built from a feed with duplicate records
- SwapForm keeping both amount fields in sync while the user types
- Validation messages reacting to input and wallet balance
- A simulated settlement moving balances in the WalletLedger

This walks through one form session:
PRICES -> TYPING -> VALIDATION -> SUBMIT -> NEW BALANCES
"""

from decimal import Decimal

import anyio

from tokenswap.bus.message_bus import MessageBus
from tokenswap.bus.topics import SwapTopics, WalletTopics
from tokenswap.core.formatting import EUROPEAN, NumberFormatter
from tokenswap.core.messages import Message
from tokenswap.core.tokens import PriceBook
from tokenswap.swap.form import SwapForm
from tokenswap.swap.ledger import WalletLedger
from tokenswap.swap.synchronizer import ActiveInput


PRICE_FEED = [
    {"currency": "ETH", "date": "2023-08-29T07:10:40.000Z", "price": 1645.9337373737374},
    {"currency": "ETH", "date": "2023-08-29T07:10:52.000Z", "price": 1645.93373737374},
    {"currency": "USDC", "date": "2023-08-29T07:10:30.000Z", "price": 0.9998782611186441},
    {"currency": "ATOM", "date": "2023-08-29T07:10:50.000Z", "price": 7.186657333333334},
]


def show(form: SwapForm) -> None:
    state = form.state
    print(f"    Pay:     {form.from_display or '-'} {state.from_currency}")
    print(f"    Receive: {form.to_display or '-'} {state.to_currency}")
    print(f"    Rate:    1 {state.from_currency} = {form.rate_display} {state.to_currency}")
    print(f"    Errors:  {form.errors or 'none'}")
    print(f"    Can submit: {form.can_submit}")


async def main():
    print("=" * 60)
    print("Swap Form Demo")
    print("=" * 60)
    print()

    # =========================================================================
    # Step 1: Prices and wallet
    # =========================================================================
    print("Step 1: Loading Prices")
    print("-" * 40)

    prices = PriceBook.from_records(PRICE_FEED)
    for token in prices.sorted_tokens():
        print(f"  {token.currency}: {token.price}")

    ledger = WalletLedger({"ETH": Decimal("1500"), "USDC": Decimal("5000"), "ATOM": Decimal("2000")})
    bus = MessageBus()

    async def on_event(message: Message) -> None:
        print(f"  [event] {message.topic}: {message.payload}")

    await bus.subscribe(SwapTopics.ALL, on_event)
    await bus.subscribe(WalletTopics.ALL, on_event)

    form = SwapForm(
        prices,
        ledger,
        formatter=NumberFormatter(EUROPEAN),
        bus=bus,
        settlement_delay=0.5,
        from_currency="ETH",
        to_currency="USDC",
    )
    print(f"  ETH balance: {form.balance_display}")
    print()

    # =========================================================================
    # Step 2: Typing in either field
    # =========================================================================
    print("Step 2: Typing Amounts")
    print("-" * 40)

    print("  User types '1,5' into the pay field:")
    form.type_from("1,5")
    show(form)
    print(f"    Worth:   {form.fiat_value(ActiveInput.FROM)}")

    print("  User types '1.000' into the receive field:")
    form.type_to("1.000")
    show(form)

    print("  User picks ATOM to receive instead:")
    form.select_to("ATOM")
    show(form)
    print()

    # =========================================================================
    # Step 3: Validation
    # =========================================================================
    print("Step 3: Validation")
    print("-" * 40)

    print("  User asks for more ETH than the wallet holds:")
    form.type_from("2000")
    show(form)

    print("  User picks ETH on both sides:")
    form.select_to("ETH")
    show(form)
    form.select_to("USDC")
    print()

    # =========================================================================
    # Step 4: Submit
    # =========================================================================
    print("Step 4: Submitting")
    print("-" * 40)

    form.set_max()
    show(form)
    receipt = await form.submit()
    print(f"  Receipt: {receipt.id}")
    print(f"    ETH:  {receipt.from_balance.previous} -> {receipt.from_balance.current}")
    print(f"    USDC: {receipt.to_balance.previous} -> {receipt.to_balance.current}")
    print(f"  Form cleared: pay='{form.from_display}' receive='{form.to_display}'")
    print()

    print("=" * 60)
    print("Example Complete!")
    print("=" * 60)


if __name__ == "__main__":
    anyio.run(main)
