"""
Wiring for a ready-to-use swap form from settings.

Loads the price feed (a JSON file if configured, otherwise a small built-in
sample), seeds a wallet for every listed currency and builds the form with
the configured formatter and settlement delay.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from tokenswap.bus.message_bus import MessageBus
from tokenswap.core.config import DEFAULT_WALLET_AMOUNTS, TokenSwapSettings
from tokenswap.core.tokens import PriceBook
from tokenswap.swap.form import SwapForm
from tokenswap.swap.ledger import WalletLedger

logger = structlog.get_logger()

SAMPLE_PRICE_RECORDS: list[dict[str, Any]] = [
    {"currency": "ETH", "date": "2023-08-29T07:10:40.000Z", "price": 1645.9337373737374},
    {"currency": "ETH", "date": "2023-08-29T07:10:52.000Z", "price": 1645.93373737374},
    {"currency": "USDC", "date": "2023-08-29T07:10:30.000Z", "price": 0.9998782611186441},
    {"currency": "USD", "date": "2023-08-29T07:10:30.000Z", "price": 1},
    {"currency": "ATOM", "date": "2023-08-29T07:10:50.000Z", "price": 7.186657333333334},
    {"currency": "OSMO", "date": "2023-08-29T07:10:50.000Z", "price": 0.3772974333333333},
    {"currency": "WBTC", "date": "2023-08-29T07:10:52.000Z", "price": 26002.82202020202},
    {"currency": "SWTH", "date": "2023-08-29T07:10:45.000Z", "price": 0.004039850455012084},
]


@dataclass
class SwapApp:
    """Everything one swap form needs, wired together."""

    settings: TokenSwapSettings
    prices: PriceBook
    ledger: WalletLedger
    bus: MessageBus
    form: SwapForm


def load_prices(settings: TokenSwapSettings) -> PriceBook:
    if settings.prices_file is not None:
        logger.info("prices_loading", path=str(settings.prices_file))
        return PriceBook.from_json(settings.prices_file, settings.dedup_policy)
    return PriceBook.from_records(SAMPLE_PRICE_RECORDS, settings.dedup_policy)


def build_app(
    settings: TokenSwapSettings,
    *,
    from_currency: str | None = None,
    to_currency: str | None = None,
) -> SwapApp:
    prices = load_prices(settings)
    ledger = WalletLedger.seeded(prices, DEFAULT_WALLET_AMOUNTS, settings.default_balance)
    bus = MessageBus()
    form = SwapForm(
        prices,
        ledger,
        formatter=settings.formatter(),
        bus=bus,
        settlement_delay=settings.settlement_delay_seconds,
        from_currency=from_currency,
        to_currency=to_currency,
    )
    logger.info(
        "swap_app_ready",
        tokens=len(prices),
        number_format=settings.number_format.value,
        settlement_delay=settings.settlement_delay_seconds,
    )
    return SwapApp(settings=settings, prices=prices, ledger=ledger, bus=bus, form=form)
