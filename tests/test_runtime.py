"""Tests for settings and the runtime wiring."""

import argparse
from collections.abc import Iterator
from decimal import Decimal
from pathlib import Path

import pytest

from tokenswap.core.config import TokenSwapSettings, get_settings
from tokenswap.core.formatting import EUROPEAN, PLAIN
from tokenswap.core.tokens import DedupPolicy
from tokenswap.runtime.__main__ import main, parse_args, run_swap
from tokenswap.runtime.bootstrap import build_app, load_prices


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    for name in ("NUMBER_FORMAT", "SETTLEMENT_DELAY_SECONDS", "PRICE_DEDUP", "PRICES_FILE"):
        monkeypatch.delenv(f"TOKENSWAP_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self) -> None:
        settings = TokenSwapSettings()
        assert settings.settlement_delay_seconds == 2.0
        assert settings.formatter().number_format == PLAIN
        assert settings.dedup_policy == DedupPolicy.LATEST

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOKENSWAP_NUMBER_FORMAT", "european")
        monkeypatch.setenv("TOKENSWAP_PRICE_DEDUP", "first_seen")
        monkeypatch.setenv("TOKENSWAP_SETTLEMENT_DELAY_SECONDS", "0")

        settings = get_settings()
        assert settings.formatter().number_format == EUROPEAN
        assert settings.dedup_policy == DedupPolicy.FIRST_SEEN
        assert settings.settlement_delay_seconds == 0

    def test_negative_delay_rejected(self) -> None:
        with pytest.raises(ValueError):
            TokenSwapSettings(settlement_delay_seconds=-1)


class TestBootstrap:
    def test_sample_prices_keep_latest(self) -> None:
        prices = load_prices(TokenSwapSettings())
        assert prices["ETH"].price == Decimal("1645.93373737374")

    def test_prices_file(self, tmp_path: Path) -> None:
        path = tmp_path / "prices.json"
        path.write_text('[{"currency": "ETH", "date": "2023-08-29T07:10:40Z", "price": 2000}]')
        prices = load_prices(TokenSwapSettings(prices_file=path))
        assert list(prices) == ["ETH"]

    def test_build_app_seeds_wallet(self) -> None:
        app = build_app(
            TokenSwapSettings(settlement_delay_seconds=0),
            from_currency="ETH",
            to_currency="USDC",
        )
        assert app.ledger.get_balance("ETH") == Decimal("1500")
        assert app.ledger.get_balance("USDC") == Decimal("5000")
        assert set(app.ledger.snapshot()) == set(app.prices)
        assert app.form.state.from_currency == "ETH"


class TestCommandLine:
    def test_parse_args(self) -> None:
        args = parse_args(["ETH", "USDC", "1,5"])
        assert args.from_currency == "ETH"
        assert args.to_currency == "USDC"
        assert args.amount == "1,5"

    @pytest.mark.asyncio
    async def test_run_swap(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOKENSWAP_SETTLEMENT_DELAY_SECONDS", "0")
        await run_swap(argparse.Namespace(from_currency="ETH", to_currency="USDC", amount="1"))

    @pytest.mark.asyncio
    async def test_run_swap_blocked(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOKENSWAP_SETTLEMENT_DELAY_SECONDS", "0")
        with pytest.raises(SystemExit) as exc_info:
            await run_swap(
                argparse.Namespace(from_currency="ETH", to_currency="USDC", amount="99999")
            )
        assert exc_info.value.code == 2

    def test_main_exit_code(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOKENSWAP_SETTLEMENT_DELAY_SECONDS", "0")
        with pytest.raises(SystemExit) as exc_info:
            main(["ETH", "USDC", "1"])
        assert exc_info.value.code == 0
