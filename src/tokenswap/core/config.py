"""
Runtime settings.

Values come from the environment (prefix TOKENSWAP_) or a local .env file,
e.g. TOKENSWAP_NUMBER_FORMAT=european, TOKENSWAP_SETTLEMENT_DELAY_SECONDS=0.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokenswap.core.formatting import FormatMode, NumberFormatter, formatter_for
from tokenswap.core.tokens import DedupPolicy

# Opening balances per currency for a freshly seeded demo wallet
DEFAULT_WALLET_AMOUNTS: dict[str, Decimal] = {
    "BLUR": Decimal("1500"),
    "bNEO": Decimal("2000"),
    "BUSD": Decimal("2500"),
    "USD": Decimal("10000"),
    "ETH": Decimal("1500"),
    "GMX": Decimal("2000"),
    "STEVMOS": Decimal("2000"),
    "LUNA": Decimal("2000"),
    "RATOM": Decimal("2000"),
    "STRD": Decimal("2000"),
    "EVMOS": Decimal("1500"),
    "IBCX": Decimal("2000"),
    "IRIS": Decimal("5000"),
    "ampLUNA": Decimal("2000"),
    "KUJI": Decimal("2000"),
    "STOSMO": Decimal("2000"),
    "USDC": Decimal("5000"),
    "axlUSDC": Decimal("2000"),
    "ATOM": Decimal("2000"),
    "STATOM": Decimal("2000"),
    "OSMO": Decimal("2000"),
    "rSWTH": Decimal("10000"),
    "STLUNA": Decimal("2000"),
    "LSI": Decimal("2000"),
    "OKB": Decimal("2000"),
    "OKT": Decimal("2000"),
    "SWTH": Decimal("50000"),
    "USC": Decimal("1500"),
    "WBTC": Decimal("1500"),
    "wstETH": Decimal("1500"),
    "YieldUSD": Decimal("1500"),
    "ZIL": Decimal("10000"),
}


class TokenSwapSettings(BaseSettings):
    """Settings for the swap engine and its runtime."""

    model_config = SettingsConfigDict(
        env_prefix="TOKENSWAP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    settlement_delay_seconds: float = Field(default=2.0, ge=0)
    number_format: FormatMode = FormatMode.PLAIN
    price_dedup: Literal["latest", "first_seen"] = "latest"
    default_balance: Decimal = Field(default=Decimal("0"), ge=0)
    prices_file: Path | None = None

    log_level: str = "INFO"
    log_json: bool = False

    @property
    def dedup_policy(self) -> DedupPolicy:
        return DedupPolicy[self.price_dedup.upper()]

    def formatter(self) -> NumberFormatter:
        return formatter_for(self.number_format)


@lru_cache
def get_settings() -> TokenSwapSettings:
    return TokenSwapSettings()
