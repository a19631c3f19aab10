"""
tokenswap

Engine for browser-style token swap forms: two amount fields kept in sync
under a live exchange rate, balance-aware validation, locale-aware number
formatting, and a simulated swap that moves balances in an in-memory wallet.

- PriceBook / resolve_rate -> exact exchange rates from a price feed
- AmountSynchronizer -> pure state machine for the two amount fields
- NumberFormatter -> canonical <-> display notation
- SwapForm / SwapCommitter / WalletLedger -> submission and settlement
"""

__version__ = "0.1.0"

from tokenswap.core.formatting import NumberFormatter
from tokenswap.core.tokens import PriceBook, Token
from tokenswap.swap.form import SwapForm
from tokenswap.swap.ledger import WalletLedger
from tokenswap.swap.synchronizer import ActiveInput, SwapState

__all__ = [
    "__version__",
    "ActiveInput",
    "NumberFormatter",
    "PriceBook",
    "SwapForm",
    "SwapState",
    "Token",
    "WalletLedger",
]
