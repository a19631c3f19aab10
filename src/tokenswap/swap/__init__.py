"""Swap form engine: synchronizer, wallet ledger, committer and form."""

from tokenswap.swap.committer import SwapCommitter, SwapReceipt, SwapRequest
from tokenswap.swap.form import SwapForm
from tokenswap.swap.ledger import BalanceChange, WalletLedger
from tokenswap.swap.synchronizer import (
    ActiveInput,
    AmountSynchronizer,
    SwapState,
    apply_event,
)

__all__ = [
    "ActiveInput",
    "AmountSynchronizer",
    "BalanceChange",
    "SwapCommitter",
    "SwapForm",
    "SwapReceipt",
    "SwapRequest",
    "SwapState",
    "WalletLedger",
    "apply_event",
]
