"""Event bus for wallet and swap notifications."""

from tokenswap.bus.message_bus import MessageBus, Subscription
from tokenswap.bus.topics import SwapTopics, Topic, WalletTopics

__all__ = [
    "MessageBus",
    "Subscription",
    "SwapTopics",
    "Topic",
    "WalletTopics",
]
