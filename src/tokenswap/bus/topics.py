"""
Topic definitions for the event bus.

Topics use a hierarchical naming convention:
  <category>.<entity>.<event_type>

Wildcards are supported:
  * - matches any single segment
  # - matches zero or more segments
"""

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Topic:
    """
    An event bus topic with hierarchical structure.

    Topics support wildcard matching for flexible subscriptions.
    """

    path: str

    WILDCARD_SINGLE: ClassVar[str] = "*"
    WILDCARD_MULTI: ClassVar[str] = "#"

    @property
    def segments(self) -> list[str]:
        """Split topic into segments."""
        return self.path.split(".")

    @property
    def category(self) -> str:
        return self.segments[0] if self.segments else ""

    def matches(self, pattern: str) -> bool:
        """
        Check if this topic matches a pattern.

        Supports wildcards:
        - '*' matches exactly one segment
        - '#' matches zero or more segments
        """
        return self._match_parts(self.segments, pattern.split("."))

    def _match_parts(self, topic: list[str], pattern: list[str]) -> bool:
        if not pattern:
            return not topic

        if pattern[0] == self.WILDCARD_MULTI:
            if len(pattern) == 1:
                return True
            return any(
                self._match_parts(topic[i:], pattern[1:]) for i in range(len(topic) + 1)
            )

        if not topic:
            return False

        if pattern[0] == self.WILDCARD_SINGLE or pattern[0] == topic[0]:
            return self._match_parts(topic[1:], pattern[1:])

        return False

    def __str__(self) -> str:
        return self.path


class WalletTopics:
    """Wallet ledger events."""

    BALANCE_CHANGED = Topic("wallet.balance.changed")

    ALL = Topic("wallet.#")


class SwapTopics:
    """Swap lifecycle events."""

    STARTED = Topic("swap.started")
    COMPLETED = Topic("swap.completed")
    REJECTED = Topic("swap.rejected")

    ALL = Topic("swap.#")
