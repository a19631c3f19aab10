"""
Async pub/sub event bus.

Components publish wallet and swap events here; subscribers register async
handlers against topic patterns with wildcard support.
"""

from collections import defaultdict
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import anyio
import structlog
from ulid import ULID

from tokenswap.bus.topics import Topic
from tokenswap.core.messages import Message

logger = structlog.get_logger()

MessageHandler = Callable[[Message], Coroutine[Any, Any, None]]


@dataclass
class Subscription:
    """A subscription to a topic pattern."""

    id: str
    pattern: str
    handler: MessageHandler
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def matches(self, topic: str) -> bool:
        return Topic(topic).matches(self.pattern)


@dataclass
class MessageBusStats:
    """Statistics for the event bus."""

    total_messages_published: int = 0
    total_messages_delivered: int = 0
    total_subscriptions: int = 0
    total_errors: int = 0


class MessageBus:
    """
    Async pub/sub bus with topic-based routing.

    Features:
    - Hierarchical topics with dot-separated segments
    - Wildcard subscriptions (* for single segment, # for multiple)
    - Concurrent delivery
    - Error isolation (one handler failure doesn't affect others)
    """

    def __init__(self, max_concurrent_handlers: int = 100) -> None:
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)
        self._subscriptions_by_id: dict[str, Subscription] = {}
        self._stats = MessageBusStats()
        self._max_concurrent = max_concurrent_handlers
        self._log = logger.bind(component="message_bus")

    @property
    def stats(self) -> MessageBusStats:
        return self._stats

    async def subscribe(self, pattern: str | Topic, handler: MessageHandler) -> str:
        """
        Subscribe to a topic pattern.

        Returns:
            Subscription ID for later unsubscription
        """
        pattern_str = str(pattern)
        sub = Subscription(id=str(ULID()), pattern=pattern_str, handler=handler)

        self._subscriptions[pattern_str].append(sub)
        self._subscriptions_by_id[sub.id] = sub
        self._stats.total_subscriptions += 1

        self._log.debug("subscribed", pattern=pattern_str, subscription_id=sub.id)
        return sub.id

    async def unsubscribe(self, subscription_id: str) -> bool:
        """Remove a subscription by ID. Returns True if it existed."""
        sub = self._subscriptions_by_id.pop(subscription_id, None)
        if sub is None:
            return False

        self._subscriptions[sub.pattern] = [
            s for s in self._subscriptions[sub.pattern] if s.id != sub.id
        ]
        if not self._subscriptions[sub.pattern]:
            del self._subscriptions[sub.pattern]
        self._stats.total_subscriptions -= 1
        self._log.debug("unsubscribed", subscription_id=subscription_id)
        return True

    async def publish(self, message: Message) -> int:
        """
        Publish a message to all matching subscribers.

        Handler failures are isolated and logged.

        Returns:
            Number of handlers that received the message
        """
        self._stats.total_messages_published += 1
        topic = Topic(message.topic)

        matching: list[Subscription] = []
        for pattern, subs in self._subscriptions.items():
            if topic.matches(pattern):
                matching.extend(subs)

        if not matching:
            self._log.debug("no_subscribers", topic=message.topic)
            return 0

        results: list[bool] = []

        async def deliver(sub: Subscription) -> None:
            try:
                await sub.handler(message)
                results.append(True)
            except Exception:
                self._stats.total_errors += 1
                self._log.exception(
                    "handler_failed",
                    topic=message.topic,
                    subscription_id=sub.id,
                )
                results.append(False)

        async with anyio.create_task_group() as tg:
            for sub in matching[: self._max_concurrent]:
                tg.start_soon(deliver, sub)

        delivered = sum(1 for r in results if r)
        self._stats.total_messages_delivered += delivered

        self._log.debug(
            "published",
            topic=message.topic,
            message_id=message.id,
            delivered=delivered,
            total_handlers=len(matching),
        )
        return delivered

    def get_subscriptions(self, pattern: str | None = None) -> list[Subscription]:
        if pattern is None:
            return list(self._subscriptions_by_id.values())
        return list(self._subscriptions.get(pattern, []))
