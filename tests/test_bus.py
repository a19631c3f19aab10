"""Tests for the event bus and message types."""

import pytest

from tokenswap.bus.message_bus import MessageBus
from tokenswap.bus.topics import SwapTopics, Topic, WalletTopics
from tokenswap.core.messages import Message, MessageType


class TestTopic:
    def test_topic_matching(self) -> None:
        topic = Topic("wallet.balance.changed")
        assert topic.matches("wallet.balance.changed")
        assert topic.matches("wallet.*.changed")
        assert topic.matches("wallet.#")
        assert topic.matches("#")
        assert not topic.matches("swap.balance.changed")
        assert not topic.matches("wallet.balance")

    def test_topic_segments(self) -> None:
        topic = Topic("swap.completed")
        assert topic.segments == ["swap", "completed"]
        assert topic.category == "swap"

    def test_swap_topics_match_all(self) -> None:
        for topic in (SwapTopics.STARTED, SwapTopics.COMPLETED, SwapTopics.REJECTED):
            assert topic.matches(str(SwapTopics.ALL))
        assert not WalletTopics.BALANCE_CHANGED.matches(str(SwapTopics.ALL))


class TestMessage:
    def test_event_factory(self) -> None:
        msg = Message.event("swap.started", "committer", {"from_currency": "ETH"}, correlation_id="abc")
        assert msg.type == MessageType.EVENT
        assert msg.correlation_id == "abc"
        assert msg.id


class TestMessageBus:
    @pytest.mark.asyncio
    async def test_publish_subscribe(self) -> None:
        bus = MessageBus()
        received: list[Message] = []

        async def handler(msg: Message) -> None:
            received.append(msg)

        await bus.subscribe(WalletTopics.BALANCE_CHANGED, handler)

        delivered = await bus.publish(
            Message.event("wallet.balance.changed", "test", {"ETH": "1499"})
        )

        assert delivered == 1
        assert len(received) == 1
        assert received[0].payload == {"ETH": "1499"}

    @pytest.mark.asyncio
    async def test_wildcard_subscription(self) -> None:
        bus = MessageBus()
        received: list[Message] = []

        async def handler(msg: Message) -> None:
            received.append(msg)

        await bus.subscribe(SwapTopics.ALL, handler)

        await bus.publish(Message.event("swap.started", "src", None))
        await bus.publish(Message.event("swap.completed", "src", None))
        await bus.publish(Message.event("wallet.balance.changed", "src", None))

        assert [m.topic for m in received] == ["swap.started", "swap.completed"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self) -> None:
        bus = MessageBus()
        received: list[Message] = []

        async def handler(msg: Message) -> None:
            received.append(msg)

        sub_id = await bus.subscribe("swap.started", handler)
        assert await bus.unsubscribe(sub_id)
        assert not await bus.unsubscribe(sub_id)

        await bus.publish(Message.event("swap.started", "src", None))
        assert len(received) == 0
        assert bus.get_subscriptions() == []

    @pytest.mark.asyncio
    async def test_handler_failure_is_isolated(self) -> None:
        bus = MessageBus()
        received: list[Message] = []

        async def broken(msg: Message) -> None:
            raise RuntimeError("boom")

        async def handler(msg: Message) -> None:
            received.append(msg)

        await bus.subscribe("swap.#", broken)
        await bus.subscribe("swap.#", handler)

        delivered = await bus.publish(Message.event("swap.rejected", "src", None))

        assert delivered == 1
        assert len(received) == 1
        assert bus.stats.total_errors == 1
