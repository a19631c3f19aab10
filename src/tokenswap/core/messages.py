"""
Message types carried on the event bus.

Wallet and swap components publish frozen messages; subscribers such as the
runtime or a UI layer react to them without reaching into component state.
"""

from datetime import UTC, datetime
from enum import Enum, auto
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from ulid import ULID


class MessageType(Enum):
    """Types of messages on the event bus."""

    EVENT = auto()  # Something happened


class Message(BaseModel):
    """Carrier for payloads on the pub/sub event bus."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=lambda: str(ULID()))
    type: MessageType
    topic: str
    payload: Any
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    source: str
    correlation_id: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def event(
        cls,
        topic: str,
        source: str,
        payload: Any,
        *,
        correlation_id: str | None = None,
    ) -> "Message":
        """Create an event message."""
        return cls(
            type=MessageType.EVENT,
            topic=topic,
            payload=payload,
            source=source,
            correlation_id=correlation_id,
        )
