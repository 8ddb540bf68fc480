"""
Chat transport interface — the contract for the chat platform.

The dispatcher, scheduler and heartbeat only ever talk to the platform
through this class: send text, react to a message, fetch an attachment,
and receive inbound events.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from courier.chat.chunking import MAX_MESSAGE_LENGTH, split_message
from courier.core.types import ChatEvent

EventHandler = Callable[[ChatEvent], Awaitable[None]]


class ChatTransport(ABC):
    """
    Abstract base class for chat platforms.

    Subclasses implement the single-message primitives; chunking of long
    replies happens here so every platform gets it.
    """

    max_message_length: int = MAX_MESSAGE_LENGTH

    @property
    @abstractmethod
    def name(self) -> str:
        """Platform identifier."""
        ...

    @abstractmethod
    async def send_text(self, space_name: str, text: str) -> None:
        """Post one message no longer than max_message_length."""
        ...

    async def send_message(self, space_name: str, text: str) -> None:
        """Post ``text``, split into as many messages as needed."""
        for chunk in split_message(text, self.max_message_length):
            await self.send_text(space_name, chunk)

    async def react(self, message_name: str, emoji: str) -> None:
        """Add an emoji reaction. Platforms without reactions ignore it."""
        return None

    @abstractmethod
    async def download(self, resource_name: str) -> bytes:
        """Fetch the bytes of an attachment."""
        ...

    @abstractmethod
    async def listen(self, handler: EventHandler) -> None:
        """Deliver inbound events to ``handler`` until cancelled."""
        ...

    async def close(self) -> None:
        return None
