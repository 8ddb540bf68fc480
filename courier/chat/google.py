"""
GoogleChatTransport — Google Chat over REST, events via Pub/Sub pull.

Inbound:  POST pubsub.googleapis.com/v1/<subscription>:pull
          every received message is acknowledged before it is handled;
          each event runs as its own task so one slow conversation does
          not hold up another.
Outbound: POST chat.googleapis.com/v1/<space>/messages
Reaction: POST chat.googleapis.com/v1/<message>/reactions   (user credentials)
Media:    GET  chat.googleapis.com/v1/media/<resource>?alt=media
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import Protocol

import httpx

from courier.chat.base import ChatTransport, EventHandler
from courier.core.errors import ChatError
from courier.core.types import ChatEvent

logger = logging.getLogger(__name__)

CHAT_API = "https://chat.googleapis.com/v1"
PUBSUB_API = "https://pubsub.googleapis.com/v1"

PULL_BATCH = 10
PULL_ERROR_BACKOFF = 5.0  # seconds


class TokenSource(Protocol):
    async def token(self) -> str: ...


def subscription_path(subscription: str, project_id: str | None) -> str:
    """Accept a full resource path or a bare name within the project."""
    if subscription.startswith("projects/"):
        return subscription
    if not project_id:
        raise ChatError(
            f"Subscription {subscription!r} needs a project; "
            f"use projects/<project>/subscriptions/<name>"
        )
    return f"projects/{project_id}/subscriptions/{subscription}"


def decode_event(message: dict) -> ChatEvent:
    """
    Decode a Pub/Sub message whose data is a base64 Chat event.

    Raises:
        ValueError: the data is not base64-encoded JSON.
    """
    data = base64.b64decode(message.get("data") or "", validate=True)
    return ChatEvent.from_dict(json.loads(data))


class GoogleChatTransport(ChatTransport):
    """
    Usage:
        transport = GoogleChatTransport(
            subscription="projects/p/subscriptions/chat-events",
            tokens=GoogleTokenSource([CHAT_BOT_SCOPE, PUBSUB_SCOPE], key_path),
        )
        await transport.send_message("spaces/AAAA", "hello")
        await transport.listen(dispatcher.handle)
    """

    def __init__(
        self,
        subscription: str,
        tokens: TokenSource,
        reaction_tokens: TokenSource | None = None,
        client: httpx.AsyncClient | None = None,
        max_message_length: int | None = None,
    ) -> None:
        self._subscription = subscription
        self._tokens = tokens
        self._reaction_tokens = reaction_tokens
        self._client = client or httpx.AsyncClient(timeout=60)
        self._tasks: set[asyncio.Task] = set()
        if max_message_length:
            self.max_message_length = max_message_length

    @property
    def name(self) -> str:
        return "google-chat"

    async def _headers(self, tokens: TokenSource) -> dict[str, str]:
        return {"Authorization": f"Bearer {await tokens.token()}"}

    # ── Outbound ──────────────────────────────────────────────────────────────

    async def send_text(self, space_name: str, text: str) -> None:
        try:
            resp = await self._client.post(
                f"{CHAT_API}/{space_name}/messages",
                json={"text": text},
                headers=await self._headers(self._tokens),
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send to {space_name}: {e}")
            raise ChatError(f"Failed to send to {space_name}: {e}") from e

    async def react(self, message_name: str, emoji: str) -> None:
        """Best-effort; a no-op unless user credentials were configured."""
        if self._reaction_tokens is None:
            return
        try:
            resp = await self._client.post(
                f"{CHAT_API}/{message_name}/reactions",
                json={"emoji": {"unicode": emoji}},
                headers=await self._headers(self._reaction_tokens),
            )
            resp.raise_for_status()
        except Exception as e:
            logger.warning(f"Failed to react with {emoji} on {message_name}: {e}")

    async def download(self, resource_name: str) -> bytes:
        try:
            resp = await self._client.get(
                f"{CHAT_API}/media/{resource_name}",
                params={"alt": "media"},
                headers=await self._headers(self._tokens),
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise ChatError(f"Failed to download {resource_name}: {e}") from e
        return resp.content

    # ── Inbound ───────────────────────────────────────────────────────────────

    async def pull_once(self, handler: EventHandler) -> int:
        """Pull one batch, ack it, and start a handler task per event."""
        resp = await self._client.post(
            f"{PUBSUB_API}/{self._subscription}:pull",
            json={"maxMessages": PULL_BATCH},
            headers=await self._headers(self._tokens),
        )
        resp.raise_for_status()
        body = resp.json()
        received = body.get("receivedMessages") if isinstance(body, dict) else None
        if not isinstance(received, list):
            received = []
        received = [item for item in received if isinstance(item, dict)]
        if not received:
            return 0

        ack_ids = [item["ackId"] for item in received if isinstance(item.get("ackId"), str)]
        if ack_ids:
            ack_resp = await self._client.post(
                f"{PUBSUB_API}/{self._subscription}:acknowledge",
                json={"ackIds": ack_ids},
                headers=await self._headers(self._tokens),
            )
            ack_resp.raise_for_status()

        for item in received:
            try:
                message = item.get("message")
                event = decode_event(message if isinstance(message, dict) else {})
            except (ValueError, TypeError) as e:
                logger.error(f"Failed to parse Pub/Sub message: {e}")
                continue
            task = asyncio.create_task(handler(event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return len(received)

    async def listen(self, handler: EventHandler) -> None:
        logger.info(f"Listening on {self._subscription}")
        while True:
            try:
                await self.pull_once(handler)
            except Exception as e:
                logger.error(f"Pub/Sub subscription error: {e}")
                await asyncio.sleep(PULL_ERROR_BACKOFF)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self._client.aclose()
